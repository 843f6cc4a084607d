from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging

from promo_engine.core.config import EngineConfig, Settings, load_engine_config, load_settings
from promo_engine.core.db import create_db_engine, init_db
from promo_engine.repositories.base import PromoRepository
from promo_engine.repositories.memory import InMemoryPromoRepository
from promo_engine.repositories.sql import SqlAlchemyPromoRepository
from promo_engine.routers.health import router as health_router
from promo_engine.routers.elasticity import router as elasticity_router
from promo_engine.routers.promotions import router as promotions_router
from promo_engine.routers.recommendations import router as recommendations_router

logger = logging.getLogger(__name__)


async def build_repository(settings: Settings) -> PromoRepository:
    """Pick the storage backend once, at startup."""
    if settings.store == "memory":
        logger.info("Using in-memory promotion store")
        return InMemoryPromoRepository()

    engine = create_db_engine(settings.database_url)
    await init_db(engine)
    logger.info(f"Using SQL promotion store ({engine.dialect.name})")
    return SqlAlchemyPromoRepository(engine)


def create_app(
    repository: Optional[PromoRepository] = None,
    engine_config: Optional[EngineConfig] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        app.state.engine_config = engine_config or load_engine_config()
        app.state.repository = repository or await build_repository(settings)
        yield
        # Shutdown
        await app.state.repository.close()

    app = FastAPI(title="Promotion Learning & Recommendation API", version="1.0.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(health_router, prefix="")
    app.include_router(elasticity_router, prefix="")
    app.include_router(promotions_router, prefix="")
    app.include_router(recommendations_router, prefix="")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("promo_engine.main:app", host="0.0.0.0", port=8000)
