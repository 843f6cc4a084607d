# backend promo engine database
import os

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

from promo_engine.core.config import EngineConfig
from promo_engine.repositories.base import PromoRepository

Base = declarative_base()

# Sync driver names that have an async counterpart
ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def to_async_url(database_url: str):
    """
    Coerce a plain database URL to its async driver.
    Railway/Supabase style URLs come as postgresql:// and need asyncpg.
    """
    url = make_url(database_url)
    drivername = ASYNC_DRIVERS.get(url.drivername)
    if drivername:
        url = url.set(drivername=drivername)
    return url


def create_db_engine(database_url: str) -> AsyncEngine:
    url = to_async_url(database_url)
    # Local file-backed store: make sure ./data exists
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)

    return create_async_engine(url, future=True, echo=False)


# Create all tables (automatically)
async def init_db(engine: AsyncEngine) -> None:
    """
    Initializes the database by creating all tables.
    """
    import promo_engine.models  # noqa: F401  ensure models are registered

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependencies
def get_repository(request: Request) -> PromoRepository:
    return request.app.state.repository


def get_engine_config(request: Request) -> EngineConfig:
    return request.app.state.engine_config
