"""
Services package for promotion learning and recommendation.
"""

from . import aggregation
from . import uplift
from . import elasticity
from . import decline
from . import recommendation

__all__ = ["aggregation", "uplift", "elasticity", "decline", "recommendation"]
