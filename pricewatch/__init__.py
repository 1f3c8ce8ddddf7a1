"""Market price lookup over published government price bulletins."""

from pricewatch.config import Settings
from pricewatch.pipeline import PricePipeline

__all__ = ["PricePipeline", "Settings"]
