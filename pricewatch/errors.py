"""Exception types raised inside the pipeline.

None of these escape :meth:`PricePipeline.get_food_item_price`; they are
converted into a failure result at that boundary.
"""

from __future__ import annotations


class PriceWatchError(RuntimeError):
    """Base class for pipeline errors."""


class FetchError(PriceWatchError):
    """Raised when a page cannot be fetched (network error or non-2xx status)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class AssistedMatchError(PriceWatchError):
    """Raised when the LLM call fails or its reply cannot be parsed."""
