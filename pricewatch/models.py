"""Result shapes returned by :class:`pricewatch.pipeline.PricePipeline`.

The ``to_dict`` methods produce the camelCase wire shape consumed by the
front end, e.g.::

    {"success": true, "foodItem": "西红柿", "prices": [...],
     "priceDate": "2025-05-16", "priceSource": "...", "priceUrl": "..."}

    {"success": false, "error": "未找到价格信息链接"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from pricewatch.scraper.models import BulletinLink, Table

FailureReason = Literal["invalid_input", "no_bulletin", "fetch_failed"]


@dataclass
class PriceMatch:
    """One bulletin row matched against the query.

    ``data`` maps every non-name column header to that row's cell value.
    """

    name: str
    data: Dict[str, str] = field(default_factory=dict)
    median_price: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "data": dict(self.data)}
        if self.median_price is not None:
            out["medianPrice"] = self.median_price
        return out


@dataclass
class PriceQuerySuccess:
    food_item: str
    prices: List[PriceMatch]
    price_date: str
    price_source: str
    price_url: str
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "foodItem": self.food_item,
            "prices": [p.to_dict() for p in self.prices],
            "priceDate": self.price_date,
            "priceSource": self.price_source,
            "priceUrl": self.price_url,
        }


@dataclass
class PriceQueryFailure:
    error: str
    # Used by the HTTP layer to pick a status code; not serialised.
    reason: FailureReason = "fetch_failed"
    success: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.error}


PriceQueryResult = Union[PriceQuerySuccess, PriceQueryFailure]


@dataclass
class BulletinOverview:
    """The latest bulletin with all of its extracted tables."""

    latest: BulletinLink
    tables: List[Table]
    links: List[BulletinLink]
    success: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "title": self.latest.title,
            "url": self.latest.url,
            "date": self.latest.date_str,
            "tables": self.tables,
            "allLinks": [link.to_dict() for link in self.links],
        }
