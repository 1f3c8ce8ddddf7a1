"""End-to-end price lookup: bulletin → tables → matches → headline price.

Each call is independent and stateless; all network access is sequential
inside one call.  Nothing raised by the stages crosses the public methods:
failures come back as :class:`~pricewatch.models.PriceQueryFailure`.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Union

from pricewatch.config import Settings
from pricewatch.errors import FetchError
from pricewatch.matching.aggregate import attach_headline_price
from pricewatch.matching.assisted import AssistedMatcher
from pricewatch.matching.chain import match_item
from pricewatch.models import (
    BulletinOverview,
    PriceQueryFailure,
    PriceQueryResult,
    PriceQuerySuccess,
)
from pricewatch.scraper.fetcher import fetch_html
from pricewatch.scraper.locator import locate_candidates
from pricewatch.scraper.models import BulletinLink, Table
from pricewatch.scraper.tables import drop_leading_column, extract_tables

logger = logging.getLogger(__name__)

MSG_MISSING_ITEM = "需要食材名称"
MSG_NO_BULLETIN = "未找到价格信息链接"
MSG_ITEM_PRICE_FAILED = "获取食材价格信息失败"
MSG_BULLETIN_FAILED = "获取食品价格信息失败"

# Number of ranked links returned by get_latest_prices().
OVERVIEW_LINK_COUNT = 10


class PricePipeline:
    """Looks up market prices for a food item in the latest price bulletin.

    Args:
        settings: Source, fetch and matching configuration.
        llm: Optional pre-built chat model for assisted matching.  When
            omitted and ``settings.assisted_matching`` is on, one is built
            from ``settings`` on first use.
        assisted: Set ``False`` to force deterministic matching regardless
            of ``settings.assisted_matching``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        llm: Any = None,
        assisted: Optional[bool] = None,
    ) -> None:
        self.settings = settings
        self._llm = llm
        self._use_assisted = settings.assisted_matching if assisted is None else assisted
        self._matcher: Optional[AssistedMatcher] = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _assisted_matcher(self) -> Optional[AssistedMatcher]:
        if not self._use_assisted:
            return None
        if self._matcher is None:
            try:
                if self._llm is None:
                    self._matcher = AssistedMatcher.from_settings(self.settings)
                else:
                    self._matcher = AssistedMatcher(
                        self._llm, max_rows=self.settings.max_candidate_rows
                    )
            except Exception:  # noqa: BLE001 - missing API key, bad provider config
                logger.warning("Assisted matching unavailable; using substring match only", exc_info=True)
                self._use_assisted = False
                return None
        return self._matcher

    def _bulletin_tables(self, link: BulletinLink) -> List[Table]:
        raw = fetch_html(link.url, self.settings)
        tables = extract_tables(raw.html)
        if self.settings.drop_leading_column:
            tables = drop_leading_column(tables)
        logger.debug("Bulletin %s has %d table(s)", link.url, len(tables))
        return tables

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_food_item_price(self, food_item: str) -> PriceQueryResult:
        """Return the prices of *food_item* in the most recent bulletin.

        Only the first match carries ``median_price``.  An empty ``prices``
        list with ``success`` set is a valid answer (item not listed).

        *food_item* is stripped of surrounding whitespace before matching,
        and the stripped value is what comes back as ``food_item``
        (``foodItem`` on the wire).
        """
        item = (food_item or "").strip()
        if not item:
            return PriceQueryFailure(MSG_MISSING_ITEM, reason="invalid_input")

        try:
            links = locate_candidates(self.settings)
            if not links:
                return PriceQueryFailure(MSG_NO_BULLETIN, reason="no_bulletin")
            latest = links[0]
            tables = self._bulletin_tables(latest)
            matches = match_item(tables, item, self._assisted_matcher())
        except FetchError as exc:
            logger.error("Price lookup for %r failed: %s", item, exc)
            return PriceQueryFailure(MSG_ITEM_PRICE_FAILED, reason="fetch_failed")
        except Exception:  # noqa: BLE001 - the boundary never raises
            logger.exception("Unexpected error during price lookup for %r", item)
            return PriceQueryFailure(MSG_ITEM_PRICE_FAILED, reason="fetch_failed")

        attach_headline_price(matches)
        logger.info("%r: %d match(es) in %s", item, len(matches), latest.url)
        return PriceQuerySuccess(
            food_item=item,
            prices=matches,
            price_date=latest.date_str,
            price_source=latest.title,
            price_url=latest.url,
        )

    def get_latest_prices(self) -> Union[BulletinOverview, PriceQueryFailure]:
        """Return the latest bulletin's tables plus the top ranked links."""
        try:
            links = locate_candidates(self.settings)
            if not links:
                return PriceQueryFailure(MSG_NO_BULLETIN, reason="no_bulletin")
            latest = links[0]
            tables = self._bulletin_tables(latest)
        except FetchError as exc:
            logger.error("Bulletin overview failed: %s", exc)
            return PriceQueryFailure(MSG_BULLETIN_FAILED, reason="fetch_failed")
        except Exception:  # noqa: BLE001 - the boundary never raises
            logger.exception("Unexpected error while loading the latest bulletin")
            return PriceQueryFailure(MSG_BULLETIN_FAILED, reason="fetch_failed")

        return BulletinOverview(
            latest=latest, tables=tables, links=links[:OVERVIEW_LINK_COUNT]
        )
