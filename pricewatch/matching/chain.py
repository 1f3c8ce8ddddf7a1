"""Strategy selection: assisted matching first, deterministic as fallback."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from pricewatch.errors import AssistedMatchError
from pricewatch.matching.assisted import AssistedMatcher
from pricewatch.matching.deterministic import find_matches
from pricewatch.models import PriceMatch
from pricewatch.scraper.models import Table

logger = logging.getLogger(__name__)


def match_item(
    tables: Sequence[Table],
    food_item: str,
    assisted: Optional[AssistedMatcher] = None,
) -> List[PriceMatch]:
    """Match *food_item* against *tables*.

    With an *assisted* matcher, its result is used when it returns at least
    one row.  A failure or an empty answer falls through to
    :func:`find_matches`, so the outcome is then exactly the deterministic one.
    """
    if assisted is not None:
        try:
            matches = assisted.match(tables, food_item)
        except AssistedMatchError as exc:
            logger.warning("Assisted match for %r failed, using substring match: %s", food_item, exc)
        else:
            if matches:
                return matches
            logger.info("Assisted match for %r found nothing, using substring match", food_item)
    return find_matches(tables, food_item)
