"""Deterministic matching: substring search over synonym variants."""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from pricewatch.matching.columns import iter_candidates
from pricewatch.models import PriceMatch
from pricewatch.scraper.models import Table

# Common suffix for leafy vegetables ("白菜", "芹菜" ...).
VEGETABLE_SUFFIX = "菜"

SYNONYMS: Dict[str, Tuple[str, ...]] = {
    "西红柿": ("番茄",),
    "土豆": ("马铃薯",),
    "茄子": ("茄",),
    "胡萝卜": ("萝卜", "胡萝"),
    "青椒": ("辣椒", "菜椒"),
}


def search_terms(food_item: str) -> List[str]:
    """Expand *food_item* into the substrings to look for in name cells.

    The term itself comes first, then the ``菜`` suffix stripped or appended,
    then any registered synonyms.  Empty and duplicate variants are dropped
    (an empty variant would match every row).
    """
    terms = [food_item]
    if food_item.endswith(VEGETABLE_SUFFIX):
        terms.append(food_item[: -len(VEGETABLE_SUFFIX)])
    else:
        terms.append(food_item + VEGETABLE_SUFFIX)
    terms.extend(SYNONYMS.get(food_item, ()))

    unique: List[str] = []
    for term in terms:
        if term and term not in unique:
            unique.append(term)
    return unique


def find_matches(tables: Sequence[Table], food_item: str) -> List[PriceMatch]:
    """Return every row whose name cell contains any search term, in row order."""
    terms = search_terms(food_item)
    return [
        candidate
        for candidate in iter_candidates(tables)
        if any(term in candidate.name for term in terms)
    ]
