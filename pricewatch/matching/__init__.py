"""Item matching: name-column resolution, matching strategies and headline price."""

from pricewatch.matching.aggregate import attach_headline_price, representative_price
from pricewatch.matching.assisted import AssistedMatcher
from pricewatch.matching.chain import match_item
from pricewatch.matching.columns import resolve_name_column
from pricewatch.matching.deterministic import find_matches, search_terms

__all__ = [
    "AssistedMatcher",
    "attach_headline_price",
    "find_matches",
    "match_item",
    "representative_price",
    "resolve_name_column",
    "search_terms",
]
