"""Reduce a matched row's price columns to one headline figure."""

from __future__ import annotations

import math
import re
from typing import Any, List, Mapping, Optional

from pricewatch.models import PriceMatch

# Leading decimal number, parsed the way a lenient parseFloat would ("3.5元" -> 3.5).
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")


def parse_number(value: Any) -> Optional[float]:
    """Return the leading decimal number in *value*, or ``None``.

    Values that do not fit a finite float (huge integers, NaN, infinity) are
    treated as non-numeric.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        match = _LEADING_NUMBER.match(str(value))
        if not match:
            return None
        number = float(match.group(1))
    return number if math.isfinite(number) else None


def numeric_values(data: Mapping[str, Any]) -> List[float]:
    """Numeric cells of *data* in column order."""
    values = (parse_number(v) for v in data.values())
    return [v for v in values if v is not None]


def representative_price(data: Mapping[str, Any]) -> Optional[float]:
    """Pick the headline price from a row's columns.

    Takes the element at ``len // 2`` of the numeric values *in column order*.
    The values are deliberately not sorted, so this is not a statistical
    median for unordered columns; downstream consumers rely on the figure.
    """
    values = numeric_values(data)
    if not values:
        return None
    return values[len(values) // 2]


def attach_headline_price(matches: List[PriceMatch]) -> List[PriceMatch]:
    """Set ``median_price`` on the first match only.

    A value already present on the first match (e.g. one reported by the
    assisted matcher) is kept when the row itself has no numeric cells.
    """
    if not matches:
        return matches
    headline = representative_price(matches[0].data)
    if headline is not None:
        matches[0].median_price = headline
    return matches
