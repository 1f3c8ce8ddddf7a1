"""Utilities for rendering bulletin tables and price results in the CLI."""

from __future__ import annotations

import unicodedata
from typing import List, Sequence

from pricewatch.models import PriceMatch


def _display_width(text: str) -> int:
    """Terminal column width of *text* (CJK characters take two columns)."""
    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in text)


def _pad(text: str, width: int) -> str:
    return text + " " * (width - _display_width(text))


def render_table(rows: Sequence[Sequence[str]]) -> str:
    """Render *rows* as aligned, ``|``-separated text with a rule under the header.

    Short rows are padded with empty cells to the widest row.
    """
    if not rows:
        return ""
    columns = max(len(row) for row in rows)
    grid = [list(row) + [""] * (columns - len(row)) for row in rows]
    widths = [max(_display_width(row[i]) for row in grid) for i in range(columns)]

    lines: List[str] = []
    for index, row in enumerate(grid):
        lines.append(" | ".join(_pad(cell, widths[i]) for i, cell in enumerate(row)).rstrip())
        if index == 0:
            lines.append("-+-".join("-" * w for w in widths))
    return "\n".join(lines)


def render_matches(matches: Sequence[PriceMatch]) -> str:
    """Render price matches, one block per row; the headline price is starred."""
    lines: List[str] = []
    for match in matches:
        lines.append(f"• {match.name}")
        if match.median_price is not None:
            lines.append(f"    ★ 参考价: {match.median_price:g}")
        for header, value in match.data.items():
            lines.append(f"    {header}: {value}")
    return "\n".join(lines)
