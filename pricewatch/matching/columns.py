"""Name-column resolution and candidate-row construction.

Bulletin tables vary in column order and labelling between publications, so
the item-name column is picked by keyword rather than by position.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

from pricewatch.models import PriceMatch
from pricewatch.scraper.models import Table

NAME_KEYWORDS = ("品名", "名称", "商品", "食品", "蔬菜", "水果", "肉类")


def resolve_name_column(header: Sequence[str]) -> Optional[int]:
    """Return the index of the column holding item names.

    The first header cell containing a name keyword wins; otherwise column 0
    is assumed.  ``None`` is returned only for an empty header.
    """
    for index, cell in enumerate(header):
        if any(keyword in cell for keyword in NAME_KEYWORDS):
            return index
    return 0 if header else None


def usable_tables(tables: Sequence[Table]) -> List[Table]:
    """Tables with a header row and at least one data row."""
    return [table for table in tables if len(table) >= 2]


def iter_candidates(tables: Sequence[Table]) -> Iterator[PriceMatch]:
    """Yield every data row of every usable table as an unmatched candidate.

    ``data`` holds every other column keyed by its header; cells beyond the
    header's width, and headers beyond the row's width, are ignored.
    """
    for table in usable_tables(tables):
        header = table[0]
        name_index = resolve_name_column(header)
        if name_index is None:
            continue
        for row in table[1:]:
            if len(row) <= name_index:
                continue
            data = {
                header[j]: row[j]
                for j in range(min(len(header), len(row)))
                if j != name_index
            }
            yield PriceMatch(name=row[name_index], data=data)
