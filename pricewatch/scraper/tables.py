"""Table extraction: turns a bulletin page into rows of cell strings.

Bulletin pages are hand-edited and rarely well-formed, so parsing is
best-effort.  Tables and rows come back in document order; a row or cell is
attributed to its *nearest* enclosing ``<table>``/``<tr>`` so nested tables
surface as separate tables instead of leaking rows or cell text into their
parent.
"""

from __future__ import annotations

import logging
from typing import List

from bs4 import BeautifulSoup
from bs4.element import Tag

from pricewatch.scraper.models import Row, Table

logger = logging.getLogger(__name__)

# html.parser decodes &nbsp; to U+00A0
_NBSP = "\xa0"


def _cell_text(cell: Tag) -> str:
    own_table = cell.find_parent("table")
    text = "".join(
        piece for piece in cell.strings if piece.find_parent("table") is own_table
    )
    return text.replace(_NBSP, "").strip()


def _row_cells(tr: Tag) -> Row:
    return [
        _cell_text(cell)
        for cell in tr.find_all(["th", "td"])
        if cell.find_parent("tr") is tr
    ]


def _table_rows(table: Tag) -> Table:
    rows: Table = []
    for tr in table.find_all("tr"):
        if tr.find_parent("table") is not table:
            continue
        cells = _row_cells(tr)
        if any(cells):
            rows.append(cells)
    return rows


def extract_tables(html: str) -> List[Table]:
    """Return every non-empty table in *html* as a list of rows.

    Cell text has nested tags stripped, ``&nbsp;`` removed and surrounding
    whitespace trimmed.  Rows whose cells are all empty are dropped, and so
    are tables left without rows.  Never raises on bad markup; the worst case
    is an empty list.
    """
    try:
        soup = BeautifulSoup(html or "", "html.parser")
        tables = [_table_rows(table) for table in soup.find_all("table")]
    except Exception:  # noqa: BLE001 - malformed markup must not fail the request
        logger.warning("Table extraction failed; treating page as table-less", exc_info=True)
        return []

    tables = [rows for rows in tables if rows]
    logger.debug("Extracted %d table(s)", len(tables))
    return tables


def drop_leading_column(tables: List[Table]) -> List[Table]:
    """Remove the first cell of every row (bulletins lead with a serial number).

    Rows left without any content are dropped, as are tables left without rows.
    """
    trimmed: List[Table] = []
    for table in tables:
        rows = [row[1:] for row in table if any(row[1:])]
        if rows:
            trimmed.append(rows)
    return trimmed
