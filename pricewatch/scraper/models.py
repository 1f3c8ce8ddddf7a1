"""Data models for the bulletin scraper."""

from __future__ import annotations

from dataclasses import dataclass
import datetime
from typing import Any, List, Optional

# A row is the cell text of one <tr>; row 0 of a table is its header.
Row = List[str]
Table = List[Row]


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


@dataclass
class BulletinLink:
    """A candidate price bulletin found on the index page.

    ``url`` is always absolute.  ``date`` is parsed from the ``YYYYMMDD``
    folder in the URL path and is ``None`` when that folder is not a real
    calendar date.
    """

    url: str
    title: str
    date: Optional[datetime.date] = None

    @property
    def date_str(self) -> str:
        """``YYYY-MM-DD`` or an empty string when no date was parsed."""
        return self.date.isoformat() if self.date else ""

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "title": self.title, "date": self.date_str or None}
