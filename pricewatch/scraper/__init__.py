"""Scraper package: bulletin discovery, page fetch and table extraction."""

from pricewatch.scraper.fetcher import fetch_html
from pricewatch.scraper.locator import locate_candidates, locate_latest
from pricewatch.scraper.models import BulletinLink, RawPage, Row, Table
from pricewatch.scraper.tables import drop_leading_column, extract_tables

__all__ = [
    "fetch_html",
    "locate_candidates",
    "locate_latest",
    "extract_tables",
    "drop_leading_column",
    "BulletinLink",
    "RawPage",
    "Row",
    "Table",
]
