"""Bulletin locator: finds the most recent price bulletin on the index page."""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import List, Optional, Tuple
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from pricewatch.config import Settings
from pricewatch.scraper.fetcher import fetch_html
from pricewatch.scraper.models import BulletinLink

logger = logging.getLogger(__name__)

_DATE_FOLDER = re.compile(r"/(\d{8})/")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_anchors(html: str) -> List[Tuple[str, str]]:
    """Return ``(href, visible text)`` for every ``<a href>`` in document order."""
    try:
        soup = BeautifulSoup(html or "", "html.parser")
        anchors = soup.find_all("a", href=True)
    except Exception:  # noqa: BLE001 - malformed markup must not fail the request
        logger.warning("Anchor extraction failed; treating index as link-less", exc_info=True)
        return []
    return [(a["href"].strip(), a.get_text(strip=True)) for a in anchors]


def absolute_url(href: str, origin: str) -> str:
    """Prefix *origin* onto *href* unless it is already absolute."""
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("//"):
        return f"{urlsplit(origin).scheme}:{href}"
    if not href.startswith("/"):
        href = "/" + href
    return f"{origin}{href}"


def parse_bulletin_date(url: str) -> Optional[date]:
    """Return the ``YYYYMMDD`` folder date in *url*'s path, or ``None``."""
    match = _DATE_FOLDER.search(urlsplit(url).path)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), "%Y%m%d").date()
    except ValueError:
        return None


def rank_links(links: List[BulletinLink]) -> List[BulletinLink]:
    """Sort newest first.  Undated links rank as oldest; ties keep page order."""
    return sorted(links, key=lambda link: link.date or date.min, reverse=True)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_bulletin_links(html: str, settings: Settings) -> List[BulletinLink]:
    """Return the ranked bulletin links found in an index page's *html*.

    A link qualifies when its href has the bulletin path shape and its text
    carries at least one of ``settings.link_keywords``.
    """
    path_shape = re.compile(settings.bulletin_path_pattern)
    origin = settings.site_origin

    seen: set[str] = set()
    links: List[BulletinLink] = []
    for href, text in _extract_anchors(html):
        if not path_shape.search(href):
            continue
        if not any(keyword in text for keyword in settings.link_keywords):
            continue
        url = absolute_url(href, origin)
        if url in seen:
            continue
        seen.add(url)
        links.append(BulletinLink(url=url, title=text, date=parse_bulletin_date(url)))

    return rank_links(links)


def locate_candidates(settings: Settings) -> List[BulletinLink]:
    """Fetch the index page and return every bulletin link, newest first.

    Raises:
        FetchError: If the index page cannot be fetched.
    """
    raw = fetch_html(settings.index_url, settings)
    links = find_bulletin_links(raw.html, settings)
    logger.debug("Index %s yielded %d bulletin link(s)", settings.index_url, len(links))
    return links


def locate_latest(settings: Settings) -> Optional[BulletinLink]:
    """Return the most recently dated bulletin, or ``None`` when there is none.

    Raises:
        FetchError: If the index page cannot be fetched.
    """
    links = locate_candidates(settings)
    if not links:
        logger.info("No bulletin links found on %s", settings.index_url)
        return None
    latest = links[0]
    logger.info("Latest bulletin: %s (%s) %s", latest.title, latest.date_str, latest.url)
    return latest
