"""Plain HTTP fetcher for the bulletin index and bulletin pages."""

from __future__ import annotations

import logging

import httpx

from pricewatch.config import Settings
from pricewatch.errors import FetchError
from pricewatch.scraper.models import RawPage

logger = logging.getLogger(__name__)


def _default_headers(settings: Settings) -> dict[str, str]:
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    }


def fetch_html(url: str, settings: Settings) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    There is no retry: a single network error or non-2xx response fails the
    request.

    Raises:
        FetchError: If the request errors or the final response is not 2xx.
    """
    try:
        with httpx.Client(
            headers=_default_headers(settings),
            timeout=settings.request_timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("GET %s failed: %s", url, exc)
        raise FetchError(url, str(exc) or type(exc).__name__) from exc

    if not response.is_success:
        logger.warning("GET %s returned HTTP %s", url, response.status_code)
        raise FetchError(url, f"HTTP {response.status_code}")

    return RawPage(url=url, html=response.text, status_code=response.status_code)
