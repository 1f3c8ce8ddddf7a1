"""Centralised settings for the price lookup service.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

The pipeline never reads the module-level ``settings`` on its own; callers
hand a :class:`Settings` instance to :class:`pricewatch.pipeline.PricePipeline`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Bulletin source
    # ------------------------------------------------------------------
    index_url: str = field(
        default_factory=lambda: os.environ.get(
            "PRICE_INDEX_URL", "https://www.fengxian.gov.cn/fgw/jbsj/index.html"
        )
    )
    bulletin_path_pattern: str = field(
        default_factory=lambda: os.environ.get(
            "PRICE_BULLETIN_PATTERN", r"/fgw/jbsj/\d{8}/\d+\.html"
        )
    )
    link_keywords: list[str] = field(
        default_factory=lambda: _env_list("PRICE_LINK_KEYWORDS", "价格,物价,市场")
    )

    @property
    def site_origin(self) -> str:
        """Scheme and host of ``index_url``, without a trailing slash."""
        parts = urlsplit(self.index_url)
        return f"{parts.scheme}://{parts.netloc}"

    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "PRICE_USER_AGENT",
            "Mozilla/5.0 (compatible; PriceWatch/1.0; +https://github.com/pricewatch)",
        )
    )

    # ------------------------------------------------------------------
    # Table post-processing
    # ------------------------------------------------------------------
    drop_leading_column: bool = field(
        default_factory=lambda: _env_bool("PRICE_DROP_LEADING_COLUMN", False)
    )

    # ------------------------------------------------------------------
    # Assisted matching (LLM)
    # ------------------------------------------------------------------
    assisted_matching: bool = field(
        default_factory=lambda: _env_bool("ASSISTED_MATCHING", True)
    )
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "qwen2.5:7b")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    max_candidate_rows: int = field(
        default_factory=lambda: int(os.environ.get("ASSISTED_MAX_ROWS", "400"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )


# Default instance for the CLI and API entry points:
#   from pricewatch.config import settings
settings = Settings()
