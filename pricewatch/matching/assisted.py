"""LLM-assisted matching.

The full candidate list and the query go to a chat model, which picks the
row(s) that mean the same item (regional names, spelling variants, units in
the name) and reports a median of their numeric columns.

Expected reply shape::

    {"matches": [{"name": "番茄", "data": {"批发价": "3.5", ...}}],
     "medianPrice": 3.5}

Every failure (transport error, non-JSON reply, wrong shape) is raised as
:class:`~pricewatch.errors.AssistedMatchError` so the caller can fall back
to deterministic matching.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Set

from pydantic import BaseModel, Field, ValidationError

from pricewatch.config import Settings
from pricewatch.errors import AssistedMatchError
from pricewatch.matching.aggregate import parse_number
from pricewatch.matching.columns import iter_candidates
from pricewatch.models import PriceMatch
from pricewatch.scraper.models import Table

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


# ---------------------------------------------------------------------------
# LLM helper
# ---------------------------------------------------------------------------

def get_llm(settings: Settings) -> Any:
    """Return a LangChain chat model configured for JSON replies."""
    if settings.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=settings.ollama_chat_model,
            base_url=settings.ollama_base_url,
            temperature=0,
            format="json",
        )

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.openai_chat_model,
        temperature=0,
        timeout=settings.request_timeout,
        model_kwargs={"response_format": {"type": "json_object"}},
    )


# ---------------------------------------------------------------------------
# Reply schema
# ---------------------------------------------------------------------------

class ReplyMatch(BaseModel):
    name: str
    data: Dict[str, Any] = Field(default_factory=dict)


class AssistedReply(BaseModel):
    matches: List[ReplyMatch] = Field(default_factory=list)
    median_price: Any = Field(default=None, alias="medianPrice")


def _extract_json_object(text: str) -> Optional[dict]:
    """Pull the first JSON object out of *text*, tolerating fences and chatter."""
    text = _FENCE.sub("", text).strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = _OBJECT.search(text)
        if not match:
            return None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def parse_reply(text: str) -> AssistedReply:
    """Validate the model's raw text reply.

    Raises:
        AssistedMatchError: If no JSON object is found or it has the wrong shape.
    """
    payload = _extract_json_object(text)
    if payload is None:
        raise AssistedMatchError(f"Reply is not a JSON object: {text[:200]!r}")
    try:
        return AssistedReply.model_validate(payload)
    except ValidationError as exc:
        raise AssistedMatchError(f"Reply has unexpected shape: {exc}") from exc


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

def build_prompt(candidates: Sequence[PriceMatch], food_item: str) -> str:
    rows = [{"name": c.name, "data": c.data} for c in candidates]
    return (
        "你是农产品价格数据助手。下面是一份政府价格公报中的全部商品行(JSON)。\n"
        f"请找出与查询食材「{food_item}」指同一种商品的行，"
        "包括别名、地方叫法和带规格说明的名称。\n"
        "只能从给出的行中选择，name 和 data 必须原样返回。\n"
        "如果匹配行中有数字价格列，请给出这些价格的中位数 medianPrice，否则为 null。\n"
        "严格按以下JSON格式返回，不要输出其他文字：\n"
        '{"matches": [{"name": "...", "data": {"列名": "值"}}], "medianPrice": 数字或null}\n'
        '没有匹配时返回 {"matches": [], "medianPrice": null}。\n\n'
        f"商品行：\n{json.dumps(rows, ensure_ascii=False)}"
    )


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------

class AssistedMatcher:
    """Delegates fuzzy item matching to a chat model.

    Args:
        llm: Any object with an ``invoke(prompt)`` method returning a message
            with ``.content`` (a LangChain chat model in production).
        max_rows: Cap on candidate rows sent in one prompt.
    """

    def __init__(self, llm: Any, *, max_rows: int = 400) -> None:
        self.llm = llm
        self.max_rows = max_rows

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssistedMatcher":
        return cls(get_llm(settings), max_rows=settings.max_candidate_rows)

    def match(self, tables: Sequence[Table], food_item: str) -> List[PriceMatch]:
        """Return the rows the model matched, in the order it gave them.

        Reply rows are mapped back onto the extracted candidates by name so
        that the returned ``data`` is always what the bulletin says; names
        the model invented are dropped.  Each candidate is used at most once,
        so same-named rows from different tables all survive.  The model's
        ``medianPrice``, when numeric, is set on the first match.

        Raises:
            AssistedMatchError: On any model or reply failure.
        """
        candidates = list(iter_candidates(tables))
        if not candidates:
            return []
        if len(candidates) > self.max_rows:
            logger.info(
                "Truncating %d candidate rows to %d for assisted matching",
                len(candidates), self.max_rows,
            )
            candidates = candidates[: self.max_rows]

        prompt = build_prompt(candidates, food_item)
        try:
            response = self.llm.invoke(prompt)
        except Exception as exc:  # noqa: BLE001 - provider errors vary by backend
            raise AssistedMatchError(f"LLM call failed: {exc}") from exc
        raw = response.content if hasattr(response, "content") else str(response)
        if not isinstance(raw, str):
            raw = str(raw)

        try:
            reply = parse_reply(raw)
            result = _resolve_reply(reply, candidates)
        except AssistedMatchError:
            raise
        except Exception as exc:  # noqa: BLE001 - any malformed reply means fall back
            raise AssistedMatchError(f"Reply could not be applied: {exc}") from exc
        return result


def _pick_candidate(
    item: ReplyMatch, candidates: Sequence[PriceMatch], used: Set[int]
) -> Optional[int]:
    """Index of the unused candidate a reply row refers to, or ``None``.

    Among same-named rows, the one whose ``data`` equals the reply's wins;
    otherwise the first unused one in bulletin order.
    """
    name = item.name.strip()
    same_name = [
        index for index, candidate in enumerate(candidates)
        if index not in used and candidate.name.strip() == name
    ]
    if not same_name:
        return None
    reply_data = {str(k): str(v) for k, v in item.data.items()}
    for index in same_name:
        if candidates[index].data == reply_data:
            return index
    return same_name[0]


def _resolve_reply(reply: AssistedReply, candidates: Sequence[PriceMatch]) -> List[PriceMatch]:
    used: Set[int] = set()
    result: List[PriceMatch] = []
    for item in reply.matches:
        index = _pick_candidate(item, candidates, used)
        if index is None:
            logger.debug("Dropping assisted match not in bulletin: %r", item.name)
            continue
        used.add(index)
        candidate = candidates[index]
        result.append(PriceMatch(name=candidate.name, data=dict(candidate.data)))

    reported = parse_number(reply.median_price)
    if result and reported is not None:
        result[0].median_price = reported
    return result
