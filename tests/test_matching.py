"""Unit tests for item matching and the headline price.

Mocking strategy
----------------
* LLM calls: a ``MagicMock`` whose ``.invoke()`` returns a fake
  ``AIMessage``-like object (``SimpleNamespace(content=...)``) or raises.
* No network access is involved; tables are built inline.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from pricewatch.errors import AssistedMatchError
from pricewatch.matching.aggregate import (
    attach_headline_price,
    numeric_values,
    parse_number,
    representative_price,
)
from pricewatch.matching.assisted import AssistedMatcher, build_prompt, parse_reply
from pricewatch.matching.chain import match_item
from pricewatch.matching.columns import iter_candidates, resolve_name_column
from pricewatch.matching.deterministic import find_matches, search_terms
from pricewatch.models import PriceMatch


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fake_ai_message(content: str) -> SimpleNamespace:
    """Minimal stand-in for a LangChain ``AIMessage``."""
    return SimpleNamespace(content=content)


def _fake_llm(content: str) -> MagicMock:
    llm = MagicMock()
    llm.invoke.return_value = _fake_ai_message(content)
    return llm


_TOMATO_TABLE = [["品名", "价格"], ["西红柿", "3.5"], ["番茄", "3.8"]]

_BULLETIN_TABLES = [
    [["奉贤区主要农副产品价格"]],
    [
        ["序号", "品名", "规格", "本期价格", "上期价格"],
        ["1", "西红柿", "公斤", "3.50", "3.20"],
        ["2", "番茄(樱桃)", "公斤", "6.00", ""],
        ["3", "土豆", "公斤", "1.80", "1.90"],
        ["4", "青菜", "公斤", "2.40", "2.60"],
    ],
    [
        ["水果", "零售价"],
        ["苹果", "8.00"],
        ["马铃薯(黄心)", "2.10"],
    ],
]


# ---------------------------------------------------------------------------
# resolve_name_column
# ---------------------------------------------------------------------------

class TestResolveNameColumn:
    def test_first_keyword_column_wins(self) -> None:
        assert resolve_name_column(["序号", "品名", "商品类别"]) == 1

    def test_keyword_as_substring(self) -> None:
        assert resolve_name_column(["编号", "蔬菜品种", "价格"]) == 1

    @pytest.mark.parametrize(
        "header",
        [["价格"], ["序号", "价格", "单位"], ["", "本期", "上期"]],
    )
    def test_defaults_to_first_column(self, header) -> None:
        assert resolve_name_column(header) == 0

    def test_empty_header_not_found(self) -> None:
        assert resolve_name_column([]) is None


class TestIterCandidates:
    def test_skips_single_row_tables(self) -> None:
        names = [c.name for c in iter_candidates(_BULLETIN_TABLES)]
        assert "奉贤区主要农副产品价格" not in names
        assert names[:2] == ["西红柿", "番茄(樱桃)"]

    def test_data_covers_other_columns(self) -> None:
        first = next(iter_candidates(_BULLETIN_TABLES))
        assert first.data == {"序号": "1", "规格": "公斤", "本期价格": "3.50", "上期价格": "3.20"}

    def test_ragged_rows(self) -> None:
        tables = [[["品名", "价格", "备注"], ["白菜", "1.2"], ["x"], ["芹菜", "3", "新上市", "extra"]]]
        candidates = list(iter_candidates(tables))
        assert [c.name for c in candidates] == ["白菜", "x", "芹菜"]
        assert candidates[0].data == {"价格": "1.2"}
        assert candidates[1].data == {}
        assert candidates[2].data == {"价格": "3", "备注": "新上市"}

    def test_rows_shorter_than_name_column_skipped(self) -> None:
        tables = [[["序号", "品名", "价格"], ["1"], ["2", "冬瓜", "1.1"]]]
        assert [c.name for c in iter_candidates(tables)] == ["冬瓜"]


# ---------------------------------------------------------------------------
# Deterministic matching
# ---------------------------------------------------------------------------

class TestSearchTerms:
    def test_appends_vegetable_suffix(self) -> None:
        assert search_terms("芹") == ["芹", "芹菜"]

    def test_strips_vegetable_suffix(self) -> None:
        assert search_terms("青菜") == ["青菜", "青"]

    def test_synonyms(self) -> None:
        assert search_terms("西红柿") == ["西红柿", "西红柿菜", "番茄"]
        assert search_terms("胡萝卜") == ["胡萝卜", "胡萝卜菜", "萝卜", "胡萝"]

    def test_bare_suffix_does_not_yield_empty_term(self) -> None:
        assert search_terms("菜") == ["菜"]


class TestFindMatches:
    def test_synonym_rows_both_returned(self) -> None:
        matches = find_matches([_TOMATO_TABLE], "西红柿")
        assert [m.name for m in matches] == ["西红柿", "番茄"]
        assert matches[0].data == {"价格": "3.5"}
        assert matches[1].data == {"价格": "3.8"}

    def test_matches_across_tables_in_row_order(self) -> None:
        matches = find_matches(_BULLETIN_TABLES, "土豆")
        assert [m.name for m in matches] == ["土豆", "马铃薯(黄心)"]
        assert matches[1].data == {"零售价": "2.10"}

    def test_no_match(self) -> None:
        assert find_matches(_BULLETIN_TABLES, "榴莲") == []

    def test_no_median_price_set(self) -> None:
        assert all(m.median_price is None for m in find_matches(_BULLETIN_TABLES, "西红柿"))


# ---------------------------------------------------------------------------
# Headline price
# ---------------------------------------------------------------------------

class TestParseNumber:
    @pytest.mark.parametrize(
        "value,expected",
        [("3.5", 3.5), (" 2 ", 2.0), ("3.5元", 3.5), ("-1.5", -1.5), (".5", 0.5), (4, 4.0)],
    )
    def test_numbers(self, value, expected) -> None:
        assert parse_number(value) == expected

    @pytest.mark.parametrize("value", ["", "公斤", "约3元", None, True])
    def test_non_numbers(self, value) -> None:
        assert parse_number(value) is None

    @pytest.mark.parametrize(
        "value", [10 ** 400, float("nan"), float("inf"), float("-inf"), "9" * 400, "NaN", "Infinity"]
    )
    def test_non_finite_is_not_a_number(self, value) -> None:
        assert parse_number(value) is None


class TestRepresentativePrice:
    def test_middle_of_three(self) -> None:
        assert representative_price({"价格1": "2", "价格2": "4", "价格3": "6"}) == 4

    def test_column_order_not_sorted(self) -> None:
        assert representative_price({"价格1": "6", "价格2": "2", "价格3": "4"}) == 2

    def test_even_count_takes_upper_index(self) -> None:
        assert representative_price({"a": "1", "b": "2", "c": "3", "d": "4"}) == 3

    def test_non_numeric_cells_skipped(self) -> None:
        data = {"序号": "1", "规格": "公斤", "本期价格": "3.50", "上期价格": "3.20"}
        assert numeric_values(data) == [1.0, 3.5, 3.2]
        assert representative_price(data) == 3.5

    def test_no_numbers(self) -> None:
        assert representative_price({"规格": "公斤"}) is None
        assert representative_price({}) is None


class TestAttachHeadlinePrice:
    def test_only_first_match_gets_price(self) -> None:
        matches = [
            PriceMatch(name="西红柿", data={"价格": "3.5"}),
            PriceMatch(name="番茄", data={"价格": "3.8"}),
        ]
        attach_headline_price(matches)
        assert matches[0].median_price == 3.5
        assert matches[1].median_price is None

    def test_keeps_reported_price_when_row_has_no_numbers(self) -> None:
        matches = [PriceMatch(name="西红柿", data={"规格": "公斤"}, median_price=3.6)]
        attach_headline_price(matches)
        assert matches[0].median_price == 3.6

    def test_row_value_overrides_reported_price(self) -> None:
        matches = [PriceMatch(name="西红柿", data={"价格": "3.5"}, median_price=9.9)]
        attach_headline_price(matches)
        assert matches[0].median_price == 3.5

    def test_empty(self) -> None:
        assert attach_headline_price([]) == []

    def test_serialised_shape(self) -> None:
        matches = attach_headline_price([PriceMatch(name="西红柿", data={"价格": "3.5"}),
                                         PriceMatch(name="番茄", data={"价格": "3.8"})])
        assert [m.to_dict() for m in matches] == [
            {"name": "西红柿", "data": {"价格": "3.5"}, "medianPrice": 3.5},
            {"name": "番茄", "data": {"价格": "3.8"}},
        ]


# ---------------------------------------------------------------------------
# Assisted matching
# ---------------------------------------------------------------------------

class TestParseReply:
    def test_plain_json(self) -> None:
        reply = parse_reply('{"matches": [{"name": "番茄", "data": {"价格": 3.8}}], "medianPrice": 3.8}')
        assert reply.matches[0].name == "番茄"
        assert reply.median_price == 3.8

    def test_fenced_json_with_chatter(self) -> None:
        text = 'Here you go:\n```json\n{"matches": []}\n```'
        assert parse_reply(text).matches == []

    def test_not_json_raises(self) -> None:
        with pytest.raises(AssistedMatchError):
            parse_reply("Sorry, I cannot help with that.")

    def test_wrong_shape_raises(self) -> None:
        with pytest.raises(AssistedMatchError):
            parse_reply('{"matches": "番茄"}')

    def test_json_array_raises(self) -> None:
        with pytest.raises(AssistedMatchError):
            parse_reply('[{"name": "番茄"}]')


class TestBuildPrompt:
    def test_contains_query_and_candidates(self) -> None:
        candidates = list(iter_candidates([_TOMATO_TABLE]))
        prompt = build_prompt(candidates, "西红柿")
        assert "西红柿" in prompt
        assert json.dumps([{"name": "番茄", "data": {"价格": "3.8"}}], ensure_ascii=False)[1:-1] in prompt
        assert '"matches"' in prompt


class TestAssistedMatcher:
    def test_returns_bulletin_rows_for_reply_names(self) -> None:
        llm = _fake_llm(json.dumps({
            "matches": [{"name": "马铃薯(黄心)", "data": {"零售价": "999"}},
                        {"name": "土豆", "data": {}}],
            "medianPrice": 1.95,
        }, ensure_ascii=False))
        matches = AssistedMatcher(llm).match(_BULLETIN_TABLES, "土豆")

        assert [m.name for m in matches] == ["马铃薯(黄心)", "土豆"]
        # data comes from the bulletin, not the reply
        assert matches[0].data == {"零售价": "2.10"}
        assert matches[0].median_price == 1.95
        assert matches[1].median_price is None

    def test_same_name_rows_from_different_tables_all_kept(self) -> None:
        tables = [[["品名", "批发价"], ["番茄", "3.0"]], [["品名", "零售价"], ["番茄", "5.0"]]]
        llm = _fake_llm(json.dumps({
            "matches": [{"name": "番茄", "data": {"批发价": "3.0"}},
                        {"name": "番茄", "data": {"零售价": "5.0"}}],
        }, ensure_ascii=False))
        matches = AssistedMatcher(llm).match(tables, "番茄")

        assert [m.data for m in matches] == [{"批发价": "3.0"}, {"零售价": "5.0"}]

    def test_same_name_row_picked_by_data(self) -> None:
        tables = [[["品名", "批发价"], ["番茄", "3.0"]], [["品名", "零售价"], ["番茄", "5.0"]]]
        llm = _fake_llm(json.dumps({
            "matches": [{"name": "番茄", "data": {"零售价": 5.0}},
                        {"name": "番茄", "data": {}}],
        }, ensure_ascii=False))
        matches = AssistedMatcher(llm).match(tables, "番茄")

        assert [m.data for m in matches] == [{"零售价": "5.0"}, {"批发价": "3.0"}]

    def test_repeated_reply_row_used_once(self) -> None:
        llm = _fake_llm('{"matches": [{"name": "土豆"}, {"name": "土豆"}]}')
        matches = AssistedMatcher(llm).match(_BULLETIN_TABLES, "土豆")
        assert [m.name for m in matches] == ["土豆"]

    def test_reply_processing_error_raises_assisted_error(self) -> None:
        llm = _fake_llm('{"matches": [{"name": "土豆"}], "medianPrice": 2}')
        with patch(
            "pricewatch.matching.assisted.parse_number", side_effect=OverflowError("too big")
        ):
            with pytest.raises(AssistedMatchError):
                AssistedMatcher(llm).match(_BULLETIN_TABLES, "土豆")

    def test_invented_names_dropped(self) -> None:
        llm = _fake_llm('{"matches": [{"name": "洋芋", "data": {"价格": "2"}}]}')
        assert AssistedMatcher(llm).match(_BULLETIN_TABLES, "洋芋") == []

    def test_does_not_mutate_candidates(self) -> None:
        llm = _fake_llm('{"matches": [{"name": "西红柿", "data": {}}], "medianPrice": 3}')
        first = AssistedMatcher(llm).match(_BULLETIN_TABLES, "西红柿")
        second = AssistedMatcher(llm).match(_BULLETIN_TABLES, "西红柿")
        assert first == second

    def test_llm_error_raises_assisted_error(self) -> None:
        llm = MagicMock()
        llm.invoke.side_effect = TimeoutError("model timed out")
        with pytest.raises(AssistedMatchError):
            AssistedMatcher(llm).match(_BULLETIN_TABLES, "西红柿")

    def test_unparseable_reply_raises(self) -> None:
        with pytest.raises(AssistedMatchError):
            AssistedMatcher(_fake_llm("not json")).match(_BULLETIN_TABLES, "西红柿")

    def test_no_candidates_skips_llm(self) -> None:
        llm = _fake_llm('{"matches": []}')
        assert AssistedMatcher(llm).match([[["标题"]]], "西红柿") == []
        llm.invoke.assert_not_called()

    def test_candidate_rows_capped(self) -> None:
        llm = _fake_llm('{"matches": []}')
        AssistedMatcher(llm, max_rows=2).match(_BULLETIN_TABLES, "苹果")
        prompt = llm.invoke.call_args.args[0]
        assert "番茄(樱桃)" in prompt
        assert "土豆" not in prompt


# ---------------------------------------------------------------------------
# Strategy chain
# ---------------------------------------------------------------------------

class TestMatchItem:
    def test_without_assisted_is_deterministic(self) -> None:
        assert match_item([_TOMATO_TABLE], "西红柿") == find_matches([_TOMATO_TABLE], "西红柿")

    def test_assisted_failure_equals_deterministic(self) -> None:
        llm = MagicMock()
        llm.invoke.side_effect = ConnectionError("service unavailable")
        result = match_item(_BULLETIN_TABLES, "西红柿", AssistedMatcher(llm))
        assert result == find_matches(_BULLETIN_TABLES, "西红柿")

    def test_malformed_reply_equals_deterministic(self) -> None:
        result = match_item(_BULLETIN_TABLES, "土豆", AssistedMatcher(_fake_llm("{oops")))
        assert result == find_matches(_BULLETIN_TABLES, "土豆")

    def test_oversized_reported_median_is_ignored(self) -> None:
        table = [["品名", "价格"], ["番茄", "3.8"]]
        llm = _fake_llm('{"matches": [{"name": "番茄"}], "medianPrice": 1' + "0" * 400 + "}")
        result = match_item([table], "番茄", AssistedMatcher(llm))

        assert result == find_matches([table], "番茄")
        assert result[0].median_price is None

    def test_empty_assisted_answer_falls_back(self) -> None:
        result = match_item(_BULLETIN_TABLES, "青菜", AssistedMatcher(_fake_llm('{"matches": []}')))
        assert [m.name for m in result] == ["青菜"]

    def test_assisted_answer_used_when_present(self) -> None:
        llm = _fake_llm('{"matches": [{"name": "番茄(樱桃)", "data": {}}]}')
        result = match_item(_BULLETIN_TABLES, "圣女果", AssistedMatcher(llm))
        assert [m.name for m in result] == ["番茄(樱桃)"]
