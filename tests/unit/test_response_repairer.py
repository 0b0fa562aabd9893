import json
import sys

import pytest

from datanexus.domain.models.repair import Fallback, WellFormed
from datanexus.infrastructure.parsers.response_repairer import (
    clean_response_text,
    parse_response,
    repair,
    strip_code_fences,
)


def test_well_formed_input_parses_exactly_like_json_loads() -> None:
    samples = [
        '{"items": [{"title": "A", "source_indices": [1, 2]}]}',
        '{"items": []}',
        '[{"title": "B", "summary": "See [1].", "source_indices": []}]',
        '{"items": [{"summary": "text with \\"source_indices\\": } inside"}]}',
    ]
    for sample in samples:
        assert clean_response_text(sample) == sample.strip()
        assert parse_response(sample) == json.loads(sample)


def test_missing_source_indices_value_becomes_empty_array() -> None:
    outcome = repair('{"items":[{"source_indices":}]}')

    assert isinstance(outcome, WellFormed)
    assert outcome.payload == {"items": [{"source_indices": []}]}
    assert outcome.items == [{"source_indices": []}]


def test_missing_value_before_comma_and_bracket() -> None:
    text = '{"items":[{"source_indices": , "title": "X"}, {"source_indices" :]}'
    cleaned = clean_response_text(text)

    assert '"source_indices": [], "title"' in cleaned
    assert '"source_indices": []]' in cleaned


def test_code_fences_with_and_without_language_tag_are_stripped() -> None:
    assert strip_code_fences('```json\n{"items": []}\n```') == '{"items": []}'
    assert strip_code_fences('```\n{"items": []}\n```') == '{"items": []}'
    assert strip_code_fences('  ```JSON\n[1]```  ') == "[1]"


def test_bare_array_is_accepted() -> None:
    outcome = repair('```json\n[{"title": "A"}, {"title": "B"}]\n```')

    assert isinstance(outcome, WellFormed)
    assert [item["title"] for item in outcome.items] == ["A", "B"]


def test_other_shapes_normalize_to_empty_items() -> None:
    for text in ('{"results": [{"title": "A"}]}', '"just a string"', "42", '{"items": {"title": "A"}}'):
        outcome = repair(text)
        assert isinstance(outcome, WellFormed)
        assert outcome.items == []


def test_malformed_input_falls_back_to_empty_items() -> None:
    outcome = repair('{"items": [{"title": "A",]')

    assert isinstance(outcome, Fallback)
    assert outcome.items == []
    assert outcome.payload == {"items": []}
    assert parse_response("not json at all") == {"items": []}


def test_empty_and_missing_text_fall_back() -> None:
    assert isinstance(repair(""), Fallback)
    assert isinstance(repair(None), Fallback)
    assert isinstance(repair("```json\n```"), Fallback)


def test_deeply_nested_input_falls_back() -> None:
    outcome = repair("[" * 100_000)

    assert isinstance(outcome, Fallback)
    assert outcome.items == []


@pytest.mark.skipif(
    not hasattr(sys, "set_int_max_str_digits"), reason="integer digit limit arrived in Python 3.11"
)
def test_oversized_integer_literal_falls_back() -> None:
    outcome = repair('{"items":[{"amount":' + "9" * 5000 + "}]}")

    assert isinstance(outcome, Fallback)
    assert outcome.payload == {"items": []}
