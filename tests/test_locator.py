"""Tests for the line locator — field reference → source line."""

from __future__ import annotations

import textwrap

import pytest

from presence_audit.core.locator import MISSING_KEY_LINE, locate
from presence_audit.errors import JsonAstError

# Line numbers are spelled out in the comments; the first line is 1.
DOC = textwrap.dedent(
    """\
    {
      "$schema": "https://schemas.premid.app/metadata/1.10",
      "service": "Example",
      "version": "1.2.0",
      "description": {
        "en": "English text",
        "xx": "Unknown language"
      },
      "tags": [
        "video",
        "music"
      ],
      "settings": [
        {
          "id": "hideTime",
          "title": "Hide time"
        },
        {
          "id": "buttons",
          "values": [1, 2]
        }
      ],
      "iframe": false
    }
    """
)
#  1 {
#  2 $schema   3 service   4 version   5 description { 6 en  7 xx }
#  9 tags [ 10 video  11 music ]
# 13 settings [ 14 { id, title }  18 { id, values } ]
# 23 iframe


# ── top-level keys ──────────────────────────────────────────────────


class TestTopLevel:
    @pytest.mark.parametrize(
        "key, line",
        [
            ("$schema", 2),
            ("service", 3),
            ("version", 4),
            ("description", 5),
            ("tags", 9),
            ("settings", 13),
            ("iframe", 23),
        ],
    )
    def test_returns_declaration_line(self, key: str, line: int) -> None:
        assert locate(DOC, key) == line

    def test_missing_key_without_selector_returns_sentinel_zero(self) -> None:
        assert locate(DOC, "author") == MISSING_KEY_LINE == 0

    def test_missing_key_with_selector_is_not_found(self) -> None:
        assert locate(DOC, "author", "name") is None

    def test_duplicate_keys_resolve_to_first_in_document_order(self) -> None:
        doc = '{\n  "version": "1.0.0",\n  "other": 1,\n  "version": "2.0.0"\n}\n'
        assert locate(doc, "version") == 2

    def test_null_and_empty_values_still_have_a_line(self) -> None:
        doc = '{\n  "a": null,\n  "b": {},\n  "c": []\n}'
        assert locate(doc, "a") == 2
        assert locate(doc, "b") == 3
        assert locate(doc, "c") == 4

    def test_single_line_document(self) -> None:
        assert locate('{"a": 1, "b": 2}', "b") == 1

    def test_nested_keys_are_not_top_level(self) -> None:
        assert locate(DOC, "en") == 0


# ── nested selectors ────────────────────────────────────────────────


class TestObjectSelector:
    def test_nested_key_line(self) -> None:
        assert locate(DOC, "description", "en") == 6
        assert locate(DOC, "description", "xx") == 7

    def test_absent_nested_key_is_not_found(self) -> None:
        assert locate(DOC, "description", "fr") is None

    def test_integer_selector_on_object_is_not_found(self) -> None:
        assert locate(DOC, "description", 0) is None


class TestLiteralSelector:
    def test_selector_is_ignored_for_literals(self) -> None:
        assert locate(DOC, "version", "anything") == 4

    def test_returns_the_literal_line_not_the_key_line(self) -> None:
        doc = '{\n  "service":\n    "Example"\n}'
        assert locate(doc, "service") == 2
        assert locate(doc, "service", "x") == 3


class TestArraySelector:
    def test_index_selects_element(self) -> None:
        assert locate(DOC, "tags", 0) == 10
        assert locate(DOC, "tags", 1) == 11
        assert locate(DOC, "settings", 1) == 18

    def test_out_of_range_index_is_not_found(self) -> None:
        assert locate(DOC, "tags", 2) is None
        assert locate(DOC, "tags", -1) is None

    def test_literal_value_match(self) -> None:
        assert locate(DOC, "tags", "music") == 11

    def test_literal_value_without_match_is_not_found(self) -> None:
        assert locate(DOC, "tags", "rock") is None

    def test_object_items_match_on_key_not_value(self) -> None:
        assert locate(DOC, "settings", "title") == 14
        assert locate(DOC, "settings", "values") == 18
        assert locate(DOC, "settings", "hideTime") is None

    def test_first_match_wins(self) -> None:
        assert locate(DOC, "settings", "id") == 14
        doc = '{\n  "t": [\n    "a",\n    "b",\n    "a"\n  ]\n}'
        assert locate(doc, "t", "a") == 3

    def test_numeric_looking_string_is_a_value_not_an_index(self) -> None:
        doc = '{\n  "t": [\n    "x",\n    "0"\n  ]\n}'
        assert locate(doc, "t", "0") == 4
        assert locate(doc, "t", 0) == 3

    def test_value_match_is_type_strict(self) -> None:
        doc = '{\n  "t": [\n    1,\n    true\n  ]\n}'
        assert locate(doc, "t", True) == 4
        assert locate(doc, "t", False) is None

    def test_nested_array_items_never_match_a_value(self) -> None:
        doc = '{\n  "t": [\n    ["a"]\n  ]\n}'
        assert locate(doc, "t", "a") is None


# ── purity / preconditions ──────────────────────────────────────────


def test_locate_is_idempotent() -> None:
    first = [locate(DOC, "description", "xx"), locate(DOC, "tags", 1)]
    second = [locate(DOC, "description", "xx"), locate(DOC, "tags", 1)]
    assert first == second == [7, 11]


def test_malformed_json_is_rejected() -> None:
    with pytest.raises(JsonAstError):
        locate('{"a": 1,', "a")


def test_non_object_root_is_rejected() -> None:
    with pytest.raises(JsonAstError):
        locate("[1, 2]", "a")
