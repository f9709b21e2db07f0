"""Tests for schema inference over JSON-with-comments documents."""

from __future__ import annotations

import pytest

from regolab.core.schema import (
    DataSourceBlock,
    build_data_context,
    build_schema,
    find_data_source_blocks,
    parse_json_schema,
    strip_comments,
)


class TestStripComments:
    def test_line_and_block_comments(self) -> None:
        text = '{\n  // note\n  "a": 1, /* inline */ "b": 2\n}'
        assert strip_comments(text).split() == ["{", '"a":', "1,", '"b":', "2", "}"]

    def test_comment_markers_inside_strings_are_kept(self) -> None:
        text = '{"url": "http://example.com", "glob": "/* x */"}'
        assert strip_comments(text) == text

    def test_escaped_quote_does_not_end_string(self) -> None:
        text = '{"a": "say \\"//hi\\""} // trailing'
        assert strip_comments(text) == '{"a": "say \\"//hi\\""} '

    def test_block_comment_keeps_line_count(self) -> None:
        text = "1 /* a\nb\nc */"
        assert strip_comments(text).count("\n") == 2

    def test_unterminated_block_comment_runs_to_end(self) -> None:
        assert strip_comments("1 /* open") == "1 "


class TestBuildSchema:
    def test_scalars(self) -> None:
        assert build_schema("x").type == "string"
        assert build_schema(1.5).type == "number"
        assert build_schema(True).type == "boolean"
        assert build_schema(None).type == "null"
        assert build_schema(3).example == 3

    def test_bool_is_not_a_number(self) -> None:
        assert build_schema(False).type == "boolean"

    def test_object_example_keeps_first_five_keys(self) -> None:
        node = build_schema({k: i for i, k in enumerate("abcdefg")})
        assert node.type == "object"
        assert node.example == ["a", "b", "c", "d", "e"]
        assert node.children is not None
        assert list(node.children) == list("abcdefg")

    def test_array_item_type_from_first_element(self) -> None:
        node = build_schema([1, "two", 3, 4])
        assert node.array_item_type is not None
        assert node.array_item_type.type == "number"
        assert node.example == [1, "two", 3]
        assert node.describe() == "array<number>"

    def test_empty_array_has_no_item_type(self) -> None:
        node = build_schema([])
        assert node.array_item_type is None
        assert node.describe() == "array"

    def test_nested_arrays_describe_recursively(self) -> None:
        assert build_schema([[["x"]]]).describe() == "array<array<array<string>>>"

    def test_source_propagates(self) -> None:
        node = build_schema({"a": [{"b": 1}]}, "Input")
        assert node.children is not None
        item = node.children["a"].array_item_type
        assert item is not None and item.children is not None
        assert item.children["b"].source == "Input"


class TestParseJsonSchema:
    def test_parses_jsonc(self, sample_input: str) -> None:
        node = parse_json_schema(sample_input, "Input")
        assert node is not None
        assert node.children is not None
        assert set(node.children) == {"user", "items"}
        assert node.source == "Input"

    @pytest.mark.parametrize("text", ["", "{", '{"a": }', "{'a': 1}", "[1, 2,"])
    def test_malformed_returns_none(self, text: str) -> None:
        assert parse_json_schema(text) is None

    def test_data_source_blocks_set_provenance(self, sample_data: str) -> None:
        node = parse_json_schema(sample_data, "Data")
        assert node is not None and node.children is not None
        roles = node.children["roles"]
        assert roles.source == "roles"
        assert roles.children is not None
        assert roles.children["admin"].source == "roles"
        assert node.children["limits"].source == "Data"

    def test_nested_keys_in_a_block_do_not_relabel_top_level_keys(self) -> None:
        text = """{
  "roles": {
    // ---- extra ----
    "roles": 1
    // ----------
  },
  "limits": {}
}"""
        node = parse_json_schema(text, "Data")
        assert node is not None and node.children is not None
        assert node.children["roles"].source == "Data"
        assert node.children["limits"].source == "Data"

    def test_block_keys_found_by_nesting_not_indentation(self) -> None:
        text = """{"a": 1,
// ---- users ----
    "users": {"admin": {"name": "x"}},
// ----------
"b": 2}"""
        node = parse_json_schema(text, "Data")
        assert node is not None and node.children is not None
        assert node.children["users"].source == "users"
        assert node.children["a"].source == "Data"
        assert node.children["b"].source == "Data"

    def test_build_data_context(self, sample_input: str) -> None:
        context = build_data_context(sample_input, "{not json")
        assert context.input is not None
        assert context.data is None
        assert build_data_context(None, None).input is None


class TestDataSourceBlocks:
    def test_finds_named_blocks(self) -> None:
        text = "{\n// ---- users ----\n\"users\": [],\n// ----------\n// ---- groups ----\n\"groups\": {}\n// ----------\n}"
        assert find_data_source_blocks(text) == [
            DataSourceBlock(name="users", start_line=2, end_line=4),
            DataSourceBlock(name="groups", start_line=5, end_line=7),
        ]

    def test_unclosed_block_is_ignored(self) -> None:
        assert find_data_source_blocks("// ---- open ----\n{}") == []
