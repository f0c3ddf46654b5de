"""Tests for the JSON-with-comments patcher."""

import pytest

from zed_provider_manager import jsonc
from zed_provider_manager.errors import InvalidPathError, MalformedDocumentError
from zed_provider_manager.jsonc import Edit, FormattingOptions, apply_edits, remove_value, set_value

from .helpers import SAMPLE_SETTINGS

PROVIDER = {"api_url": "https://api.example.com/v1", "available_models": []}


class TestParse:
    """Tests for reading documents."""

    def test_comments_and_trailing_commas(self) -> None:
        text = '// head\n{\n  "a": 1, /* inline */\n  "b": [1, 2,],\n}\n'
        assert jsonc.parse(text) == {"a": 1, "b": [1, 2]}

    def test_empty_document(self) -> None:
        assert jsonc.parse("") is None
        assert jsonc.parse("  // only a comment\n") is None

    def test_byte_order_mark(self) -> None:
        assert jsonc.parse("\ufeff" + '{"a": true}') == {"a": True}

    def test_duplicate_keys_last_wins(self) -> None:
        assert jsonc.parse('{"a": 1, "a": 2}') == {"a": 2}

    def test_get_value(self) -> None:
        assert jsonc.get_value(SAMPLE_SETTINGS, ["language_models", "openai_compatible", "Ollama", "api_url"]) == (
            "http://localhost:11434/v1"
        )
        assert jsonc.get_value(SAMPLE_SETTINGS, ["missing", "path"], default="x") == "x"

    @pytest.mark.parametrize(
        "text, line, column",
        [('{"a": }', 1, 7), ('{\n  "a": 1\n  "b": 2\n}', 3, 3), ('{"a": 1} x', 1, 10), ("/* open", 1, 1)],
    )
    def test_malformed_reports_position(self, text: str, line: int, column: int) -> None:
        with pytest.raises(MalformedDocumentError) as excinfo:
            jsonc.parse(text)
        assert excinfo.value.line == line
        assert excinfo.value.column == column


class TestApplyEdits:
    """Tests for applying offset edits."""

    def test_applies_in_reverse_order(self) -> None:
        assert apply_edits("abcdef", [Edit(1, 1, "X"), Edit(4, 2, "YZ")]) == "aXcdYZ"

    def test_equal_offsets_keep_order(self) -> None:
        assert apply_edits("ac", [Edit(1, 0, "b"), Edit(1, 0, "B")]) == "abBc"

    def test_overlap_rejected(self) -> None:
        with pytest.raises(ValueError):
            apply_edits("abcdef", [Edit(1, 3, "X"), Edit(2, 1, "Y")])


class TestFormattingOptions:
    """Tests for formatting detection."""

    def test_detects_indent_and_eol(self) -> None:
        assert FormattingOptions.detect('{\r\n    "a": 1\r\n}') == FormattingOptions(indent="    ", eol="\r\n")
        assert FormattingOptions.detect('{\n\t"a": 1\n}').indent == "\t"

    def test_ignores_indented_comments(self) -> None:
        assert FormattingOptions.detect('{\n      // note\n  "a": 1\n}').indent == "  "

    def test_default(self) -> None:
        assert FormattingOptions.detect('{"a": 1}') == FormattingOptions()


class TestSetValue:
    """Tests for setting values at a path."""

    def test_creates_missing_containers(self) -> None:
        text = set_value("", ["language_models", "openai_compatible", "Example"], PROVIDER)

        assert text == (
            "{\n"
            '  "language_models": {\n'
            '    "openai_compatible": {\n'
            '      "Example": {\n'
            '        "api_url": "https://api.example.com/v1",\n'
            '        "available_models": []\n'
            "      }\n"
            "    }\n"
            "  }\n"
            "}\n"
        )

    def test_idempotent(self) -> None:
        path = ["language_models", "openai_compatible", "Example"]
        once = set_value(SAMPLE_SETTINGS, path, PROVIDER)
        assert set_value(once, path, PROVIDER) == once
        assert jsonc.parse(once)["language_models"]["openai_compatible"]["Example"] == PROVIDER

    def test_unrelated_text_is_untouched(self) -> None:
        """Comments and other providers survive byte-for-byte."""
        text = set_value(SAMPLE_SETTINGS, ["language_models", "openai_compatible", "Ollama", "api_url"], "http://h:1/v1")

        assert text == SAMPLE_SETTINGS.replace("http://localhost:11434/v1", "http://h:1/v1")

    def test_appends_new_property_after_last(self) -> None:
        text = set_value(SAMPLE_SETTINGS, ["language_models", "openai_compatible", "Example"], {"api_url": "u"})

        expected = SAMPLE_SETTINGS.replace(
            '        "available_models": []\n      }\n',
            '        "available_models": []\n      },\n      "Example": {\n        "api_url": "u"\n      }\n',
        )
        assert text == expected

    def test_keeps_trailing_comma_convention(self) -> None:
        text = '{\n  "a": 1,\n  "b": 2,\n}\n'
        assert set_value(text, ["c"], 3) == '{\n  "a": 1,\n  "b": 2,\n  "c": 3,\n}\n'

    def test_inserts_after_trailing_line_comment(self) -> None:
        text = '{\n  "a": 1 // one\n}'
        assert set_value(text, ["b"], 2) == '{\n  "a": 1, // one\n  "b": 2\n}'

    def test_inline_container_stays_inline(self) -> None:
        assert set_value('{"a": {"x": 1}}', ["a", "y"], [1, 2]) == '{"a": {"x": 1, "y": [1, 2]}}'

    def test_crlf_preserved(self) -> None:
        text = '{\r\n  "a": 1\r\n}\r\n'
        assert set_value(text, ["b"], 2) == '{\r\n  "a": 1,\r\n  "b": 2\r\n}\r\n'

    def test_array_index_and_append(self) -> None:
        assert set_value('{"arr": [1, 2]}', ["arr", 0], 9) == '{"arr": [9, 2]}'
        assert set_value('{"arr": [1, 2]}', ["arr", -1], 3) == '{"arr": [1, 2, 3]}'
        assert set_value('{"arr": [1, 2]}', ["arr", 2], 3) == '{"arr": [1, 2, 3]}'

    def test_root_replacement(self) -> None:
        assert set_value("// c\n[1]\n", [], {"a": 1}) == '// c\n{\n  "a": 1\n}\n'

    @pytest.mark.parametrize(
        "text, path",
        [
            ('{"a": "text"}', ["a", "b"]),
            ('{"a": [1]}', ["a", "key"]),
            ('{"a": {"b": 1}}', ["a", 0]),
            ('{"arr": [1, 2]}', ["arr", 5]),
            ('{"arr": [[1]]}', ["arr", -1, 0]),
        ],
    )
    def test_invalid_path(self, text: str, path: list) -> None:
        with pytest.raises(InvalidPathError) as excinfo:
            set_value(text, path, 1)
        assert excinfo.value.path == path

    def test_malformed_document(self) -> None:
        with pytest.raises(MalformedDocumentError):
            set_value('{"a": }', ["b"], 1)


class TestRemoveValue:
    """Tests for removing values at a path."""

    def test_remove_last_provider_keeps_neighbor_comment(self) -> None:
        text = remove_value(SAMPLE_SETTINGS, ["language_models", "openai_compatible", "Ollama"])

        expected = SAMPLE_SETTINGS.replace(
            '      },\n      "Ollama": {\n        "api_url": "http://localhost:11434/v1",\n'
            '        "available_models": []\n      }\n',
            "      }\n",
        )
        assert text == expected
        assert "// my router" in text
        assert "// keep me" in text

    def test_remove_first_entry(self) -> None:
        assert remove_value('{\n  "a": 1,\n  "b": 2\n}', ["a"]) == '{\n  "b": 2\n}'

    def test_remove_with_trailing_commas(self) -> None:
        assert remove_value('{\n  "a": 1,\n  "b": 2,\n}\n', ["b"]) == '{\n  "a": 1,\n}\n'

    def test_removes_own_line_comment(self) -> None:
        assert remove_value('{\n  "a": 1, // drop\n  "b": 2\n}', ["a"]) == '{\n  "b": 2\n}'

    def test_remove_only_entry_collapses(self) -> None:
        assert remove_value('{\n  "a": 1\n}', ["a"]) == "{}"

    def test_inline(self) -> None:
        assert remove_value('{"a": 1, "b": 2, "c": 3}', ["b"]) == '{"a": 1, "c": 3}'
        assert remove_value('{"a": 1, "b": 2}', ["b"]) == '{"a": 1}'
        assert remove_value("[1, 2, 3]", [2]) == "[1, 2]"

    def test_removes_duplicate_keys(self) -> None:
        assert remove_value('{"a": 1, "b": 2, "a": 3}', ["a"]) == '{"b": 2}'

    def test_missing_is_noop(self) -> None:
        assert remove_value(SAMPLE_SETTINGS, ["language_models", "openai_compatible", "Nope"]) == SAMPLE_SETTINGS
        assert remove_value(SAMPLE_SETTINGS, ["nothing", "here"]) == SAMPLE_SETTINGS

    def test_root_cannot_be_removed(self) -> None:
        with pytest.raises(InvalidPathError):
            remove_value('{"a": 1}', [])

    def test_set_then_remove_restores_document(self) -> None:
        path = ["language_models", "openai_compatible", "Example"]
        assert remove_value(set_value(SAMPLE_SETTINGS, path, PROVIDER), path) == SAMPLE_SETTINGS
