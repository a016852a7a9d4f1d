"""Unit tests for JSON extraction from model output."""

import json

import pytest

from conductor.decomposition.parser import extract_json_object, match_brace


class TestMatchBrace:
    """Tests for match_brace."""

    def test_flat_object(self):
        """Test a simple object closes at its last brace."""
        text = '{"a": 1} tail'
        assert match_brace(text, 0) == 7

    def test_nested_object(self):
        """Test nested braces are balanced."""
        text = '{"a": {"b": {}}}'
        assert match_brace(text, 0) == len(text) - 1

    def test_braces_inside_strings_ignored(self):
        """Test braces inside string values do not count."""
        text = '{"a": "}{"}'
        assert match_brace(text, 0) == len(text) - 1

    def test_escaped_quote_inside_string(self):
        """Test an escaped quote does not end the string."""
        text = '{"a": "say \\"}\\" now"}'
        assert match_brace(text, 0) == len(text) - 1

    def test_unclosed_object(self):
        """Test an object that never closes."""
        assert match_brace('{"a": {"b": 1}', 0) is None


class TestExtractJsonObject:
    """Tests for extract_json_object."""

    def test_bare_object(self):
        """Test text that is only JSON."""
        assert extract_json_object('{"subTasks": []}') == {"subTasks": []}

    def test_object_wrapped_in_prose(self):
        """Test leading and trailing prose are ignored."""
        text = 'Here is the plan:\n{"subTasks": [{"id": "a"}]}\nHope this helps!'
        assert extract_json_object(text) == {"subTasks": [{"id": "a"}]}

    def test_object_in_markdown_fence(self, sample_decomposition):
        """Test a fenced JSON block is extracted."""
        parsed = extract_json_object(sample_decomposition)

        assert [t["id"] for t in parsed["subTasks"]] == ["investigate", "build", "verify", "audit"]

    def test_brace_in_string_value(self):
        """Test the example from the docstring."""
        assert extract_json_object('Here you go: {"a": {"b": "}"}} thanks') == {"a": {"b": "}"}}

    def test_trailing_brace_in_prose(self):
        """Test a stray closing brace after the object does not extend it."""
        assert extract_json_object('{"a": 1} and then }') == {"a": 1}

    def test_skips_invalid_candidate(self):
        """Test an invalid braced block before the JSON is skipped."""
        text = 'Use {placeholder} syntax. Result: {"ok": true}'
        assert extract_json_object(text) == {"ok": True}

    def test_first_valid_object_wins(self):
        """Test the first decodable object is returned."""
        assert extract_json_object('{"first": 1} {"second": 2}') == {"first": 1}

    def test_no_json(self):
        """Test text without braces."""
        with pytest.raises(ValueError, match="No JSON found"):
            extract_json_object("I could not decompose this task.")

    def test_unbalanced_json(self):
        """Test an object that is cut off."""
        with pytest.raises(ValueError, match="No JSON found"):
            extract_json_object('{"subTasks": [')

    def test_invalid_json_raises_decode_error(self):
        """Test balanced but undecodable candidates surface the decode error."""
        with pytest.raises(json.JSONDecodeError):
            extract_json_object("{not: json}")
