"""Tests for shared LLM response parsing utilities."""

from forager.common.llm_utils import Malformed, Parsed, parse_page_numbers


class TestParsePageNumbers:
    def test_plain_array(self):
        assert parse_page_numbers("[4, 1, 7]") == Parsed([4, 1, 7])

    def test_fenced_array(self):
        assert parse_page_numbers("```json\n[2, 3]\n```") == Parsed([2, 3])

    def test_array_embedded_in_prose(self):
        result = parse_page_numbers("The most relevant pages are [5, 9] based on the summaries.")
        assert result == Parsed([5, 9])

    def test_drops_duplicates_keeping_order(self):
        assert parse_page_numbers("[3, 1, 3, 2, 1]") == Parsed([3, 1, 2])

    def test_coerces_integer_like_entries(self):
        assert parse_page_numbers('[1, "2", 3.0, 4.5, "x", true, null]') == Parsed([1, 2, 3])

    def test_empty_array_parses(self):
        assert parse_page_numbers("[]") == Parsed([])

    def test_prose_is_malformed(self):
        result = parse_page_numbers("I think pages one and two")
        assert isinstance(result, Malformed)
        assert result.raw_text == "I think pages one and two"

    def test_object_is_malformed(self):
        result = parse_page_numbers('{"pages": [1, 2]}')
        assert isinstance(result, Malformed)
        assert "array" in result.reason

    def test_broken_array_is_malformed(self):
        assert isinstance(parse_page_numbers("[1, 2"), Malformed)

    def test_empty_is_malformed(self):
        assert isinstance(parse_page_numbers(""), Malformed)
        assert isinstance(parse_page_numbers("   "), Malformed)

    def test_first_of_several_arrays(self):
        assert parse_page_numbers("Primary: [4, 5]. Secondary: [9]") == Parsed([4, 5])

    def test_skips_bracketed_prose_before_array(self):
        assert parse_page_numbers("Pages [see below]: [2, 7]") == Parsed([2, 7])
