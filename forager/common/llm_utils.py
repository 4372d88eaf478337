"""Shared utilities for parsing LLM responses.

Model output is untrusted text. Parsers here never raise on bad input; they
return either ``Parsed(value)`` or ``Malformed(raw_text, reason)`` and each
caller decides its own fallback.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Union


@dataclass(frozen=True)
class Parsed:
    """Successfully decoded LLM output"""
    value: Any


@dataclass(frozen=True)
class Malformed:
    """LLM output that could not be decoded into the expected shape"""
    raw_text: str
    reason: str = ""


ParseResult = Union[Parsed, Malformed]


def _strip_code_fences(text: str) -> str:
    if text.startswith("```"):
        lines = text.split("\n")
        lines = [l for l in lines if not l.strip().startswith("```")]
        text = "\n".join(lines)
    return text


def _decode(raw: str, open_char: str) -> ParseResult:
    """Direct decode, then the first value that starts at an open_char and decodes."""
    if not raw or not raw.strip():
        return Malformed(raw or "", "empty response")

    text = _strip_code_fences(raw.strip())

    try:
        return Parsed(json.loads(text))
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    start = text.find(open_char)
    while start >= 0:
        try:
            value, _ = decoder.raw_decode(text, start)
            return Parsed(value)
        except json.JSONDecodeError:
            start = text.find(open_char, start + 1)

    return Malformed(raw, "no decodable JSON found")


def _as_page_number(item: Any):
    if isinstance(item, bool):
        return None
    if isinstance(item, int):
        return item
    if isinstance(item, float) and item.is_integer():
        return int(item)
    if isinstance(item, str) and item.strip().isdigit():
        return int(item.strip())
    return None


def parse_page_numbers(raw: str) -> ParseResult:
    """Parse a JSON array of page numbers from an LLM response.

    Tries in order:
    1. Strip markdown code fences, then json.loads
    2. Decode the first balanced array starting at some '['
    3. Malformed

    Integer-like entries are kept in order without duplicates; other entries
    are dropped. A decoded value that is not a list is Malformed.
    """
    result = _decode(raw, "[")
    if isinstance(result, Malformed):
        return result

    if not isinstance(result.value, list):
        return Malformed(raw, f"expected a JSON array, got {type(result.value).__name__}")

    numbers: List[int] = []
    for item in result.value:
        number = _as_page_number(item)
        if number is not None and number not in numbers:
            numbers.append(number)
    return Parsed(numbers)
