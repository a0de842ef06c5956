"""Tolerant JSON extraction from LLM responses.

Models wrap their JSON in prose or markdown fences, use single quotes, forget
to escape quotes inside long descriptions, and sometimes double-encode nested
arrays as strings. This module handles exactly those cases and nothing more.
"""

import json
import re
from typing import Any, Callable

import structlog

from contract_intel.exceptions import ParseError, ParseErrorKind

logger = structlog.get_logger(__name__)

# Keys whose values are free prose and may contain unescaped double quotes
FREE_TEXT_FIELDS = (
    "description",
    "recommendation",
    "issue",
    "content",
    "overallAssessment",
    "analysis",
    "note",
)

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)

# Double-quoted strings are matched first and left alone; 'quoted' tokens outside
# them that are not part of a word are captured, e.g. {'a': 'b'} but not don't
_SINGLE_QUOTED_RE = re.compile(
    r'"(?:[^"\\\n]|\\.)*"'
    r"|(?<![A-Za-z0-9_])'([^'\n]*)'(?![A-Za-z0-9_])"
)

_FREE_TEXT_VALUE_RE = re.compile(
    r'("(?:' + "|".join(FREE_TEXT_FIELDS) + r')"\s*:\s*")'
    r"(.*?)"
    r'("\s*(?:,\s*"[A-Za-z_][A-Za-z0-9_]*"\s*:|\}|\]))',
    re.DOTALL,
)

_UNESCAPED_QUOTE_RE = re.compile(r'(?<!\\)"')
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


def strip_fences(text: str) -> str:
    """Remove markdown code fence markers."""
    return _FENCE_RE.sub("", text).strip()


def extract_object_span(text: str) -> str:
    """Return the text between the first '{' and the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ParseError(ParseErrorKind.NO_STRUCTURE_FOUND)
    return text[start:end + 1]


def _to_double_quotes(text: str) -> str:
    def replace(match: re.Match) -> str:
        if match.group(1) is None:
            return match.group(0)
        inner = _UNESCAPED_QUOTE_RE.sub(r'\\"', match.group(1))
        return f'"{inner}"'

    return _SINGLE_QUOTED_RE.sub(replace, text)


def _escape_free_text_quotes(text: str) -> str:
    def replace(match: re.Match) -> str:
        prefix, value, suffix = match.groups()
        return prefix + _UNESCAPED_QUOTE_RE.sub(r'\\"', value) + suffix

    return _FREE_TEXT_VALUE_RE.sub(replace, text)


def _drop_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


# Applied in order and cumulatively; each step is followed by a strict parse
REPAIRS: list[tuple[str, Callable[[str], str]]] = [
    ("single_quotes", _to_double_quotes),
    ("free_text_quotes", _escape_free_text_quotes),
    ("trailing_commas", _drop_trailing_commas),
]


def _looks_serialized(value: str) -> bool:
    stripped = value.strip()
    if len(stripped) < 2:
        return False
    return (stripped[0], stripped[-1]) in (("{", "}"), ("[", "]"))


def _decode_nested(value: str) -> Any:
    stripped = value.strip()
    for candidate in (stripped, _to_double_quotes(stripped)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return value


def unwrap_nested(value: Any) -> Any:
    """Recursively re-parse string values that hold serialized JSON."""
    if isinstance(value, dict):
        return {key: unwrap_nested(item) for key, item in value.items()}
    if isinstance(value, list):
        return [unwrap_nested(item) for item in value]
    if isinstance(value, str) and _looks_serialized(value):
        decoded = _decode_nested(value)
        if decoded is not value:
            return unwrap_nested(decoded)
    return value


def parse_structured(raw_text: str) -> dict[str, Any]:
    """
    Parse the JSON object embedded in an LLM response.

    Raises ParseError(NO_STRUCTURE_FOUND) when the text holds no object and
    ParseError(UNPARSEABLE) when every repair fails. No business validation
    happens here.
    """
    span = extract_object_span(strip_fences(raw_text or ""))

    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as first_error:
        last_error: Exception = first_error
        parsed = None
        repaired = span
        for name, repair in REPAIRS:
            repaired = repair(repaired)
            try:
                parsed = json.loads(repaired)
            except json.JSONDecodeError as e:
                last_error = e
                continue
            logger.debug("json_repaired", repair=name)
            break

        if parsed is None:
            logger.debug(
                "json_unparseable",
                error=str(last_error),
                preview=raw_text[:500],
            )
            raise ParseError(ParseErrorKind.UNPARSEABLE, last_error)

    if not isinstance(parsed, dict):
        raise ParseError(
            ParseErrorKind.UNPARSEABLE,
            ValueError(f"expected an object, got {type(parsed).__name__}"),
        )

    return unwrap_nested(parsed)
