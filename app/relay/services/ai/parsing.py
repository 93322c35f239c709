"""
Coercion of free-text model answers into assignment records.

The model is asked for a bare JSON array but frequently wraps it in a
code fence, surrounds it with prose, or emits near-JSON. parse_model_response
never raises for bad input; it returns ParseOk or ParseErr so callers decide
how a malformed answer is surfaced.
"""

import ast
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from ...models import Record

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")
_STRING = r'"(?:[^"\\]|\\.)*"'
# String literals are matched first and left untouched
_TRAILING_COMMA = re.compile(rf"({_STRING})|,\s*([\]}}])")
_BARE_KEY = re.compile(rf"({_STRING})|([{{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")
_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})

RAW_SNIPPET_LENGTH = 500


@dataclass(frozen=True)
class ParseOk:
    """Model text parsed into records."""

    records: list[Record] = field(default_factory=list)


@dataclass(frozen=True)
class ParseErr:
    """Model text could not be parsed; raw is kept for diagnostics."""

    reason: str
    raw: str

    @property
    def snippet(self) -> str:
        return self.raw[:RAW_SNIPPET_LENGTH]


ParseOutcome = ParseOk | ParseErr


def strip_code_fence(text: str) -> str:
    """Remove one leading fence marker (with optional language tag) and one trailing fence."""
    stripped = _LEADING_FENCE.sub("", text, count=1)
    return _TRAILING_FENCE.sub("", stripped, count=1).strip()


def slice_array(text: str) -> str | None:
    """Return the substring from the first '[' to the last ']', or None."""
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def _drop_trailing_commas(text: str) -> str:
    # Nested trailing commas may need more than one pass
    previous = None
    while previous != text:
        previous = text
        text = _TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(2), text)
    return text


def _normalize_quotes(text: str) -> str:
    return text.translate(_SMART_QUOTES)


def _quote_bare_keys(text: str) -> str:
    def quote(match: re.Match) -> str:
        if match.group(1):
            return match.group(1)
        return f'{match.group(2)}"{match.group(3)}"{match.group(4)}'

    return _BARE_KEY.sub(quote, text)


_REPAIR_STEPS = (_drop_trailing_commas, _normalize_quotes, _quote_bare_keys)


def _repair_stages(candidate: str):
    """Yield the candidate after each cumulative repair step."""
    repaired = candidate
    for step in _REPAIR_STEPS:
        repaired = step(repaired)
        yield repaired


def repair_json(candidate: str) -> str:
    """
    Best-effort structural repair of near-JSON.

    Handles trailing commas, typographic quotes and bare object keys.
    Text inside double-quoted strings is never rewritten. Single-quoted
    strings are left alone; _loads_lenient falls back to a Python-literal
    parse for those.
    """
    for step in _REPAIR_STEPS:
        candidate = step(candidate)
    return candidate


def _loads_lenient(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    # Stop at the first repair that yields valid JSON
    repaired = candidate
    for repaired in _repair_stages(candidate):
        try:
            return json.loads(repaired)
        except json.JSONDecodeError:
            continue

    # Python-style literals: single quotes, True/False/None
    try:
        return ast.literal_eval(repaired)
    except (ValueError, SyntaxError, MemoryError, RecursionError) as e:
        raise ValueError(f"could not repair JSON: {e}") from e


def _coerce_field(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        # Large integers survive; floats are only accepted when integral
        if isinstance(value, float) and not value.is_integer():
            return None
        return str(int(value))
    if isinstance(value, str):
        return value
    return None


def _to_records(items: Any) -> tuple[list[Record], str | None]:
    if not isinstance(items, list):
        return [], f"expected a JSON array, got {type(items).__name__}"

    records: list[Record] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            return [], f"element {index} is not an object"
        imei = _coerce_field(item.get("imei"))
        name = _coerce_field(item.get("name"))
        if imei is None or name is None:
            return [], f"element {index} lacks string 'imei' and 'name' fields"
        if not imei.strip() or not name.strip():
            return [], f"element {index} has an empty 'imei' or 'name'"
        records.append(Record(imei=imei, name=name))
    return records, None


def parse_model_response(text: str | None) -> ParseOutcome:
    """
    Parse a model answer into records.

    Args:
        text: Raw text returned by the generative model.

    Returns:
        ParseOk with records in the order the model listed them, or
        ParseErr with a reason and the untouched raw text.
    """
    raw = text or ""
    if not raw.strip():
        return ParseErr(reason="empty model response", raw=raw)

    candidate = slice_array(strip_code_fence(raw))
    if candidate is None:
        return ParseErr(reason="no JSON array found in model response", raw=raw)

    try:
        parsed = _loads_lenient(candidate)
    except ValueError as e:
        return ParseErr(reason=f"invalid JSON in model response: {e}", raw=raw)

    records, problem = _to_records(parsed)
    if problem:
        return ParseErr(reason=problem, raw=raw)

    logger.debug("Parsed %d record(s) from model response", len(records))
    return ParseOk(records=records)
