"""
Balanced-bracket JSON scanner.

Locates JSON objects or arrays embedded in free text (model chatter
around a payload, markdown fences, trailing remarks). String literals
and escaped quotes are honoured so braces inside labels never end a
span early. Shared by every adapter and the response validator.

Dependencies: json (stdlib)
System role: Repair step for model output that is not pure JSON
"""

import json
from typing import Any, Iterator

_CLOSERS = {"{": "}", "[": "]"}


def find_balanced_end(text: str, start: int) -> int | None:
    """
    Find the index of the bracket closing the one at `start`.

    Args:
        text: Text to scan
        start: Index of an opening '{' or '['

    Returns:
        int | None: Index of the matching closer, or None when the span is
        truncated or its brackets are mismatched
    """
    if start >= len(text) or text[start] not in _CLOSERS:
        return None

    expected: list[str] = []
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            expected.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if not expected or expected.pop() != char:
                return None
            if not expected:
                return index
    return None


def iter_balanced_spans(text: str, openers: str = "{[") -> Iterator[str]:
    """
    Yield every balanced span starting with one of `openers`, left to right.

    Nested spans are yielded too (after their parent), so a caller whose
    outer candidate fails to parse can still recover an inner object.
    """
    for index, char in enumerate(text):
        if char not in openers:
            continue
        end = find_balanced_end(text, index)
        if end is not None:
            yield text[index:end + 1]


def extract_json(text: str, openers: str = "{[") -> Any | None:
    """
    Parse the first balanced span in `text` that is valid JSON.

    Args:
        text: Free text possibly containing a JSON payload
        openers: Which span kinds to consider ('{', '[' or both)

    Returns:
        Any | None: Decoded value, or None when no span parses
    """
    for span in iter_balanced_spans(text, openers):
        try:
            return json.loads(span)
        except json.JSONDecodeError:
            continue
    return None
