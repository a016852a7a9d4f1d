"""Response parser - extracts JSON objects from free-form model output.

Models often wrap JSON in prose or markdown fences. Instead of a greedy
regex, candidates are located with a bracket-balance scan that understands
JSON strings and escapes, so braces inside string values never truncate or
extend a candidate.
"""

import json
from typing import Any


def match_brace(text: str, start: int) -> int | None:
    """
    Find the index of the brace closing the object opened at ``start``.

    Args:
        text: Text to scan.
        start: Index of an opening ``{``.

    Returns:
        Index of the matching ``}``, or None if the object never closes.
    """
    depth = 0
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
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index

    return None


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Extract the first syntactically valid JSON object embedded in text.

    Args:
        text: Free text that may contain a JSON object.

    Returns:
        The decoded object.

    Raises:
        json.JSONDecodeError: If brace-delimited candidates exist but none decode.
        ValueError: If the text contains no balanced brace-delimited block.

    Example:
        >>> extract_json_object('Here you go: {"a": {"b": "}"}} thanks')
        {'a': {'b': '}'}}
    """
    decode_error: json.JSONDecodeError | None = None
    start = text.find("{")

    while start != -1:
        end = match_brace(text, start)
        if end is not None:
            try:
                value = json.loads(text[start : end + 1])
            except json.JSONDecodeError as e:
                decode_error = decode_error or e
            else:
                return value
        start = text.find("{", start + 1)

    if decode_error is not None:
        raise decode_error
    raise ValueError("No JSON found in response")
