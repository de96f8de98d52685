"""Strict decoding of JSON objects returned by a model."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

from ..errors import ParseError

_FENCE = re.compile(r"\A```[a-zA-Z]*[ \t]*\n(?P<body>.*)\n[ \t]*```\Z", re.DOTALL)


def strip_fence(text: str) -> str:
    """Remove one Markdown code fence enclosing the whole text, if present."""

    text = text.strip()
    match = _FENCE.match(text)
    return match.group("body") if match else text


def parse_json_object(text: str) -> Dict[str, Any]:
    """Decode ``text`` as a single JSON object.

    Only a fence around the entire completion is tolerated; prose before or
    after the object is a parse error.
    """

    if not text or not text.strip():
        raise ParseError("Model returned an empty completion")
    body = strip_fence(text)
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ParseError(
            "Model output is not valid JSON", [f"{e.msg} at line {e.lineno} column {e.colno}"]
        ) from e
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}")
    return data


__all__ = ["parse_json_object", "strip_fence"]
