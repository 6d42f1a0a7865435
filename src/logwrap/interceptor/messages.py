"""Message text and JSON event rendering for intercepted calls."""

from __future__ import annotations

import json
import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

PLACEHOLDER = " %s"
RESULT_MESSAGE = "return %s"
FAILURE_MESSAGE = "failed"
JSON_RESERVED_KEYS = ("event", "timestamp")

_CONVERSION = re.compile(r"%(?:%|[-#0+]*\d*(?:\.\d+)?[diouxXeEfFgGcrsa])|%")


def method_name_to_words(name: str) -> str:
    """Split a method name into lowercase words.

    ``doTheThing`` and ``do_the_thing`` both become ``"do the thing"``.
    Every uppercase letter starts a word, so ``getURL`` becomes ``"get u r l"``.
    """
    out = []
    for char in name:
        if char.isupper():
            out.append(" ")
            out.append(char.lower())
        elif char == "_":
            out.append(" ")
        else:
            out.append(char)
    return " ".join("".join(out).split())


def auto_message(method_name: str, placeholder_count: int) -> str:
    """Message derived from the method name with one placeholder per logged parameter."""
    return method_name_to_words(method_name) + PLACEHOLDER * placeholder_count


def prepare_template(template: str) -> Tuple[str, int]:
    """
    Make a message template safe for stdlib %-formatting.

    Positional conversions (``%s``, ``%-5d``, ``%.2f`` ...) and ``%%`` are kept;
    any other ``%`` becomes literal. Returns the template and the number of
    arguments it consumes.
    """
    count = 0

    def keep_or_escape(match: re.Match) -> str:
        nonlocal count
        text = match.group()
        if text == "%":
            return "%%"
        if text != "%%":
            count += 1
        return text

    return _CONVERSION.sub(keep_or_escape, template), count


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def render_json_event(
    event: str,
    parameters: Iterable[Tuple[str, Any]],
    *,
    timestamp: Optional[datetime] = None,
) -> str:
    """
    Render a call as a single-line JSON object.

    ``event`` and ``timestamp`` come first; each parameter follows under its
    own name, so parameters must not use the names in ``JSON_RESERVED_KEYS``.
    Strings are escaped by ``json.dumps`` so parsing the output
    yields the original values.
    """
    payload: Dict[str, Any] = {
        "event": event,
        "timestamp": (timestamp or datetime.now()).isoformat(),
    }
    for name, value in parameters:
        payload[name] = value
    return json.dumps(payload, default=_json_default, ensure_ascii=False)
