"""
Serialization layer: semantic values <-> stored text.

Stored text is a one-letter type tag, a colon, then the payload:

    s:<raw string>     i:<base-10 int>     f:<float repr>
    b:true / b:false   j:<JSON object or array>

Strings are stored raw after the tag, so `"123"` and `123` round-trip to
their own types. Text without a known tag was written by an older writer and
is decoded with the legacy rule: JSON if it parses, else the raw string.
"""

from __future__ import annotations

import json
import math
from typing import Any, Optional

from .core.errors import ValidationError

TAG_STR = "s"
TAG_INT = "i"
TAG_FLOAT = "f"
TAG_BOOL = "b"
TAG_JSON = "j"

_SEP = ":"
_TAGS = frozenset({TAG_STR, TAG_INT, TAG_FLOAT, TAG_BOOL, TAG_JSON})


def serialize(value: Any) -> str:
    """Encode a str, int, float, bool, dict or list as tagged text."""
    if value is None:
        raise ValidationError("Value is not specified")
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return f"{TAG_BOOL}{_SEP}{'true' if value else 'false'}"
    if isinstance(value, int):
        return f"{TAG_INT}{_SEP}{int(value)}"
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"Value is not a finite number: {value!r}")
        return f"{TAG_FLOAT}{_SEP}{value!r}"
    if isinstance(value, str):
        return f"{TAG_STR}{_SEP}{value}"
    if isinstance(value, (dict, list, tuple)):
        try:
            payload = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Value is not JSON-compatible: {exc}") from exc
        return f"{TAG_JSON}{_SEP}{payload}"
    raise ValidationError(f"Unsupported value type: {type(value).__name__}")


def _split(text: str) -> Optional[tuple[str, str]]:
    if len(text) >= 2 and text[1] == _SEP and text[0] in _TAGS:
        return text[0], text[2:]
    return None


def decode_legacy(text: str) -> Any:
    """Untagged text: JSON if it parses, otherwise the text itself."""
    try:
        return json.loads(text)
    except ValueError:
        return text


def deserialize(text: Optional[str]) -> Any:
    """Decode stored text. Never raises; unknown or damaged payloads come back as strings."""
    if text is None:
        return None
    parts = _split(text)
    if parts is None:
        return decode_legacy(text)
    tag, payload = parts
    try:
        if tag == TAG_STR:
            return payload
        if tag == TAG_INT:
            return int(payload, 10)
        if tag == TAG_FLOAT:
            return float(payload)
        if tag == TAG_BOOL:
            return payload == "true"
        return json.loads(payload)
    except ValueError:
        return text


def coerce_delta(delta: Any) -> int:
    """Numeric delta for add/subtract, truncated toward zero."""
    if isinstance(delta, bool) or not isinstance(delta, (int, float)):
        raise ValidationError("Value is not specified")
    if isinstance(delta, float) and not math.isfinite(delta):
        raise ValidationError(f"Value is not a finite number: {delta!r}")
    return int(delta)


def as_integer(text: str) -> Optional[int]:
    """
    Number held by stored text (tagged int/float or legacy number), truncated
    toward zero. None for strings, bools, objects and non-finite floats.
    """
    parts = _split(text)
    if parts is not None:
        if parts[0] not in (TAG_INT, TAG_FLOAT):
            return None
        value = deserialize(text)
    else:
        value = decode_legacy(text)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


def accumulate(text: Optional[str], delta: int) -> Optional[str]:
    """
    Encoded `current + delta`. Absent text counts as 0.
    Returns None when the current value is not numeric.
    """
    if text is None:
        return serialize(int(delta))
    current = as_integer(text)
    if current is None:
        return None
    return serialize(current + int(delta))


__all__ = [
    "accumulate",
    "as_integer",
    "coerce_delta",
    "decode_legacy",
    "deserialize",
    "serialize",
]
