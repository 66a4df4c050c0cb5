"""
Canonical serialization: a deterministic text form of JSON-like values.

Two structurally equal values always produce the same text, regardless of the insertion order of object keys.
The text is the exact input to SHA-256 for chain hashes and board hashes, and the plaintext of the encrypted log.
"""

import hashlib
import json
import math
from enum import Enum
from typing import Any, Optional

from src.core.exceptions import CanonicalizationError


def serialize(value: Any, exclude: Optional[str] = None) -> str:
    """
    Canonical text of `value`.

    ----
    * null / booleans / integers / strings: JSON literal text (strings JSON-escaped, non-ASCII kept as is)
    * floats: ECMAScript Number::toString text (`2.0` prints as `2`, `1e21` as `1e+21`)
    * lists and tuples: elements in their original order, comma-joined, inside brackets
    * dicts: keys sorted ascending, `"key":value` pairs comma-joined, inside braces

    `exclude` names a key that is left out of the top-level object (e.g. the entry's own hash).
    """
    if exclude is not None:
        if not isinstance(value, dict):
            raise CanonicalizationError(
                f"Can only exclude a field from an object, got {type(value).__name__}."
            )
        value = {key: item for key, item in value.items() if key != exclude}
    return _serialize(value)


def sha256_hex(value: Any, exclude: Optional[str] = None) -> str:
    """Lowercase hex SHA-256 of the canonical text (UTF-8 encoded)."""
    canonical = serialize(value, exclude=exclude)
    try:
        encoded = canonical.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise CanonicalizationError("Value contains unpaired surrogate characters.") from exc
    return hashlib.sha256(encoded).hexdigest()


def _serialize(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value

    # NOTE bool is a subclass of int, so it must be checked first
    if value is None or isinstance(value, (bool, str)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CanonicalizationError(f"Non-finite number {value!r} has no canonical form.")
        return _number_to_string(value)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_serialize(item) for item in value) + "]"
    if isinstance(value, dict):
        for key in value:
            if not isinstance(key, str):
                raise CanonicalizationError(f"Object keys must be strings, got {key!r}.")
        pairs = (
            f"{json.dumps(key, ensure_ascii=False)}:{_serialize(value[key])}"
            for key in sorted(value)
        )
        return "{" + ",".join(pairs) + "}"
    raise CanonicalizationError(f"Cannot serialize value of type {type(value).__name__}.")


def _number_to_string(value: float) -> str:
    """Shortest round-trip digits laid out the way ECMAScript prints numbers (and so JSON.stringify does)."""
    if value == 0:
        return "0"
    if value < 0:
        return "-" + _number_to_string(-value)

    mantissa, _, exponent = repr(value).partition("e")
    whole, _, fraction = mantissa.partition(".")
    digits = whole + fraction
    leading_zeros = len(digits) - len(digits.lstrip("0"))
    digits = digits.strip("0")
    # value == 0.<digits> * 10**point
    point = len(whole) + int(exponent or 0) - leading_zeros
    size = len(digits)

    if size <= point <= 21:
        return digits + "0" * (point - size)
    if 0 < point <= 21:
        return f"{digits[:point]}.{digits[point:]}"
    if -6 < point <= 0:
        return "0." + "0" * -point + digits

    shift = point - 1
    sign = "+" if shift >= 0 else "-"
    head = digits if size == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{head}e{sign}{abs(shift)}"
