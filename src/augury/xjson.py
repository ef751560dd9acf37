"""
Extended JSON.

Plain JSON cannot carry byte buffers or integers beyond 2**53 without loss
when the other side is a JavaScript wallet. Both are carried as tagged
strings instead:

    bytes             -> "<Uint8Array: 0x0102ff>"
    arbitrary int     -> "<bigint: 1000000000000n>"

Only ``BigInt`` values (and ints too large for a double) are tagged; ordinary
ints stay JSON numbers, so a round trip restores the exact Python types.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_BYTES_TAG = re.compile(r"^<Uint8Array: 0x([0-9a-fA-F]*)>$")
_BIGINT_TAG = re.compile(r"^<bigint: (-?\d+)n>$")

MAX_SAFE_INTEGER = 2**53 - 1


class BigInt(int):
    """An integer that must travel as an arbitrary-precision value."""

    def __repr__(self) -> str:
        return f"BigInt({int(self)})"

    def __str__(self) -> str:
        return int.__repr__(self)


def encode(value: Any) -> Any:
    """Convert a Python structure into plain JSON-compatible values."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"<Uint8Array: 0x{bytes(value).hex()}>"
    if isinstance(value, int):
        if isinstance(value, BigInt) or abs(value) > MAX_SAFE_INTEGER:
            return f"<bigint: {int(value)}n>"
        return value
    if isinstance(value, dict):
        return {str(k): encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode(v) for v in value]
    return value


def decode(value: Any) -> Any:
    """Inverse of ``encode``: restore bytes and BigInt from tagged strings."""
    if isinstance(value, str):
        match = _BYTES_TAG.match(value)
        if match:
            return bytes.fromhex(match.group(1))
        match = _BIGINT_TAG.match(value)
        if match:
            return BigInt(int(match.group(1)))
        return value
    if isinstance(value, dict):
        return {k: decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode(v) for v in value]
    return value


def dumps(value: Any, indent: Optional[int] = None) -> str:
    return json.dumps(encode(value), indent=indent)


def loads(text: str) -> Any:
    return decode(json.loads(text))
