from __future__ import annotations

import hashlib
import time


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def sha256d(data: bytes) -> bytes:
    return sha256(sha256(data))


def now_ms() -> int:
    return int(time.time() * 1000)


def strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(strip_0x(value))


def utf8_to_hex(text: str, prefixed: bool = True) -> str:
    encoded = text.encode("utf-8").hex()
    return "0x" + encoded if prefixed else encoded


def split_chain_id(chain_id: str) -> tuple[str, str]:
    """Split a ``"<namespace>:<reference>"`` chain identifier."""
    namespace, sep, reference = chain_id.partition(":")
    if not sep or not namespace or not reference:
        raise ValueError(f"Invalid chainId: {chain_id!r}")
    return namespace, reference
