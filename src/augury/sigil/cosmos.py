"""
Cosmos SDK sign documents and secp256k1 signature checks.

Signatures returned by Cosmos wallets are 64 bytes (r || s) without a
recovery id, so both recovery ids are tried and the derived bech32 address
is compared with the expected one.
"""

from __future__ import annotations

import base64
from typing import Any

import bech32
import rfc8785
from Crypto.Hash import RIPEMD160
from coincurve import PublicKey

from ..utils import sha256


def pubkey_to_address(compressed_pubkey: bytes, prefix: str) -> str:
    """bech32(prefix, ripemd160(sha256(pubkey)))."""
    digest = RIPEMD160.new(sha256(compressed_pubkey)).digest()
    return bech32.bech32_encode(prefix, bech32.convertbits(digest, 8, 5))


def address_prefix(address: str) -> str:
    hrp, data = bech32.bech32_decode(address)
    if hrp is None or data is None:
        raise ValueError(f"Invalid bech32 address: {address}")
    return hrp


# ============ Direct (protobuf) sign docs ============


def _varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _field_bytes(number: int, payload: bytes) -> bytes:
    if not payload:
        return b""
    return _varint((number << 3) | 2) + _varint(len(payload)) + payload


def serialize_direct_sign_doc(
    body_bytes: bytes, auth_info_bytes: bytes, chain_id: str, account_number: int
) -> bytes:
    """Protobuf encoding of cosmos.tx.v1beta1.SignDoc."""
    out = _field_bytes(1, body_bytes)
    out += _field_bytes(2, auth_info_bytes)
    out += _field_bytes(3, chain_id.encode("utf-8"))
    if account_number:
        out += _varint((4 << 3) | 0) + _varint(account_number)
    return out


# ============ Amino (JSON) sign docs ============


def serialize_amino_sign_doc(sign_doc: dict[str, Any]) -> bytes:
    """Canonical (JCS) JSON with &, <, > escaped as amino expects."""
    text = rfc8785.dumps(sign_doc).decode("utf-8")
    text = text.replace("&", "\\u0026").replace("<", "\\u003c").replace(">", "\\u003e")
    return text.encode("utf-8")


# ============ Verification ============


def verify_signature(address: str, signature_b64: str, sign_bytes: bytes) -> bool:
    """Check that ``signature_b64`` over ``sign_bytes`` was made by ``address``."""
    try:
        raw = base64.b64decode(signature_b64)
        prefix = address_prefix(address)
    except ValueError:
        return False
    if len(raw) != 64:
        return False

    digest = sha256(sign_bytes)
    for recovery_id in (0, 1):
        try:
            public_key = PublicKey.from_signature_and_message(
                raw + bytes([recovery_id]), digest, hasher=None
            )
        except Exception:  # coincurve raises a bare Exception when recovery fails
            continue
        if pubkey_to_address(public_key.format(compressed=True), prefix) == address:
            return True
    return False
