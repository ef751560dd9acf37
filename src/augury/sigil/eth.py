"""
ECDSA / secp256k1 signatures for eip155 chains.

This module handles:
- Local key management for the CLI (~/.augury/.env as PRIVATE_KEY)
- EIP-191 personal message hashing and EIP-712 typed data hashing
- Signer recovery from message hashes and signed transactions, including
  the Celo legacy transaction layout
- The node-backed verification oracle (EOA recovery or ERC-1271)

Dependencies: eth-account, eth-keys, rlp (no full web3.py needed)
"""

from __future__ import annotations

import json
import os
import secrets
from pathlib import Path
from typing import Any, Optional

import rlp
from dotenv import load_dotenv
from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_hash.auto import keccak
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from ..config import AUGURY_ENV
from ..pneuma.rpc import JsonRpcClient, encode_function_call
from ..utils import hex_to_bytes

ERC1271_MAGIC_VALUE = "0x1626ba7e"


class SignatureError(ValueError):
    pass


def generate_eoa() -> tuple[str, str]:
    """
    Generate a new ECDSA/secp256k1 keypair (EOA).

    Returns:
        Tuple of (private_key_hex, address)
    """
    private_key = "0x" + secrets.token_hex(32)
    account = Account.from_key(private_key)
    return private_key, account.address


def save_private_key(private_key: str, env_path: Optional[Path] = None) -> Path:
    """
    Save private key to .env file, keeping any other entries.

    Args:
        private_key: 0x-prefixed hex private key
        env_path: Path to .env file (default: ~/.augury/.env)

    Returns:
        Path to the saved .env file
    """
    env_path = env_path or AUGURY_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing = {}
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, v = line.split("=", 1)
                existing[k.strip()] = v.strip()

    existing["PRIVATE_KEY"] = private_key

    lines = [f"{k}={v}" for k, v in existing.items()]
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    if os.name != "nt":
        env_path.chmod(0o600)

    return env_path


def load_private_key(env_path: Optional[Path] = None) -> str:
    """
    Load private key from .env file or environment.

    Raises:
        ValueError: If PRIVATE_KEY is not set anywhere
    """
    env_path = env_path or AUGURY_ENV

    if env_path.exists():
        load_dotenv(env_path, override=True)

    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ValueError(
            f"PRIVATE_KEY not found. Set PRIVATE_KEY in {env_path} or the environment."
        )

    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return private_key


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    if private_key is None:
        private_key = load_private_key()
    return Account.from_key(private_key)


def sign_message(message: str, private_key: Optional[str] = None) -> str:
    """
    Sign a message using EIP-191 personal_sign.

    Returns:
        0x-prefixed hex signature (65 bytes: r + s + v)
    """
    account = get_account(private_key)
    signed = account.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


# ============ Hashing ============


def _hash_signable(signable: SignableMessage) -> bytes:
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def hash_personal_message(message: str) -> bytes:
    """keccak256("\\x19Ethereum Signed Message:\\n" + len(message) + message)."""
    return _hash_signable(encode_defunct(text=message))


def hash_typed_data(message: str | dict[str, Any]) -> bytes:
    """EIP-712 hash of a full typed-data document (JSON text or dict)."""
    if isinstance(message, str):
        message = json.loads(message)
    return _hash_signable(encode_typed_data(full_message=message))


# ============ Recovery ============


def _split_signature(signature: str | bytes) -> tuple[int, int, int]:
    raw = hex_to_bytes(signature) if isinstance(signature, str) else bytes(signature)
    if len(raw) != 65:
        raise SignatureError(f"Expected a 65-byte signature, got {len(raw)} bytes")
    v = raw[64]
    if v >= 27:
        v -= 27
    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    return v, r, s


def recover_hash(msg_hash: bytes, signature: str | bytes) -> str:
    """Recover the checksummed signer address of a 32-byte hash."""
    try:
        sig = keys.Signature(vrs=_split_signature(signature))
        public_key = sig.recover_public_key_from_msg_hash(msg_hash)
    except (BadSignature, ValidationError) as exc:
        raise SignatureError(str(exc)) from exc
    return public_key.to_checksum_address()


def recover_transaction_signer(serialized_tx: str) -> str:
    """Recover the sender of a signed Ethereum transaction (legacy or typed)."""
    return Account.recover_transaction(serialized_tx)


def recover_celo_transaction_signer(serialized_tx: str) -> str:
    """
    Recover the sender of a signed Celo legacy transaction.

    Celo legacy transactions carry three extra fields between gas and to:
    [nonce, gasPrice, gas, feeCurrency, gatewayFeeRecipient, gatewayFee,
     to, value, data, v, r, s]
    """
    items = rlp.decode(hex_to_bytes(serialized_tx))
    if not isinstance(items, list) or len(items) != 12:
        raise SignatureError("Not a Celo legacy transaction")

    unsigned = list(items[:9])
    v = int.from_bytes(items[9], "big")
    r = int.from_bytes(items[10], "big")
    s = int.from_bytes(items[11], "big")

    if v in (27, 28):
        recovery_id = v - 27
    else:
        # EIP-155 replay protection: v = chainId * 2 + 35 + recovery_id
        chain_id = (v - 35) // 2
        recovery_id = v - 35 - chain_id * 2
        unsigned += [chain_id, b"", b""]

    msg_hash = keccak(rlp.encode(unsigned))
    try:
        sig = keys.Signature(vrs=(recovery_id, r, s))
        return sig.recover_public_key_from_msg_hash(msg_hash).to_checksum_address()
    except (BadSignature, ValidationError) as exc:
        raise SignatureError(str(exc)) from exc


# ============ Oracle ============


async def is_valid_erc1271_signature(
    address: str, signature: str, msg_hash: bytes, rpc: JsonRpcClient
) -> bool:
    calldata = encode_function_call(
        "isValidSignature(bytes32,bytes)",
        ["bytes32", "bytes"],
        [msg_hash, hex_to_bytes(signature)],
    )
    result = await rpc.eth_call(address, calldata)
    return bool(result) and result[:10].lower() == ERC1271_MAGIC_VALUE


async def verify_signature(
    address: str, signature: str, msg_hash: bytes, rpc: JsonRpcClient
) -> bool:
    """
    Verify a signature over ``msg_hash`` for ``address``.

    Externally owned accounts are checked by local recovery; contract
    accounts are asked through ERC-1271 on the chain's node.
    """
    code = await rpc.get_code(address)
    if not code or code in ("0x", "0x0", "0x00"):
        try:
            return recover_hash(msg_hash, signature).lower() == address.lower()
        except SignatureError:
            return False
    return await is_valid_erc1271_signature(address, signature, msg_hash, rpc)
