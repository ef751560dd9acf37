"""
Elrond (MultiversX) operations.

Transactions are signed over their canonical JSON form and messages over
keccak256("\\x17Elrond Signed Message:\\n" + len + message); both are plain
Ed25519 signatures by the key behind the erd1... address.
"""

from __future__ import annotations

import base64
import json
from enum import Enum
from typing import Any, Optional

import bech32
from eth_hash.auto import keccak

from ..models import ChainAccount, Prepared
from ..schemas import validate_artifact
from ..sigil import ed25519
from .base import Namespace, Operation, OperationContext, Verdict


class ElrondMethod(str, Enum):
    ELROND_SIGN_TRANSACTION = "erd_signTransaction"
    ELROND_SIGN_TRANSACTIONS = "erd_signTransactions"
    ELROND_SIGN_MESSAGE = "erd_signMessage"
    ELROND_SIGN_LOGIN_TOKEN = "erd_signLoginToken"


MESSAGE_PREFIX = b"\x17Elrond Signed Message:\n"
GAS_PRICE = 1_000_000_000
GAS_LIMIT = 50_000
TX_VERSION = 1


def public_key(address: str) -> bytes:
    hrp, data = bech32.bech32_decode(address)
    if hrp is None or data is None:
        raise ValueError(f"Invalid Elrond address: {address}")
    return bytes(bech32.convertbits(data, 5, 8, False))


def make_transaction(
    nonce: int, value: str, address: str, chain_id: str, data: Optional[str] = None
) -> dict[str, Any]:
    """Plain transaction object in the field order used for signing."""
    tx: dict[str, Any] = {
        "nonce": nonce,
        "value": value,
        "receiver": address,
        "sender": address,
        "gasPrice": GAS_PRICE,
        "gasLimit": GAS_LIMIT,
    }
    if data:
        tx["data"] = base64.b64encode(data.encode("utf-8")).decode("ascii")
    tx["chainID"] = chain_id
    tx["version"] = TX_VERSION
    return tx


def serialize_for_signing(tx: dict[str, Any]) -> bytes:
    unsigned = {k: v for k, v in tx.items() if k != "signature"}
    return json.dumps(unsigned, separators=(",", ":")).encode("utf-8")


def serialize_message(message: bytes) -> bytes:
    return keccak(MESSAGE_PREFIX + str(len(message)).encode("ascii") + message)


def signature_bytes(value: Any) -> bytes:
    """Accept hex strings or JSON-serialized Node buffers."""
    if isinstance(value, dict) and value.get("type") == "Buffer":
        return bytes(value["data"])
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes.fromhex(str(value))


def verify_transaction(address: str, tx: dict[str, Any], signature: Any) -> bool:
    return ed25519.verify(public_key(address), serialize_for_signing(tx), signature_bytes(signature))


# ============ Builders ============


async def build_sign_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    tx = make_transaction(1, "10000000000000000000", account.address, account.reference, "testdata")
    return Prepared({"transaction": tx}, {"transactions": [tx]})


async def build_sign_transactions(ctx: OperationContext, account: ChainAccount) -> Prepared:
    txs = [
        make_transaction(1, "10000000000000000000", account.address, account.reference, "testdata"),
        # no data for this one
        make_transaction(2, "20000000000000000000", account.address, account.reference),
        make_transaction(3, "300000000000000000", account.address, account.reference, "third"),
    ]
    return Prepared({"transactions": txs}, {"transactions": txs})


async def build_sign_message(ctx: OperationContext, account: ChainAccount) -> Prepared:
    message = f"Sign this message - {ctx.clock()}"
    return Prepared(
        {"address": account.address, "message": message},
        {"message": message.encode("ascii")},
    )


# ============ Verifiers ============


async def verify_single(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "elrond.signature")
    signature = artifact["signature"]
    tx = prepared.context["transactions"][0]
    valid = verify_transaction(account.address, tx, signature)
    return Verdict(valid, signature_bytes(signature).hex())


async def verify_batch(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    txs = prepared.context["transactions"]
    validate_artifact(artifact, "elrond.signatures")
    signatures = [entry["signature"] for entry in artifact["signatures"]]

    valid = len(signatures) == len(txs)
    for tx, signature in zip(txs, signatures):
        valid = valid and verify_transaction(account.address, tx, signature)

    return Verdict(valid, ", ".join(signature_bytes(s).hex() for s in signatures))


async def verify_message(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "elrond.signature")
    signature = signature_bytes(artifact["signature"])
    digest = serialize_message(prepared.context["message"])
    valid = ed25519.verify(public_key(account.address), digest, signature)
    return Verdict(valid, signature.hex())


NAMESPACE = Namespace(
    name="elrond",
    methods=ElrondMethod,
    operations={
        "sign_transaction": Operation(
            name="sign_transaction",
            method=ElrondMethod.ELROND_SIGN_TRANSACTION.value,
            build=build_sign_transaction,
            verify=verify_single,
        ),
        "sign_transactions": Operation(
            name="sign_transactions",
            method=ElrondMethod.ELROND_SIGN_TRANSACTIONS.value,
            build=build_sign_transactions,
            verify=verify_batch,
        ),
        "sign_message": Operation(
            name="sign_message",
            method=ElrondMethod.ELROND_SIGN_MESSAGE.value,
            build=build_sign_message,
            verify=verify_message,
        ),
    },
)
