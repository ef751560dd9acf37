"""Polkadot operations."""

from __future__ import annotations

from enum import Enum
from typing import Any

from ..models import ChainAccount, Prepared
from ..schemas import validate_artifact
from ..sigil import sr25519
from .base import Namespace, Operation, OperationContext, Verdict, acknowledge


class PolkadotMethod(str, Enum):
    POLKADOT_SIGN_TRANSACTION = "polkadot_signTransaction"
    POLKADOT_SIGN_MESSAGE = "polkadot_signMessage"


SIGNED_EXTENSIONS = [
    "CheckNonZeroSender",
    "CheckSpecVersion",
    "CheckTxVersion",
    "CheckGenesis",
    "CheckMortality",
    "CheckNonce",
    "CheckWeight",
    "ChargeTransactionPayment",
]


async def build_sign_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    transaction_payload = {
        "specVersion": "0x00002468",
        "transactionVersion": "0x0000000e",
        "address": account.address,
        "blockHash": "0x554d682a74099d05e8b7852d19c93b527b5fae1e9e1969f6e1b82a2f09a14cc9",
        "blockNumber": "0x00cb539c",
        "era": "0xc501",
        "genesisHash": "0xe143f23803ac50e8f6f8e62695d1ce9e4e1d68aa36c1cd2cfd15340213f3423e",
        "method": "0x0001784920616d207369676e696e672074686973207472616e73616374696f6e21",
        "nonce": "0x00000000",
        "signedExtensions": list(SIGNED_EXTENSIONS),
        "tip": "0x00000000000000000000000000000000",
        "version": 4,
    }
    return Prepared({"address": account.address, "transactionPayload": transaction_payload})


async def build_sign_message(ctx: OperationContext, account: ChainAccount) -> Prepared:
    message = f"This is an example message to be signed - {ctx.clock()}"
    return Prepared({"address": account.address, "message": message}, {"message": message})


async def verify_message(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "signature")
    signature = artifact["signature"]
    await sr25519.backend.wait_ready()
    valid = sr25519.verify(account.address, prepared.context["message"], signature)
    return Verdict(valid, signature)


NAMESPACE = Namespace(
    name="polkadot",
    methods=PolkadotMethod,
    operations={
        # no client-side oracle for extrinsic payloads: completion means valid
        "sign_transaction": Operation(
            name="sign_transaction",
            method=PolkadotMethod.POLKADOT_SIGN_TRANSACTION.value,
            build=build_sign_transaction,
            verify=acknowledge(lambda artifact: artifact["signature"], shape="signature"),
        ),
        "sign_message": Operation(
            name="sign_message",
            method=PolkadotMethod.POLKADOT_SIGN_MESSAGE.value,
            build=build_sign_message,
            verify=verify_message,
        ),
    },
)
