"""NEAR operations. The wallet signs and submits; there is no local oracle."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from ..models import ChainAccount, Prepared
from ..schemas import validate_artifact
from .base import Namespace, Operation, OperationContext, Verdict

GUEST_BOOK = "guest-book.testnet"


class NearMethod(str, Enum):
    NEAR_SIGN_IN = "near_signIn"
    NEAR_SIGN_OUT = "near_signOut"
    NEAR_GET_ACCOUNTS = "near_getAccounts"
    NEAR_SIGN_AND_SEND_TRANSACTION = "near_signAndSendTransaction"
    NEAR_SIGN_AND_SEND_TRANSACTIONS = "near_signAndSendTransactions"


def guest_book_transaction(signer_id: str, text: str) -> dict[str, Any]:
    return {
        "signerId": signer_id,
        "receiverId": GUEST_BOOK,
        "actions": [
            {
                "type": "FunctionCall",
                "params": {
                    "methodName": "addMessage",
                    "args": {"text": text},
                    "gas": "30000000000000",
                    "deposit": "0",
                },
            }
        ],
    }


async def build_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    tx = guest_book_transaction(account.address, "Hello from Wallet Connect!")
    return Prepared({"transaction": tx})


async def build_transactions(ctx: OperationContext, account: ChainAccount) -> Prepared:
    txs = [
        guest_book_transaction(account.address, "Hello from Wallet Connect! (1/2)"),
        guest_book_transaction(account.address, "Hello from Wallet Connect! (2/2)"),
    ]
    return Prepared({"transactions": txs})


async def verify_outcome(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "near.outcome")
    return Verdict(True, json.dumps(artifact["transaction"]))


async def verify_outcomes(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "near.outcomes")
    return Verdict(True, json.dumps([outcome["transaction"] for outcome in artifact]))


NAMESPACE = Namespace(
    name="near",
    methods=NearMethod,
    operations={
        "sign_and_send_transaction": Operation(
            name="sign_and_send_transaction",
            method=NearMethod.NEAR_SIGN_AND_SEND_TRANSACTION.value,
            build=build_transaction,
            verify=verify_outcome,
        ),
        "sign_and_send_transactions": Operation(
            name="sign_and_send_transactions",
            method=NearMethod.NEAR_SIGN_AND_SEND_TRANSACTIONS.value,
            build=build_transactions,
            verify=verify_outcomes,
        ),
    },
)
