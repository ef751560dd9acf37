"""Tezos operations. Completion of the remote call is the only check."""

from __future__ import annotations

from enum import Enum

from ..models import ChainAccount, Prepared
from .base import Namespace, Operation, OperationContext, acknowledge, static


class TezosMethod(str, Enum):
    TEZOS_GET_ACCOUNTS = "tezos_getAccounts"
    TEZOS_SEND = "tezos_send"
    TEZOS_SIGN = "tezos_sign"


SIGN_PAYLOAD = "05010000004254"


async def build_send(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared(
        {
            "account": account.address,
            # 1 mutez (smallest unit) to ourselves
            "operations": [
                {"kind": "transaction", "amount": "1", "destination": account.address}
            ],
        }
    )


async def build_sign(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared({"account": account.address, "payload": SIGN_PAYLOAD})


NAMESPACE = Namespace(
    name="tezos",
    methods=TezosMethod,
    operations={
        "get_accounts": Operation(
            name="get_accounts",
            method=TezosMethod.TEZOS_GET_ACCOUNTS.value,
            build=static({}),
            verify=acknowledge(),
        ),
        "send": Operation(
            name="send",
            method=TezosMethod.TEZOS_SEND.value,
            build=build_send,
            verify=acknowledge(lambda artifact: artifact["hash"], shape="hash"),
        ),
        "sign": Operation(
            name="sign",
            method=TezosMethod.TEZOS_SIGN.value,
            build=build_sign,
            verify=acknowledge(lambda artifact: artifact["signature"], shape="signature"),
        ),
    },
)
