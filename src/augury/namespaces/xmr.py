"""
Monero operations.

Amounts are atomic units and routinely exceed 2**53, so requests and
balance results travel as extended JSON with BigInt values. No view key is
available client-side: every operation is reported valid once the wallet
answers without error.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from .. import xjson
from ..models import ChainAccount, Prepared
from ..xjson import BigInt
from .base import Namespace, Operation, OperationContext, Verdict, acknowledge, static


class XmrMethod(str, Enum):
    XMR_GET_ADDRESSES = "xmr_getAddresses"
    XMR_SIGN_TRANSACTION = "xmr_signTransaction"
    XMR_SIGN_MESSAGE = "xmr_signMessage"
    XMR_GET_BALANCE = "xmr_getBalance"
    XMR_GET_UNLOCKED_BALANCE = "xmr_getUnlockedBalance"
    XMR_GET_BALANCES = "xmr_getBalances"


SIGN_MESSAGE_PAYLOAD = "05010000004254"
ONE_XMR = BigInt(10**12)

DESTINATIONS = {
    "xmr:mainnet": (
        "489BrGYiEjiMpgAFhoe5hZZTgKKtdPe3xeV1xYyrR8rJLKNwGfSxzJoBSDj4MUs8nVMBybiPhbfU4cRTm8pd2u696XHxV62",
        "46FR1GKVqFNQnDiFkH7AuzbUBrGQwz2VdaXTDD4jcjRE8YkkoTYTmZ2Vohsz9gLSqkj5EM6ai9Q7sBoX4FPPYJdGKQQXPVz",
    ),
    "xmr:testnet": (
        "9xGZuCEjC4B2KGVrterGuKK6iskFP3RarWsjSNrY7F49dPq26gDJr2DgavcpqRxWh9UFUds64Lie5DfxR5BFwVVKDMCaTjW",
        "9waNBpGwmoqBon2t1vAMFX3GPu2BHNSzPeGjFowLeadaidLLWKW3NUYGs8KXRMZuLQMeMTtufVxWiJvnQUAr1KAtPGAojsj",
    ),
}


async def build_sign_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    first, second = DESTINATIONS.get(account.chain_id, DESTINATIONS["xmr:testnet"])
    request = {
        "transaction": {
            "destinations": [
                {"address": first, "amount": ONE_XMR},
                {"address": second, "amount": ONE_XMR},
            ],
            "accountIndex": 0,
            "relay": False,
        },
        "userPrompt": "Sign this transaction",
        "broadcast": False,
    }
    return Prepared(xjson.encode(request), {"request": request})


async def build_sign_message(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared({"address": account.address, "message": SIGN_MESSAGE_PAYLOAD})


async def build_address_query(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared({"address": account.address})


async def verify_balance(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    return Verdict(True, str(xjson.decode(artifact)))


async def verify_balances(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    return Verdict(True, xjson.dumps(xjson.decode(artifact), indent=2))


NAMESPACE = Namespace(
    name="xmr",
    methods=XmrMethod,
    operations={
        "get_addresses": Operation(
            name="get_addresses",
            method=XmrMethod.XMR_GET_ADDRESSES.value,
            build=static({}),
            verify=acknowledge(),
        ),
        "sign_transaction": Operation(
            name="sign_transaction",
            method=XmrMethod.XMR_SIGN_TRANSACTION.value,
            build=build_sign_transaction,
            verify=acknowledge(lambda artifact: artifact["hash"], shape="hash"),
        ),
        "sign_message": Operation(
            name="sign_message",
            method=XmrMethod.XMR_SIGN_MESSAGE.value,
            build=build_sign_message,
            verify=acknowledge(),
        ),
        "get_balance": Operation(
            name="get_balance",
            method=XmrMethod.XMR_GET_BALANCE.value,
            build=build_address_query,
            verify=verify_balance,
        ),
        "get_unlocked_balance": Operation(
            name="get_unlocked_balance",
            method=XmrMethod.XMR_GET_UNLOCKED_BALANCE.value,
            build=build_address_query,
            verify=verify_balance,
        ),
        "get_balances": Operation(
            name="get_balances",
            method=XmrMethod.XMR_GET_BALANCES.value,
            build=build_address_query,
            verify=verify_balances,
        ),
    },
)
