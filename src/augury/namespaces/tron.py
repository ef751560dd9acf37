"""
Tron operations.

The test transaction is a TRC-20 approve(address,uint256) of zero, built by
TronGrid's triggersmartcontract endpoint (Nile testnet or mainnet USDT,
depending on the testnet flag).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import base58
from eth_abi import encode

from ..models import ChainAccount, Prepared
from .base import Namespace, Operation, OperationContext, acknowledge


class TronMethod(str, Enum):
    TRON_SIGN_TRANSACTION = "tron_signTransaction"
    TRON_SIGN_MESSAGE = "tron_signMessage"


# USDT: https://nile.tronscan.org/#/token20/TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf
#       https://tronscan.org/#/token20/TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t
TEST_CONTRACTS = {
    "testnet": "TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf",
    "mainnet": "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t",
}
FEE_LIMIT = 200_000_000
TEST_MESSAGE = "This is a message to be signed for Tron"


class TronNodeError(RuntimeError):
    pass


def address_to_evm(address: str) -> bytes:
    """Base58check Tron address (0x41 prefix) -> 20-byte EVM address."""
    raw = base58.b58decode_check(address)
    if len(raw) != 21 or raw[0] != 0x41:
        raise ValueError(f"Invalid Tron address: {address}")
    return raw[1:]


async def trigger_smart_contract(
    ctx: OperationContext, owner: str, contract: str, selector: str, parameter: bytes
) -> dict[str, Any]:
    body = {
        "owner_address": owner,
        "contract_address": contract,
        "function_selector": selector,
        "parameter": parameter.hex(),
        "fee_limit": FEE_LIMIT,
        "call_value": 0,
        "visible": True,
    }
    url = ctx.settings.tron_host() + "wallet/triggersmartcontract"
    data = await ctx.http_post(url, body, timeout=ctx.settings.request_timeout)
    outcome = data.get("result") or {}
    if not outcome.get("result"):
        raise TronNodeError(f"triggersmartcontract failed: {outcome.get('message', data)}")
    return data


async def build_sign_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    contract = TEST_CONTRACTS["testnet" if ctx.is_testnet else "mainnet"]
    parameter = encode(["address", "uint256"], [address_to_evm(account.address), 0])
    built = await trigger_smart_contract(
        ctx, account.address, contract, "approve(address,uint256)", parameter
    )
    return Prepared({"address": account.address, "transaction": dict(built)})


async def build_sign_message(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared({"address": account.address, "message": TEST_MESSAGE})


NAMESPACE = Namespace(
    name="tron",
    methods=TronMethod,
    operations={
        "sign_transaction": Operation(
            name="sign_transaction",
            method=TronMethod.TRON_SIGN_TRANSACTION.value,
            build=build_sign_transaction,
            verify=acknowledge(
                lambda artifact: artifact["result"]["signature"], shape="tron.transaction"
            ),
        ),
        "sign_message": Operation(
            name="sign_message",
            method=TronMethod.TRON_SIGN_MESSAGE.value,
            build=build_sign_message,
            verify=acknowledge(lambda artifact: artifact["signature"], shape="signature"),
        ),
    },
)
