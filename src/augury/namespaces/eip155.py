"""
eip155 (EVM) operations.

Transactions are built against the chain's own node (nonce, gas price).
Message signatures are checked through the node-backed oracle so that both
EOAs and ERC-1271 contract wallets verify. Signed transactions are checked
by recovering the sender; Celo references use Celo's legacy layout.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Callable, Optional

from ..models import ChainAccount, Prepared
from ..sigil.eth import (
    hash_personal_message,
    hash_typed_data,
    recover_celo_transaction_signer,
    recover_transaction_signer,
    verify_signature,
)
from ..utils import utf8_to_hex
from .base import Namespace, Operation, OperationContext, Verdict


class Eip155Method(str, Enum):
    ETH_SEND_TRANSACTION = "eth_sendTransaction"
    ETH_SIGN_TRANSACTION = "eth_signTransaction"
    ETH_SIGN = "eth_sign"
    PERSONAL_SIGN = "personal_sign"
    ETH_SIGN_TYPED_DATA = "eth_signTypedData"


CELO_MAINNET_CHAIN_ID = 42220
CELO_ALFAJORES_CHAIN_ID = 44787

INSUFFICIENT_FUNDS = "Insufficient funds for intrinsic transaction cost"
TEST_GAS_LIMIT = 21000

EIP712_EXAMPLE: dict[str, Any] = {
    "types": {
        "EIP712Domain": [
            {"name": "name", "type": "string"},
            {"name": "version", "type": "string"},
            {"name": "chainId", "type": "uint256"},
            {"name": "verifyingContract", "type": "address"},
        ],
        "Person": [
            {"name": "name", "type": "string"},
            {"name": "wallet", "type": "address"},
        ],
        "Mail": [
            {"name": "from", "type": "Person"},
            {"name": "to", "type": "Person"},
            {"name": "contents", "type": "string"},
        ],
    },
    "primaryType": "Mail",
    "domain": {
        "name": "Ether Mail",
        "version": "1",
        "chainId": 1,
        "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
    },
    "message": {
        "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
        "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
        "contents": "Hello, Bob!",
    },
}


def select_transaction_recovery(reference: str) -> Callable[[str], str]:
    """Pick the signer-recovery routine for a chain reference."""
    if reference in (str(CELO_ALFAJORES_CHAIN_ID), str(CELO_MAINNET_CHAIN_ID)):
        return recover_celo_transaction_signer
    return recover_transaction_signer


def demo_message(ctx: OperationContext) -> str:
    return f"My email is john@doe.com - {ctx.clock()}"


# ============ Transactions ============


async def format_test_transaction(ctx: OperationContext, account: ChainAccount) -> dict[str, str]:
    """Zero-value self transfer with live nonce and gas price."""
    rpc = ctx.evm.client(account.chain_id)
    nonce = await rpc.get_transaction_count(account.address)
    gas_price = await rpc.gas_price()
    return {
        "from": account.address,
        "to": account.address,
        "data": "0x",
        "nonce": hex(nonce),
        "gasPrice": hex(gas_price),
        "gasLimit": hex(TEST_GAS_LIMIT),
        "value": "0x0",
    }


async def build_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    account = ctx.directory.find(account.chain_id, account.address)
    tx = await format_test_transaction(ctx, account)
    return Prepared([tx], {"tx": tx})


def admit_intrinsic_cost(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared
) -> Optional[str]:
    tx = prepared.context["tx"]
    cost = int(tx["gasPrice"], 16) * int(tx["gasLimit"], 16)
    if ctx.directory.balance_of(account) < cost:
        return INSUFFICIENT_FUNDS
    return None


async def verify_sent(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, tx_hash: Any
) -> Verdict:
    return Verdict(True, str(tx_hash))


async def verify_signed_transaction(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, signed_tx: Any
) -> Verdict:
    recover = select_transaction_recovery(account.reference)
    signer = recover(signed_tx)
    return Verdict(signer.lower() == account.address.lower(), signed_tx)


# ============ Messages ============


async def build_personal_sign(ctx: OperationContext, account: ChainAccount) -> Prepared:
    message = demo_message(ctx)
    hex_msg = utf8_to_hex(message)
    return Prepared([hex_msg, account.address], {"hash": hash_personal_message(message)})


async def build_eth_sign(ctx: OperationContext, account: ChainAccount) -> Prepared:
    message = demo_message(ctx)
    hex_msg = utf8_to_hex(message)
    return Prepared([account.address, hex_msg], {"hash": hash_personal_message(message)})


async def build_typed_data(ctx: OperationContext, account: ChainAccount) -> Prepared:
    message = json.dumps(EIP712_EXAMPLE)
    return Prepared([account.address, message], {"hash": hash_typed_data(message)})


async def verify_message_signature(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, signature: Any
) -> Verdict:
    rpc = ctx.evm.client(account.chain_id)
    valid = await verify_signature(account.address, signature, prepared.context["hash"], rpc)
    return Verdict(valid, signature)


NAMESPACE = Namespace(
    name="eip155",
    methods=Eip155Method,
    operations={
        "send_transaction": Operation(
            name="send_transaction",
            method=Eip155Method.ETH_SEND_TRANSACTION.value,
            build=build_transaction,
            verify=verify_sent,
            admit=admit_intrinsic_cost,
        ),
        "sign_transaction": Operation(
            name="sign_transaction",
            method=Eip155Method.ETH_SIGN_TRANSACTION.value,
            build=build_transaction,
            verify=verify_signed_transaction,
        ),
        "eth_sign": Operation(
            name="eth_sign",
            method=Eip155Method.ETH_SIGN.value,
            build=build_eth_sign,
            verify=verify_message_signature,
            label=Eip155Method.ETH_SIGN.value + " (standard)",
        ),
        "personal_sign": Operation(
            name="personal_sign",
            method=Eip155Method.PERSONAL_SIGN.value,
            build=build_personal_sign,
            verify=verify_message_signature,
        ),
        "sign_typed_data": Operation(
            name="sign_typed_data",
            method=Eip155Method.ETH_SIGN_TYPED_DATA.value,
            build=build_typed_data,
            verify=verify_message_signature,
        ),
    },
)
