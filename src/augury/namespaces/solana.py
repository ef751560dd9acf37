"""
Solana operations.

The test transaction is a 1-lamport system transfer to a throwaway key,
anchored on a recent blockhash from the cluster selected by the testnet
flag. The wallet returns only the fee payer's signature, which is checked
against the locally serialized message.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import base58
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from ..models import ChainAccount, Prepared
from ..schemas import validate_artifact
from ..sigil import ed25519
from .base import Namespace, Operation, OperationContext, Verdict


class SolanaMethod(str, Enum):
    SOL_SIGN_TRANSACTION = "solana_signTransaction"
    SOL_SIGN_MESSAGE = "solana_signMessage"


async def build_sign_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    sender = Pubkey.from_string(account.address)
    blockhash = await ctx.node(ctx.settings.solana_cluster_url()).get_latest_blockhash()

    instruction = transfer(
        TransferParams(from_pubkey=sender, to_pubkey=Keypair().pubkey(), lamports=1)
    )
    message = Message.new_with_blockhash([instruction], sender, Hash.from_string(blockhash))

    params = {
        "feePayer": str(sender),
        "recentBlockhash": blockhash,
        "instructions": [
            {
                "programId": str(instruction.program_id),
                "data": list(bytes(instruction.data)),
                "keys": [
                    {
                        "isSigner": meta.is_signer,
                        "isWritable": meta.is_writable,
                        "pubkey": str(meta.pubkey),
                    }
                    for meta in instruction.accounts
                ],
            }
        ],
    }
    return Prepared(params, {"message": bytes(message), "public_key": bytes(sender)})


async def build_sign_message(ctx: OperationContext, account: ChainAccount) -> Prepared:
    text = f"This is an example message to be signed - {ctx.clock()}"
    message = base58.b58encode(text.encode("utf-8")).decode("ascii")
    public_key = bytes(Pubkey.from_string(account.address))
    return Prepared(
        {"pubkey": account.address, "message": message},
        {"message": base58.b58decode(message), "public_key": public_key},
    )


async def verify_signature(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "signature")
    signature = artifact["signature"]
    valid = ed25519.verify(
        prepared.context["public_key"],
        prepared.context["message"],
        base58.b58decode(signature),
    )
    return Verdict(valid, signature)


NAMESPACE = Namespace(
    name="solana",
    methods=SolanaMethod,
    operations={
        "sign_transaction": Operation(
            name="sign_transaction",
            method=SolanaMethod.SOL_SIGN_TRANSACTION.value,
            build=build_sign_transaction,
            verify=verify_signature,
        ),
        "sign_message": Operation(
            name="sign_message",
            method=SolanaMethod.SOL_SIGN_MESSAGE.value,
            build=build_sign_message,
            verify=verify_signature,
        ),
    },
)
