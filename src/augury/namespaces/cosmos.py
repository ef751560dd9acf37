"""Cosmos SDK operations: direct (protobuf) and amino (JSON) sign docs."""

from __future__ import annotations

from enum import Enum
from typing import Any

from ..models import ChainAccount, Prepared
from ..schemas import validate_artifact
from ..sigil import cosmos as cosmos_sig
from .base import Namespace, Operation, OperationContext, Verdict


class CosmosMethod(str, Enum):
    COSMOS_SIGN_DIRECT = "cosmos_signDirect"
    COSMOS_SIGN_AMINO = "cosmos_signAmino"


# authInfoBytes is sent to the wallet as given; it is not rebuilt from the
# fee, signer pubkey, gas limit and sequence.
DIRECT_INPUTS = {
    "accountNumber": 1,
    "bodyBytes": (
        "0a90010a1c2f636f736d6f732e62616e6b2e763162657461312e4d736753656e6412700a2d636f"
        "736d6f7331706b707472653766646b6c366766727a6c65736a6a766878686c63337234676d6d6b"
        "38727336122d636f736d6f7331717970717870713971637273737a673270767871367273307a71"
        "6733797963356c7a763778751a100a0575636f736d120731323334353637"
    ),
    "authInfoBytes": (
        "0a500a460a1f2f636f736d6f732e63727970746f2e736563703235366b312e5075624b65791223"
        "0a21034f04181eeba35391b858633a765c4a0c189697b40d216354d50890d350c7029012040a02"
        "0801180112130a0d0a0575636f736d12043230303010c09a0c"
    ),
}

AMINO_SIGN_DOC: dict[str, Any] = {
    "msgs": [],
    "fee": {"amount": [], "gas": "23"},
    "chain_id": "foochain",
    "memo": "hello, world",
    "account_number": "7",
    "sequence": "54",
}


async def build_sign_direct(ctx: OperationContext, account: ChainAccount) -> Prepared:
    sign_doc = {
        "chainId": account.reference,
        "accountNumber": str(DIRECT_INPUTS["accountNumber"]),
        "authInfoBytes": DIRECT_INPUTS["authInfoBytes"],
        "bodyBytes": DIRECT_INPUTS["bodyBytes"],
    }
    sign_bytes = cosmos_sig.serialize_direct_sign_doc(
        bytes.fromhex(DIRECT_INPUTS["bodyBytes"]),
        bytes.fromhex(DIRECT_INPUTS["authInfoBytes"]),
        account.reference,
        DIRECT_INPUTS["accountNumber"],
    )
    return Prepared(
        {"signerAddress": account.address, "signDoc": sign_doc},
        {"sign_bytes": sign_bytes},
    )


async def build_sign_amino(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared(
        {"signerAddress": account.address, "signDoc": AMINO_SIGN_DOC},
        {"sign_bytes": cosmos_sig.serialize_amino_sign_doc(AMINO_SIGN_DOC)},
    )


async def verify_sign_doc(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    validate_artifact(artifact, "signature")
    signature = artifact["signature"]
    valid = cosmos_sig.verify_signature(account.address, signature, prepared.context["sign_bytes"])
    return Verdict(valid, signature)


NAMESPACE = Namespace(
    name="cosmos",
    methods=CosmosMethod,
    operations={
        "sign_direct": Operation(
            name="sign_direct",
            method=CosmosMethod.COSMOS_SIGN_DIRECT.value,
            build=build_sign_direct,
            verify=verify_sign_doc,
        ),
        "sign_amino": Operation(
            name="sign_amino",
            method=CosmosMethod.COSMOS_SIGN_AMINO.value,
            build=build_sign_amino,
            verify=verify_sign_doc,
        ),
    },
)
