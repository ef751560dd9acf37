"""
Bitcoin Cash operations.

The signing request carries the full unsigned transaction plus the
``sourceOutputs`` each input spends (UTXO signing needs the prior locking
scripts and values), including covenant metadata for the contract input.
Byte fields and satoshi amounts travel as extended JSON.

There is no BCH script VM here, so verification is structural: a returned
``signedTransaction`` must decode to a transaction spending exactly the
requested outpoints and match any returned hash; without it, a well-formed
transaction hash is accepted. This is a lower assurance level than a
signature check.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional

from .. import xjson
from ..models import ChainAccount, Prepared
from ..utils import sha256d
from ..xjson import BigInt
from .base import Namespace, Operation, OperationContext, Verdict, acknowledge, render, static


class BchMethod(str, Enum):
    BCH_GET_ADDRESSES = "bch_getAddresses"
    BCH_SIGN_TRANSACTION = "bch_signTransaction"
    BCH_SIGN_MESSAGE = "bch_signMessage"


SIGN_MESSAGE_PAYLOAD = "05010000004254"

_TXID = re.compile(r"^[0-9a-fA-F]{64}$")

_PREV_TX = bytes.fromhex("e9aa3a136fb47adf826f78220b1bcc41e0920ee87dd9394513519192137046db")
_CATEGORY = bytes.fromhex("9ec9f55af7ac914da2b272809abbbf51a848648c4555d144529cf150c58e2682")
_REDEEM_SCRIPT = bytes.fromhex(
    "5414c3a3bdec377fd2757fa25596150ea78defc14f4d540390d0035479009c6300ce827701219d"
    "5379547a9dc3529d00cd00c78800d100ce8800cc00c65279939d00cf527f7781768b537aa16900"
    "d202feed52798b52807e8800d3009d02e80351cc789d51cd51c78851d3009d51d101207f7500ce"
    "01207f758851d27b52808802200351c6537a947c947c94760222029f63c4529d6751c752cd7888"
    "52cc52799dc4539d52d181009d75686d755167547a519d5479a953798871adc3519d00ce827700"
    "9e6300cd00c78800d100ce8800cc02e8039d51cd0376a91454797e0288ac7e88686d6d5168"
)
# unlocking bytecode = OP_0 OP_PUSHDATA1 <len> <redeem script>
_COVENANT_UNLOCK = bytes.fromhex("004c") + bytes([len(_REDEEM_SCRIPT)]) + _REDEEM_SCRIPT
_P2SH_LOCK = bytes.fromhex("a91469ba5a522337e2d59cc1a36bc25b1b4a2753075b87")
_P2PKH_LOCK = bytes.fromhex("76a914c3a3bdec377fd2757fa25596150ea78defc14f4d88ac")
_SEQUENCE = 4294967294

MINTING_COVENANT_ARTIFACT = {
    "contractName": "MintingCovenant",
    "constructorInputs": [
        {"name": "mintCost", "type": "int"},
        {"name": "maxAmount", "type": "int"},
        {"name": "owner", "type": "bytes20"},
        {"name": "nonce", "type": "int"},
    ],
    "abi": [
        {"name": "mint", "inputs": []},
        {
            "name": "withdraw",
            "inputs": [{"name": "pk", "type": "pubkey"}, {"name": "s", "type": "sig"}],
        },
    ],
    "compiler": {"name": "cashc", "version": "0.8.0-next.2"},
    "updatedAt": "2023-06-25T06:53:19.192Z",
}


def mint_transaction() -> dict[str, Any]:
    """Unsigned covenant mint: spends the minting NFT and a P2PKH change output."""
    inputs = [
        {
            "outpointIndex": 0,
            "outpointTransactionHash": _PREV_TX,
            "sequenceNumber": _SEQUENCE,
            "unlockingBytecode": _COVENANT_UNLOCK,
        },
        {
            "outpointIndex": 2,
            "outpointTransactionHash": _PREV_TX,
            "sequenceNumber": _SEQUENCE,
            "unlockingBytecode": b"",
        },
    ]
    outputs = [
        {
            "lockingBytecode": _P2SH_LOCK,
            "token": {
                "amount": BigInt(0),
                "category": _CATEGORY,
                "nft": {"capability": "minting", "commitment": bytes.fromhex("feed0200")},
            },
            "valueSatoshis": BigInt(501000),
        },
        {
            "lockingBytecode": _P2PKH_LOCK,
            "token": {
                "amount": BigInt(0),
                "category": _CATEGORY,
                "nft": {"capability": "none", "commitment": bytes.fromhex("0100")},
            },
            "valueSatoshis": BigInt(1000),
        },
        {"lockingBytecode": _P2PKH_LOCK, "valueSatoshis": BigInt(9601207)},
    ]
    source_outputs = [
        {
            **inputs[0],
            "lockingBytecode": _P2SH_LOCK,
            "valueSatoshis": BigInt(251000),
            "token": {
                "category": _CATEGORY,
                "nft": {"capability": "minting", "commitment": bytes.fromhex("feed0100")},
            },
            "contract": {
                "abiFunction": {"name": "mint", "inputs": []},
                "redeemScript": _REDEEM_SCRIPT,
                "artifact": MINTING_COVENANT_ARTIFACT,
            },
        },
        {
            **inputs[1],
            "lockingBytecode": _P2PKH_LOCK,
            "valueSatoshis": BigInt(9853007),
        },
    ]
    return {
        "transaction": {
            "inputs": inputs,
            "locktime": 153432,
            "outputs": outputs,
            "version": 2,
        },
        "sourceOutputs": source_outputs,
        "broadcast": False,
        "userPrompt": "Mint new NFT",
    }


# ============ Raw transaction decoding ============


def _read_varint(raw: bytes, pos: int) -> tuple[int, int]:
    prefix = raw[pos]
    if prefix < 0xFD:
        return prefix, pos + 1
    width = {0xFD: 2, 0xFE: 4, 0xFF: 8}[prefix]
    end = pos + 1 + width
    if end > len(raw):
        raise ValueError("Truncated varint")
    return int.from_bytes(raw[pos + 1:end], "little"), end


def decode_outpoints(raw: bytes) -> list[tuple[str, int]]:
    """Return (transaction hash, output index) for every input of a raw transaction."""
    pos = 4  # version
    count, pos = _read_varint(raw, pos)
    outpoints = []
    for _ in range(count):
        if pos + 36 > len(raw):
            raise ValueError("Truncated input")
        tx_hash = raw[pos:pos + 32][::-1].hex()
        index = int.from_bytes(raw[pos + 32:pos + 36], "little")
        script_len, pos = _read_varint(raw, pos + 36)
        pos += script_len + 4  # script + sequence
        if pos > len(raw):
            raise ValueError("Truncated input")
        outpoints.append((tx_hash, index))
    return outpoints


def transaction_id(raw: bytes) -> str:
    return sha256d(raw)[::-1].hex()


def check_signed_transaction(
    inputs: list[dict[str, Any]], signed_hex: str, claimed_hash: Optional[str]
) -> bool:
    try:
        raw = bytes.fromhex(signed_hex)
        outpoints = decode_outpoints(raw)
    except (ValueError, IndexError, KeyError):
        return False
    expected = [
        (bytes(item["outpointTransactionHash"]).hex(), item["outpointIndex"]) for item in inputs
    ]
    if outpoints != expected:
        return False
    return claimed_hash is None or claimed_hash.lower() == transaction_id(raw)


# ============ Operations ============


async def build_sign_transaction(ctx: OperationContext, account: ChainAccount) -> Prepared:
    request = mint_transaction()
    return Prepared(xjson.encode(request), {"inputs": request["transaction"]["inputs"]})


async def build_sign_message(ctx: OperationContext, account: ChainAccount) -> Prepared:
    return Prepared({"address": account.address, "message": SIGN_MESSAGE_PAYLOAD})


async def verify_signed(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    if not isinstance(artifact, dict):
        return Verdict(False, render(artifact))

    signed = artifact.get("signedTransaction")
    claimed = artifact.get("signedTransactionHash") or artifact.get("hash")

    if signed:
        valid = check_signed_transaction(prepared.context["inputs"], signed, claimed)
        return Verdict(valid, claimed or signed)

    valid = isinstance(claimed, str) and bool(_TXID.match(claimed))
    return Verdict(valid, claimed if isinstance(claimed, str) else render(artifact))


async def verify_message(
    ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
) -> Verdict:
    return Verdict(bool(artifact), render(artifact))


NAMESPACE = Namespace(
    name="bch",
    methods=BchMethod,
    operations={
        "get_addresses": Operation(
            name="get_addresses",
            method=BchMethod.BCH_GET_ADDRESSES.value,
            build=static({}),
            verify=acknowledge(),
        ),
        "sign_transaction": Operation(
            name="sign_transaction",
            method=BchMethod.BCH_SIGN_TRANSACTION.value,
            build=build_sign_transaction,
            verify=verify_signed,
        ),
        "sign_message": Operation(
            name="sign_message",
            method=BchMethod.BCH_SIGN_MESSAGE.value,
            build=build_sign_message,
            verify=verify_message,
        ),
    },
)
