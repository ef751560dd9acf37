"""Per-chain builders and verifiers driven through the orchestrator."""

from __future__ import annotations

import base64
import json

import base58
import bech32
import pytest
from coincurve import PrivateKey
from cryptography.hazmat.primitives.asymmetric import ed25519
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from substrateinterface import Keypair as SubstrateKeypair

from augury import xjson
from augury.models import RpcCall
from augury.namespaces import NAMESPACES, get_namespace
from augury.namespaces.cosmos import DIRECT_INPUTS
from augury.namespaces.elrond import serialize_for_signing, serialize_message
from augury.sigil import cosmos as cosmos_sig
from augury.sigil import sr25519
from augury.utils import sha256

from conftest import FIXED_MS, FakeChannel


def _elrond_key() -> tuple[ed25519.Ed25519PrivateKey, str]:
    key = ed25519.Ed25519PrivateKey.generate()
    raw = key.public_key().public_bytes_raw()
    return key, bech32.bech32_encode("erd", bech32.convertbits(raw, 8, 5))


def _cosmos_key() -> tuple[PrivateKey, str]:
    key = PrivateKey()
    return key, cosmos_sig.pubkey_to_address(key.public_key.format(compressed=True), "cosmos")


def _cosmos_sign(key: PrivateKey, sign_bytes: bytes) -> dict[str, str]:
    signature = key.sign_recoverable(sha256(sign_bytes), hasher=None)[:64]
    return {"signature": base64.b64encode(signature).decode("ascii")}


class TestRegistry:
    def test_all_namespaces_registered(self) -> None:
        assert set(NAMESPACES) == {
            "eip155", "cosmos", "solana", "polkadot", "near",
            "elrond", "tron", "tezos", "bch", "xmr",
        }

    def test_unknown_namespace(self) -> None:
        with pytest.raises(KeyError):
            get_namespace("dogecoin")

    def test_method_tables(self) -> None:
        assert "erd_signLoginToken" in get_namespace("elrond").method_names()
        assert "near_signIn" in get_namespace("near").method_names()
        assert get_namespace("bch").method_names() == [
            "bch_getAddresses", "bch_signTransaction", "bch_signMessage",
        ]


class TestCosmos:
    @pytest.mark.asyncio
    async def test_sign_direct(self, make_orchestrator, channel: FakeChannel) -> None:
        key, address = _cosmos_key()

        def respond(call: RpcCall) -> dict[str, str]:
            doc = call.params["signDoc"]
            sign_bytes = cosmos_sig.serialize_direct_sign_doc(
                bytes.fromhex(doc["bodyBytes"]),
                bytes.fromhex(doc["authInfoBytes"]),
                doc["chainId"],
                int(doc["accountNumber"]),
            )
            return _cosmos_sign(key, sign_bytes)

        channel.responses["cosmos_signDirect"] = respond
        orchestrator = make_orchestrator()

        await orchestrator.call("cosmos", "sign_direct", "cosmos:cosmoshub-4", address)

        assert orchestrator.result.valid is True
        assert orchestrator.result.method == "cosmos_signDirect"

    @pytest.mark.asyncio
    async def test_sign_direct_sends_auth_info_as_given(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        channel.responses["cosmos_signDirect"] = {"signature": ""}
        orchestrator = make_orchestrator()

        await orchestrator.call("cosmos", "sign_direct", "cosmos:cosmoshub-4", "cosmos1xyz")

        doc = channel.calls[0][2].params["signDoc"]
        assert doc["authInfoBytes"] == DIRECT_INPUTS["authInfoBytes"]
        assert doc["bodyBytes"] == DIRECT_INPUTS["bodyBytes"]
        assert doc["accountNumber"] == "1"

    @pytest.mark.asyncio
    async def test_sign_amino(self, make_orchestrator, channel: FakeChannel) -> None:
        key, address = _cosmos_key()
        channel.responses["cosmos_signAmino"] = lambda call: _cosmos_sign(
            key, cosmos_sig.serialize_amino_sign_doc(call.params["signDoc"])
        )
        orchestrator = make_orchestrator()

        await orchestrator.call("cosmos", "sign_amino", "cosmos:cosmoshub-4", address)

        assert orchestrator.result.valid is True

    @pytest.mark.asyncio
    async def test_wrong_signer(self, make_orchestrator, channel: FakeChannel) -> None:
        key, _ = _cosmos_key()
        _, address = _cosmos_key()
        channel.responses["cosmos_signAmino"] = lambda call: _cosmos_sign(
            key, cosmos_sig.serialize_amino_sign_doc(call.params["signDoc"])
        )
        orchestrator = make_orchestrator()

        await orchestrator.call("cosmos", "sign_amino", "cosmos:cosmoshub-4", address)

        assert orchestrator.result.valid is False

    def test_amino_serialization_is_sorted_and_escaped(self) -> None:
        encoded = cosmos_sig.serialize_amino_sign_doc({"memo": "a<b&c>", "chain_id": "x"})
        assert encoded == b'{"chain_id":"x","memo":"a\\u003cb\\u0026c\\u003e"}'


class TestSolana:
    CHAIN = "solana:4sGjMW1sUnHzSxGspuhpqLDx6wiyjNtZ"

    @pytest.mark.asyncio
    async def test_sign_message(self, make_orchestrator, channel: FakeChannel) -> None:
        keypair = Keypair()

        def respond(call: RpcCall) -> dict[str, str]:
            message = base58.b58decode(call.params["message"])
            return {"signature": str(keypair.sign_message(message))}

        channel.responses["solana_signMessage"] = respond
        orchestrator = make_orchestrator()

        await orchestrator.call("solana", "sign_message", self.CHAIN, str(keypair.pubkey()))

        assert orchestrator.result.valid is True
        _, _, call = channel.calls[0]
        assert base58.b58decode(call.params["message"]).decode() == (
            f"This is an example message to be signed - {FIXED_MS}"
        )

    @pytest.mark.asyncio
    async def test_sign_transaction(self, make_orchestrator, channel: FakeChannel) -> None:
        keypair = Keypair()
        blockhash = str(Hash.new_unique())
        posted: list[dict] = []

        async def http_post(url: str, payload: dict, timeout: float = 30) -> dict:
            posted.append(payload)
            return {"jsonrpc": "2.0", "id": 1, "result": {"value": {"blockhash": blockhash}}}

        def respond(call: RpcCall) -> dict[str, str]:
            params = call.params
            instructions = [
                Instruction(
                    Pubkey.from_string(ix["programId"]),
                    bytes(ix["data"]),
                    [
                        AccountMeta(
                            Pubkey.from_string(meta["pubkey"]), meta["isSigner"], meta["isWritable"]
                        )
                        for meta in ix["keys"]
                    ],
                )
                for ix in params["instructions"]
            ]
            message = Message.new_with_blockhash(
                instructions,
                Pubkey.from_string(params["feePayer"]),
                Hash.from_string(params["recentBlockhash"]),
            )
            return {"signature": str(keypair.sign_message(bytes(message)))}

        channel.responses["solana_signTransaction"] = respond
        orchestrator = make_orchestrator(http_post=http_post)

        await orchestrator.call("solana", "sign_transaction", self.CHAIN, str(keypair.pubkey()))

        assert posted[0]["method"] == "getLatestBlockhash"
        assert orchestrator.result.valid is True


class TestElrond:
    CHAIN = "elrond:D"

    @pytest.mark.asyncio
    async def test_sign_transaction(self, make_orchestrator, channel: FakeChannel) -> None:
        key, address = _elrond_key()
        channel.responses["erd_signTransaction"] = lambda call: {
            "signature": key.sign(serialize_for_signing(call.params["transaction"])).hex()
        }
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", "sign_transaction", self.CHAIN, address)

        assert orchestrator.result.valid is True
        _, _, call = channel.calls[0]
        tx = call.params["transaction"]
        assert tx["chainID"] == "D"
        assert base64.b64decode(tx["data"]) == b"testdata"

    @pytest.mark.asyncio
    async def test_batch_with_one_bad_signature_fails(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        key, address = _elrond_key()

        def respond(call: RpcCall) -> dict:
            signatures = [key.sign(serialize_for_signing(tx)) for tx in call.params["transactions"]]
            signatures[1] = bytes(64)
            return {"signatures": [{"signature": s.hex()} for s in signatures]}

        channel.responses["erd_signTransactions"] = respond
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", "sign_transactions", self.CHAIN, address)

        assert orchestrator.result.valid is False
        assert orchestrator.result.result.count(", ") == 2

    @pytest.mark.asyncio
    async def test_batch_all_good(self, make_orchestrator, channel: FakeChannel) -> None:
        key, address = _elrond_key()
        channel.responses["erd_signTransactions"] = lambda call: {
            "signatures": [
                {"signature": {"type": "Buffer", "data": list(key.sign(serialize_for_signing(tx)))}}
                for tx in call.params["transactions"]
            ]
        }
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", "sign_transactions", self.CHAIN, address)

        assert orchestrator.result.valid is True

    @pytest.mark.asyncio
    async def test_batch_missing_signature_fails(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        key, address = _elrond_key()
        channel.responses["erd_signTransactions"] = lambda call: {
            "signatures": [
                {"signature": key.sign(serialize_for_signing(tx)).hex()}
                for tx in call.params["transactions"][:2]
            ]
        }
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", "sign_transactions", self.CHAIN, address)

        assert orchestrator.result.valid is False

    @pytest.mark.asyncio
    async def test_sign_message(self, make_orchestrator, channel: FakeChannel) -> None:
        key, address = _elrond_key()
        channel.responses["erd_signMessage"] = lambda call: {
            "signature": key.sign(serialize_message(call.params["message"].encode())).hex()
        }
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", "sign_message", self.CHAIN, address)

        assert orchestrator.result.valid is True

    @pytest.mark.asyncio
    async def test_sign_transaction_buffer_signature(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        key, address = _elrond_key()
        channel.responses["erd_signTransaction"] = lambda call: {
            "signature": {
                "type": "Buffer",
                "data": list(key.sign(serialize_for_signing(call.params["transaction"]))),
            }
        }
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", "sign_transaction", self.CHAIN, address)

        assert orchestrator.result.valid is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "operation,method",
        [("sign_transaction", "erd_signTransaction"), ("sign_message", "erd_signMessage")],
    )
    async def test_response_without_signature_is_invalid(
        self, make_orchestrator, channel: FakeChannel, operation: str, method: str
    ) -> None:
        _, address = _elrond_key()
        channel.responses[method] = {"sig": "00"}
        orchestrator = make_orchestrator()

        await orchestrator.call("elrond", operation, self.CHAIN, address)

        assert orchestrator.result.valid is False
        assert orchestrator.result.result.startswith(
            "Unexpected wallet response (elrond.signature)"
        )


class TestPolkadot:
    CHAIN = "polkadot:91b171bb158e2d3848fa23a9f1c25182"

    @pytest.mark.asyncio
    async def test_sign_message(self, make_orchestrator, channel: FakeChannel) -> None:
        keypair = SubstrateKeypair.create_from_mnemonic(SubstrateKeypair.generate_mnemonic())
        channel.responses["polkadot_signMessage"] = lambda call: {
            "signature": "0x" + keypair.sign(call.params["message"]).hex()
        }
        orchestrator = make_orchestrator()

        await orchestrator.call("polkadot", "sign_message", self.CHAIN, keypair.ss58_address)

        assert orchestrator.result.valid is True
        assert sr25519.backend.ready is True

    @pytest.mark.asyncio
    async def test_sign_transaction_acknowledged(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        channel.responses["polkadot_signTransaction"] = {"id": 1, "signature": "0xfeed"}
        orchestrator = make_orchestrator()

        await orchestrator.call("polkadot", "sign_transaction", self.CHAIN, "5Gx")

        assert orchestrator.result.valid is True
        assert orchestrator.result.result == "0xfeed"


class TestAcknowledged:
    TRON_ADDRESS = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"

    @pytest.mark.asyncio
    async def test_tron_sign_transaction(self, make_orchestrator, channel: FakeChannel) -> None:
        posted: list[tuple[str, dict]] = []

        async def http_post(url: str, payload: dict, timeout: float = 30) -> dict:
            posted.append((url, payload))
            return {"result": {"result": True}, "transaction": {"txID": "aa"}}

        channel.responses["tron_signTransaction"] = {"result": {"signature": ["0xsig"]}}
        orchestrator = make_orchestrator(http_post=http_post)
        orchestrator.is_testnet = True

        await orchestrator.call("tron", "sign_transaction", "tron:0x2b6653dc", self.TRON_ADDRESS)

        url, body = posted[0]
        assert url == "https://nile.trongrid.io/wallet/triggersmartcontract"
        assert body["contract_address"] == "TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf"
        assert body["function_selector"] == "approve(address,uint256)"
        assert orchestrator.result.valid is True

    @pytest.mark.asyncio
    async def test_tron_unexpected_shape_is_invalid(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        channel.responses["tron_signMessage"] = {"sig": "0x"}
        orchestrator = make_orchestrator()

        await orchestrator.call("tron", "sign_message", "tron:0x2b6653dc", self.TRON_ADDRESS)

        assert orchestrator.result.valid is False
        assert orchestrator.result.result.startswith("Unexpected wallet response (signature)")

    @pytest.mark.asyncio
    async def test_near_transactions(self, make_orchestrator, channel: FakeChannel) -> None:
        channel.responses["near_signAndSendTransactions"] = lambda call: [
            {"transaction": {"hash": f"h{i}"}} for i, _ in enumerate(call.params["transactions"])
        ]
        orchestrator = make_orchestrator()

        await orchestrator.call("near", "sign_and_send_transactions", "near:testnet", "alice.testnet")

        assert orchestrator.result.valid is True
        assert json.loads(orchestrator.result.result) == [{"hash": "h0"}, {"hash": "h1"}]

    @pytest.mark.asyncio
    async def test_tezos_sign(self, make_orchestrator, channel: FakeChannel) -> None:
        channel.responses["tezos_sign"] = {"signature": "edsig123"}
        orchestrator = make_orchestrator()

        await orchestrator.call("tezos", "sign", "tezos:testnet", "tz1abc")

        assert orchestrator.result.result == "edsig123"
        assert channel.calls[0][2].params == {"account": "tz1abc", "payload": "05010000004254"}

    @pytest.mark.asyncio
    async def test_xmr_sign_transaction_carries_bigint(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        channel.responses["xmr_signTransaction"] = {"hash": "deadbeef"}
        orchestrator = make_orchestrator()

        await orchestrator.call("xmr", "sign_transaction", "xmr:testnet", "9xG")

        params = channel.calls[0][2].params
        assert params["transaction"]["destinations"][0]["amount"] == "<bigint: 1000000000000n>"
        assert orchestrator.result.result == "deadbeef"

    @pytest.mark.asyncio
    async def test_xmr_balance(self, make_orchestrator, channel: FakeChannel) -> None:
        channel.responses["xmr_getBalance"] = "<bigint: 12000000000000n>"
        orchestrator = make_orchestrator()

        await orchestrator.call("xmr", "get_balance", "xmr:mainnet", "48x")

        assert orchestrator.result.result == "12000000000000"

    @pytest.mark.asyncio
    async def test_xmr_balances_render_as_extended_json(
        self, make_orchestrator, channel: FakeChannel
    ) -> None:
        channel.responses["xmr_getBalances"] = {"balance": "<bigint: 9007199254740993n>"}
        orchestrator = make_orchestrator()

        await orchestrator.call("xmr", "get_balances", "xmr:mainnet", "48x")

        assert xjson.loads(orchestrator.result.result) == {"balance": 9007199254740993}
