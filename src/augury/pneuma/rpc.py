"""
JSON-RPC client for node-backed verification oracles.

Lightweight alternative to web3.py: uses httpx for HTTP + eth-abi for encoding.
Used for nonce / gas price lookups when building EVM test transactions,
bytecode and ERC-1271 checks when verifying EVM signatures, and Solana
blockhash lookups.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

import httpx
from eth_abi import encode
from eth_hash.auto import keccak
from loguru import logger

from ..config import Settings


class RpcError(RuntimeError):
    pass


async def post_json(url: str, payload: dict[str, Any], timeout: float = 30) -> Any:
    """POST a JSON body and return the decoded JSON response."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(url, json=payload)
        response.raise_for_status()
        return response.json()


class JsonRpcClient:
    def __init__(
        self,
        url: str,
        timeout: float = 30,
        post: Callable[..., Awaitable[Any]] = post_json,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._post = post

    async def call(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the node answers with an error object
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": 1,
        }
        logger.debug("oracle.rpc method={} url={}", method, self.url)
        data = await self._post(self.url, payload, timeout=self.timeout)

        if "error" in data:
            raise RpcError(f"RPC error: {data['error']}")

        return data.get("result")

    async def get_code(self, address: str) -> str:
        return await self.call("eth_getCode", [address, "latest"])

    async def get_transaction_count(self, address: str) -> int:
        result = await self.call("eth_getTransactionCount", [address, "latest"])
        return int(result, 16)

    async def gas_price(self) -> int:
        result = await self.call("eth_gasPrice", [])
        return int(result, 16)

    async def eth_call(self, to: str, data: str) -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, "latest"])

    async def get_latest_blockhash(self) -> str:
        result = await self.call("getLatestBlockhash", [{"commitment": "finalized"}])
        return result["value"]["blockhash"]


def encode_function_call(signature: str, types: list[str], args: list) -> str:
    """
    ABI-encode a function call from its textual signature.

    Args:
        signature: e.g. "isValidSignature(bytes32,bytes)"
        types: ABI input types, in order
        args: Function arguments

    Returns:
        0x-prefixed hex encoded calldata
    """
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    selector = keccak(signature.encode("utf-8"))[:4]
    encoded_args = encode(types, args) if args else b""
    return "0x" + selector.hex() + encoded_args.hex()


class EvmOracle:
    """Hands out JSON-RPC clients keyed by EVM chain reference."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        post: Callable[..., Awaitable[Any]] = post_json,
    ) -> None:
        self.settings = settings or Settings()
        self._post = post
        self._clients: dict[str, JsonRpcClient] = {}

    def client(self, chain_id: str) -> JsonRpcClient:
        url = self.settings.rpc_url(chain_id)
        if url not in self._clients:
            self._clients[url] = JsonRpcClient(
                url, timeout=self.settings.request_timeout, post=self._post
            )
        return self._clients[url]
