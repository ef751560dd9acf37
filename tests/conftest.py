from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from augury.config import Settings
from augury.models import RpcCall
from augury.orchestrator import Orchestrator
from augury.pneuma.rpc import EvmOracle
from augury.session import AccountDirectory, Session

FIXED_MS = 1_700_000_000_000


class FakeChannel:
    """Session channel that answers from a per-method table."""

    def __init__(self, responses: Optional[dict[str, Any]] = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, str, RpcCall]] = []
        self.ping_error: Optional[Exception] = None
        self.observed_pending: list[bool] = []
        self.orchestrator: Optional[Orchestrator] = None

    async def ping(self, topic: str) -> None:
        if self.ping_error is not None:
            raise self.ping_error

    async def request(self, topic: str, chain_id: str, call: RpcCall) -> Any:
        self.calls.append((topic, chain_id, call))
        if self.orchestrator is not None:
            self.observed_pending.append(self.orchestrator.pending)
        response = self.responses[call.method]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(call)
        return response


class FakeRpc:
    """Stand-in for a node: no contract code, fixed nonce and gas price."""

    def __init__(self, code: str = "0x", nonce: int = 3, gas_price: int = 10) -> None:
        self.code = code
        self.nonce = nonce
        self.price = gas_price
        self.eth_call_result = "0x"

    async def get_code(self, address: str) -> str:
        return self.code

    async def get_transaction_count(self, address: str) -> int:
        return self.nonce

    async def gas_price(self) -> int:
        return self.price

    async def eth_call(self, to: str, data: str) -> str:
        return self.eth_call_result


class FakeOracle(EvmOracle):
    def __init__(self, settings: Settings, rpc: FakeRpc) -> None:
        super().__init__(settings)
        self.rpc = rpc

    def client(self, chain_id: str) -> FakeRpc:  # type: ignore[override]
        self.settings.rpc_url(chain_id)
        return self.rpc


@pytest.fixture()
def settings() -> Settings:
    return Settings()


@pytest.fixture()
def fake_rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture()
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def directory() -> AccountDirectory:
    return AccountDirectory()


@pytest.fixture()
def make_orchestrator(
    channel: FakeChannel, directory: AccountDirectory, settings: Settings, fake_rpc: FakeRpc
) -> Callable[..., Orchestrator]:
    def factory(**overrides: Any) -> Orchestrator:
        kwargs: dict[str, Any] = {
            "client": channel,
            "session": Session("topic-1"),
            "directory": directory,
            "settings": settings,
            "evm": FakeOracle(settings, fake_rpc),
            "clock": lambda: FIXED_MS,
        }
        kwargs.update(overrides)
        orchestrator = Orchestrator(**kwargs)
        channel.orchestrator = orchestrator
        return orchestrator

    return factory
