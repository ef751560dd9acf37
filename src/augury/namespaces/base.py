from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from .. import xjson
from ..config import Settings
from ..models import ChainAccount, Prepared
from ..pneuma.rpc import EvmOracle, JsonRpcClient, post_json
from ..schemas import validate_artifact
from ..session import AccountDirectory
from ..utils import now_ms


@dataclass
class OperationContext:
    """Ambient collaborators an operation may consult while building or verifying."""

    directory: AccountDirectory
    settings: Settings
    evm: EvmOracle
    clock: Callable[[], int] = now_ms
    http_post: Callable[..., Awaitable[Any]] = post_json

    @property
    def is_testnet(self) -> bool:
        return self.settings.testnet

    def node(self, url: str) -> JsonRpcClient:
        return JsonRpcClient(url, timeout=self.settings.request_timeout, post=self.http_post)


@dataclass(frozen=True)
class Verdict:
    valid: bool
    result: str


Builder = Callable[[OperationContext, ChainAccount], Awaitable[Prepared]]
Verifier = Callable[[OperationContext, ChainAccount, Prepared, Any], Awaitable[Verdict]]
Admission = Callable[[OperationContext, ChainAccount, Prepared], Optional[str]]


@dataclass(frozen=True)
class Operation:
    name: str
    method: str
    build: Builder
    verify: Verifier
    label: Optional[str] = None
    admit: Optional[Admission] = None

    @property
    def display_method(self) -> str:
        return self.label or self.method


@dataclass(frozen=True)
class Namespace:
    name: str
    methods: type[Enum]
    operations: dict[str, Operation] = field(default_factory=dict)

    def method_names(self) -> list[str]:
        return [m.value for m in self.methods]


def render(value: Any) -> str:
    """Stringify a wallet artifact for display."""
    if isinstance(value, str):
        return value
    return xjson.dumps(value, indent=2)


def static(params: Any) -> Builder:
    """Builder for requests whose params do not depend on the account."""

    async def build(ctx: OperationContext, account: ChainAccount) -> Prepared:
        return Prepared(params)

    return build


def acknowledge(
    extract: Callable[[Any], Any] = lambda artifact: artifact, shape: Optional[str] = None
) -> Verifier:
    """
    Verifier for requests with no client-side oracle.

    The call is reported valid as soon as the wallet answers without error
    and, when ``shape`` names a schema, with a response of that shape.
    """

    async def verify(
        ctx: OperationContext, account: ChainAccount, prepared: Prepared, artifact: Any
    ) -> Verdict:
        if shape is not None:
            validate_artifact(artifact, shape)
        return Verdict(True, render(extract(artifact)))

    return verify
