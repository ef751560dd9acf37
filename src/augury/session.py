"""
Session boundary.

The orchestrator never owns the transport. It holds a non-owning reference
to an established session (identified by its topic) and a channel object
that can ping the peer and issue request/response calls on that topic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from .errors import MissingAccountError
from .models import AssetBalance, ChainAccount, RpcCall


@dataclass(frozen=True)
class Session:
    topic: str


class SessionChannel(Protocol):
    async def ping(self, topic: str) -> None:
        ...

    async def request(self, topic: str, chain_id: str, call: RpcCall) -> Any:
        ...


@dataclass
class AccountDirectory:
    """Accounts approved in the active session, plus known balances per account."""

    accounts: list[str] = field(default_factory=list)
    balances: dict[str, list[AssetBalance]] = field(default_factory=dict)

    def find(self, chain_id: str, address: str) -> ChainAccount:
        caip = f"{chain_id}:{address}"
        if caip not in self.accounts:
            raise MissingAccountError(f"Account for {caip} not found")
        return ChainAccount.parse(caip)

    def balance_of(self, account: ChainAccount, symbol: Optional[str] = None) -> int:
        """Return the first matching balance for an account (0 if unknown)."""
        for asset in self.balances.get(str(account), []):
            if symbol is None or asset.symbol == symbol:
                return asset.amount
        return 0
