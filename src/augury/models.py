from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .utils import split_chain_id


@dataclass(frozen=True)
class ChainAccount:
    namespace: str
    reference: str
    address: str

    @classmethod
    def parse(cls, value: str) -> "ChainAccount":
        parts = value.split(":", 2)
        if len(parts) != 3 or not all(parts):
            raise ValueError(f"Invalid account: {value!r}")
        return cls(*parts)

    @classmethod
    def from_chain_id(cls, chain_id: str, address: str) -> "ChainAccount":
        namespace, reference = split_chain_id(chain_id)
        return cls(namespace, reference, address)

    @property
    def chain_id(self) -> str:
        return f"{self.namespace}:{self.reference}"

    def __str__(self) -> str:
        return f"{self.namespace}:{self.reference}:{self.address}"


@dataclass(frozen=True)
class RpcCall:
    method: str
    params: Any

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method, "params": self.params}


@dataclass(frozen=True)
class FormattedResult:
    valid: bool
    result: str
    method: Optional[str] = None
    address: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.method is not None:
            data["method"] = self.method
        if self.address is not None:
            data["address"] = self.address
        data["valid"] = self.valid
        data["result"] = self.result
        return data


@dataclass
class Prepared:
    """An unsigned payload plus whatever its verifier needs to check the artifact."""

    params: Any
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AssetBalance:
    symbol: str
    balance: str = "0"
    name: str = ""
    contract_address: str = ""

    @property
    def amount(self) -> int:
        value = self.balance or "0"
        return int(value, 16) if value.startswith("0x") else int(value)


__all__ = [
    "AssetBalance",
    "ChainAccount",
    "FormattedResult",
    "Prepared",
    "RpcCall",
]
