"""
Namespaces - Per-chain-family method tables, payload builders and verifiers.

Each module exposes one ``NAMESPACE`` record:
- eip155:   EVM chains (Celo legacy transactions included)
- cosmos:   Cosmos SDK chains
- solana:   Solana clusters
- polkadot: Substrate chains
- near:     NEAR
- elrond:   Elrond / MultiversX
- tron:     Tron
- tezos:    Tezos
- bch:      Bitcoin Cash
- xmr:      Monero
"""

from __future__ import annotations

from . import bch, cosmos, eip155, elrond, near, polkadot, solana, tezos, tron, xmr
from .base import Namespace, Operation, OperationContext, Verdict

NAMESPACES: dict[str, Namespace] = {
    module.NAMESPACE.name: module.NAMESPACE
    for module in (eip155, cosmos, solana, polkadot, near, elrond, tron, tezos, bch, xmr)
}


def get_namespace(name: str) -> Namespace:
    """Get a namespace by name. Raises ``KeyError`` if not found."""
    if name not in NAMESPACES:
        raise KeyError(f"Unknown namespace '{name}'. Available: {list(NAMESPACES)}")
    return NAMESPACES[name]


__all__ = [
    "NAMESPACES",
    "Namespace",
    "Operation",
    "OperationContext",
    "Verdict",
    "get_namespace",
]
