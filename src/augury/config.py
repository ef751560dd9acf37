"""
Runtime configuration.

Values come from ~/.augury/.env (loaded with python-dotenv) and the process
environment:

  AUGURY_TESTNET        "1"/"true" to target testnet nodes (Solana, Tron)
  AUGURY_TIMEOUT        HTTP timeout in seconds for oracle calls (default 30)
  AUGURY_RPC_<ref>      RPC endpoint override for an EVM chain reference
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import MissingChainConfigError


AUGURY_DIR = Path.home() / ".augury"
AUGURY_ENV = AUGURY_DIR / ".env"

DEFAULT_RPC_PROVIDERS: dict[int, str] = {
    1: "https://cloudflare-eth.com",
    5: "https://rpc.ankr.com/eth_goerli",
    10: "https://mainnet.optimism.io",
    69: "https://kovan.optimism.io",
    100: "https://rpc.gnosischain.com",
    137: "https://polygon-rpc.com",
    420: "https://goerli.optimism.io",
    42161: "https://arb1.arbitrum.io/rpc",
    42220: "https://forno.celo.org",
    44787: "https://alfajores-forno.celo-testnet.org",
    80001: "https://matic-mumbai.chainstacklabs.com",
    421611: "https://rinkeby.arbitrum.io/rpc",
    11155111: "https://rpc.sepolia.org",
}

SOLANA_CLUSTERS = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "testnet": "https://api.testnet.solana.com",
}

TRON_HOSTS = {
    "mainnet": "https://api.trongrid.io/",
    "testnet": "https://nile.trongrid.io/",
}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    testnet: bool = False
    request_timeout: float = 30.0
    rpc_providers: dict[int, str] = field(default_factory=lambda: dict(DEFAULT_RPC_PROVIDERS))
    solana_clusters: dict[str, str] = field(default_factory=lambda: dict(SOLANA_CLUSTERS))
    tron_hosts: dict[str, str] = field(default_factory=lambda: dict(TRON_HOSTS))

    @classmethod
    def from_env(cls, env_path: Optional[Path] = None) -> "Settings":
        """
        Build settings from the .env file and the process environment.

        Args:
            env_path: Path to .env file (default: ~/.augury/.env)
        """
        env_path = env_path or AUGURY_ENV
        if env_path.exists():
            load_dotenv(env_path, override=False)

        providers = dict(DEFAULT_RPC_PROVIDERS)
        for key, value in os.environ.items():
            if not key.startswith("AUGURY_RPC_") or not value:
                continue
            suffix = key[len("AUGURY_RPC_"):]
            if suffix.isdigit():
                providers[int(suffix)] = value

        return cls(
            testnet=os.environ.get("AUGURY_TESTNET", "").strip().lower() in _TRUTHY,
            request_timeout=float(os.environ.get("AUGURY_TIMEOUT", "30")),
            rpc_providers=providers,
        )

    def rpc_url(self, chain_id: str) -> str:
        """Resolve the EVM RPC endpoint for ``"eip155:<ref>"``."""
        reference = chain_id.split(":")[-1]
        url = self.rpc_providers.get(int(reference)) if reference.isdigit() else None
        if url is None:
            raise MissingChainConfigError(
                f"Missing rpcProvider definition for chainId: {chain_id}"
            )
        return url

    def solana_cluster_url(self) -> str:
        return self.solana_clusters["testnet" if self.testnet else "mainnet-beta"]

    def tron_host(self) -> str:
        return self.tron_hosts["testnet" if self.testnet else "mainnet"]
