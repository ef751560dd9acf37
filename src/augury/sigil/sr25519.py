"""
Substrate (Polkadot) message signature checks.

The sr25519 backend is a native extension; it is warmed up once, off the
event loop, before the first verification. Later calls skip the wait.
"""

from __future__ import annotations

import asyncio

from loguru import logger
from substrateinterface import Keypair, KeypairType

_WARMUP_SEED = "0x" + "11" * 32


def _warm_up() -> None:
    keypair = Keypair.create_from_seed(_WARMUP_SEED, crypto_type=KeypairType.SR25519)
    if not keypair.verify(b"ready", keypair.sign(b"ready")):
        raise RuntimeError("sr25519 backend failed its self-check")


class CryptoBackend:
    def __init__(self) -> None:
        self._ready = False
        self._lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self._ready

    async def wait_ready(self) -> None:
        if self._ready:
            return
        async with self._lock:
            if not self._ready:
                await asyncio.to_thread(_warm_up)
                self._ready = True
                logger.debug("sr25519.ready")


backend = CryptoBackend()


def verify(address: str, message: str | bytes, signature: str | bytes) -> bool:
    """
    Verify a Substrate signature against an SS58 address.

    sr25519 is tried first, then ed25519. Both the raw message and its
    ``<Bytes>...</Bytes>`` wrapped form are accepted.
    """
    for crypto_type in (KeypairType.SR25519, KeypairType.ED25519):
        try:
            keypair = Keypair(ss58_address=address, crypto_type=crypto_type)
            if keypair.verify(message, signature):
                return True
        except (ValueError, TypeError):
            continue
    return False
