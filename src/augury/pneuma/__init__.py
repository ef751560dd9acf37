"""
Pneuma - Node access layer for Augury.

Provides the async JSON-RPC client used by verification oracles and
payload builders that need live chain data (nonce, gas price, blockhash).

Uses httpx + eth-abi instead of the heavyweight web3.py.
"""
