"""
Sigil - Signature primitives for Augury.

Each module wraps a real cryptographic library behind a small verify()
style contract:
- eth:      secp256k1 / EIP-191 / EIP-712 (eth-account, eth-keys)
- cosmos:   secp256k1 sign docs + bech32 addresses (coincurve)
- ed25519:  Solana and Elrond (cryptography)
- sr25519:  Polkadot (substrate-interface)
"""
