"""
Wallet - Local signing key for pylulo.

Loads the Solana keypair used to sign every transaction pylulo submits.
"""
