"""
Ledger - On-chain interaction layer for pylulo.

Provides the Solana JSON-RPC client and the transaction assembler that
signs and submits transactions with the local keypair.

Uses solana-py for RPC transport and solders for wire types.
"""
