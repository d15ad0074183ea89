"""
Commands - Lulo lending command implementations for pylulo.

Each module corresponds to a top-level CLI command:
- account:  Show lending account totals and settings
- deposit:  Deposit tokens into a Lulo reserve
- withdraw: Withdraw tokens from a Lulo reserve
"""
