"""
Lending - Lulo API integration for pylulo.

Requests unsigned deposit/withdraw transactions and account summaries
from the Lulo lending API over httpx.
"""
