"""
Domain models and value objects.

Contains fundamental domain entities like Coin, Pool, PricePoint, Transaction.
"""

from src.core.domain.amm_state import DEFAULT_STABLE_COIN, AMMState
from src.core.domain.coin import MAX_SYMBOL_LENGTH, STABLE_SYMBOL, Coin
from src.core.domain.pool import Pool, PricePoint, Role, Side
from src.core.domain.transaction import Transaction, TransactionType

__all__ = [
    # Coin model
    "Coin",
    "STABLE_SYMBOL",
    "MAX_SYMBOL_LENGTH",
    # Pool model
    "Pool",
    "PricePoint",
    "Role",
    "Side",
    # Transaction model
    "Transaction",
    "TransactionType",
    # Registry snapshot
    "AMMState",
    "DEFAULT_STABLE_COIN",
]
