"""
Contract Validation Module

Модуль для валидации JSON снапшотов реестра AMM (coins, pools, transactions).
"""

from .validators import (
    AMMStateValidator,
    CoinValidator,
    ContractValidator,
    PoolValidator,
    SchemaLoader,
    TransactionValidator,
    validate_amm_state,
    validate_coin,
    validate_pool,
    validate_transaction,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "CoinValidator",
    "PoolValidator",
    "TransactionValidator",
    "AMMStateValidator",
    # Functions
    "validate_coin",
    "validate_pool",
    "validate_transaction",
    "validate_amm_state",
]
