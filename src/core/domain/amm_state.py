"""
AMMState — Снапшот реестра AMM (coins, pools, transactions)

Immutable Pydantic модель, которую владеет AMMEngine и заменяет целиком
после каждой мутации. Соответствует JSON Schema amm_state.json
(src/core/contracts/schema/amm_state.json).
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .coin import STABLE_SYMBOL, Coin
from .pool import Pool
from .transaction import Transaction


# Стабильная монета по умолчанию для пустого реестра
DEFAULT_STABLE_COIN = Coin(
    id="usdt",
    name="Tether USD",
    symbol=STABLE_SYMBOL,
    color="#26A17B",
    total_supply=1_000_000_000.0,
)


class AMMState(BaseModel):
    """
    Снапшот состояния AMM.

    Инварианты:
    - coin id и символы уникальны
    - pool id уникальны
    - transactions упорядочены по порядку исполнения (ledger)

    Immutable модель (frozen=True).
    """

    coins: tuple[Coin, ...] = Field(default=(), description="Реестр токенов")
    pools: tuple[Pool, ...] = Field(default=(), description="Реестр пулов")
    transactions: tuple[Transaction, ...] = Field(
        default=(), description="Ledger исполненных свопов"
    )

    model_config = {"frozen": True}

    @field_validator("coins")
    @classmethod
    def validate_unique_coins(cls, v: tuple[Coin, ...]) -> tuple[Coin, ...]:
        ids = [c.id for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError("coin ids must be unique")
        symbols = [c.symbol for c in v]
        if len(symbols) != len(set(symbols)):
            raise ValueError("coin symbols must be unique")
        return v

    @field_validator("pools")
    @classmethod
    def validate_unique_pools(cls, v: tuple[Pool, ...]) -> tuple[Pool, ...]:
        ids = [p.id for p in v]
        if len(ids) != len(set(ids)):
            raise ValueError("pool ids must be unique")
        return v

    @classmethod
    def initial(cls) -> "AMMState":
        """Пустой реестр с единственной стабильной монетой"""
        return cls(coins=(DEFAULT_STABLE_COIN,))

    def find_coin(self, coin_id: str) -> Optional[Coin]:
        return next((c for c in self.coins if c.id == coin_id), None)

    def find_coin_by_symbol(self, symbol: str) -> Optional[Coin]:
        return next((c for c in self.coins if c.symbol == symbol), None)

    def find_pool(self, pool_id: str) -> Optional[Pool]:
        return next((p for p in self.pools if p.id == pool_id), None)

    def replace_pool(self, pool: Pool) -> tuple[Pool, ...]:
        """Новый кортеж пулов с заменой пула по id"""
        return tuple(pool if p.id == pool.id else p for p in self.pools)
