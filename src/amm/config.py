"""Протокольные константы AMM в виде конфигурации."""

from dataclasses import dataclass
from typing import Final

from src.core.domain.coin import MAX_SYMBOL_LENGTH, STABLE_SYMBOL
from src.core.math.constant_product import FEE_RATE

# Доля циркулирующего предложения от total supply (фиксированное допущение)
CIRCULATING_SUPPLY_RATIO: Final[float] = 0.7

# Окно для volume_24h (миллисекунды)
VOLUME_WINDOW_MS: Final[int] = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class AMMConfig:
    """Конфигурация AMM движка.

    - fee_rate: комиссия свопа (0.3%), остаётся в пуле
    - stable_symbol: символ стабильной референсной монеты
    - circulating_supply_ratio: доля циркулирующего предложения (70%)
    - volume_window_ms: окно volume_24h
    - max_symbol_length: максимальная длина символа токена
    """
    fee_rate: float = FEE_RATE
    stable_symbol: str = STABLE_SYMBOL
    circulating_supply_ratio: float = CIRCULATING_SUPPLY_RATIO
    volume_window_ms: int = VOLUME_WINDOW_MS
    max_symbol_length: int = MAX_SYMBOL_LENGTH
