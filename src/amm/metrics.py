"""Metrics Calculator — производные рыночные метрики токена.

Read-only представление над (coin, pools, transactions):
- price: цена в стабильной валюте по самому ликвидному стабильному пулу
- volume_24h: объём за скользящее окно, оценённый по ТЕКУЩЕЙ цене
- price_change_24h: изменение за ВСЮ историю самого ликвидного пула
- market_cap = price * circulating_supply (circulating = 70% total supply)
- fdv = price * total_supply

Ничего не мутирует.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from src.amm.config import AMMConfig
from src.amm.pool_state import current_price
from src.core.domain.coin import Coin
from src.core.domain.pool import Pool
from src.core.domain.transaction import Transaction
from src.core.math.numerical_safeguards import safe_divide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CoinMetrics:
    """Метрики токена."""

    price: float
    market_cap: float
    fdv: float  # Fully Diluted Valuation
    volume_24h: float
    price_change_24h: float  # проценты
    circulating_supply: float

    @classmethod
    def empty(cls) -> "CoinMetrics":
        return cls(
            price=0.0,
            market_cap=0.0,
            fdv=0.0,
            volume_24h=0.0,
            price_change_24h=0.0,
            circulating_supply=0.0,
        )


def _most_liquid(pools: Sequence[Pool]) -> Optional[Pool]:
    """Пул с максимальной суммой резервов (при равенстве первый)."""
    best: Optional[Pool] = None
    for pool in pools:
        if best is None or pool.total_reserves > best.total_reserves:
            best = pool
    return best


class CoinMetricsCalculator:
    """Калькулятор метрик токена.

    Стабильные пулы определяются по ролям сторон (quote_is_stable), а не по
    символам токенов пула.
    """

    def __init__(self, config: AMMConfig | None = None):
        self.config = config or AMMConfig()

    def _is_stable_coin(self, coin: Coin) -> bool:
        return coin.is_stable(self.config.stable_symbol)

    def stable_pools_for(self, coin: Coin, pools: Sequence[Pool]) -> list[Pool]:
        """Пулы, где coin является BASE, а QUOTE стабильной монетой."""
        return [
            pool
            for pool in pools
            if pool.quote_is_stable and pool.base_coin.id == coin.id
        ]

    def get_current_price(self, coin: Coin, pools: Sequence[Pool]) -> float:
        """Цена токена в стабильной валюте.

        - стабильная монета → 1.0
        - иначе цена самого ликвидного стабильного пула
        - нет стабильного пула → 0.0
        """
        if self._is_stable_coin(coin):
            return 1.0

        best_pool = _most_liquid(self.stable_pools_for(coin, pools))
        if best_pool is None:
            return 0.0

        return current_price(best_pool)

    def get_24h_volume(
        self,
        coin: Coin,
        transactions: Sequence[Transaction],
        pools: Sequence[Pool],
        now_ms: int,
    ) -> float:
        """Объём за окно volume_window_ms до now_ms.

        Суммирует amount_in (если token_in == coin) или amount_out
        (если token_out == coin) по транзакциям пулов, содержащих coin,
        и оценивает по текущей цене, а не по цене на момент сделки.
        """
        window_start_ms = now_ms - self.config.volume_window_ms
        pool_ids = {pool.id for pool in pools if pool.contains_coin(coin.id)}
        price = self.get_current_price(coin, pools)

        total_volume = 0.0
        for tx in transactions:
            if tx.ts_utc_ms < window_start_ms or tx.pool_id not in pool_ids:
                continue
            if tx.token_in == coin.symbol:
                total_volume += tx.amount_in * price
            elif tx.token_out == coin.symbol:
                total_volume += tx.amount_out * price

        return total_volume

    def get_24h_price_change(self, coin: Coin, pools: Sequence[Pool]) -> float:
        """Изменение цены в процентах.

        (last.close - first.open) / first.open * 100 по всей истории самого
        ликвидного пула, содержащего coin. Окно 24h фактически не применяется.

        Returns 0.0 для стабильной монеты, при отсутствии цены или при
        истории короче двух точек.
        """
        if self._is_stable_coin(coin):
            return 0.0

        coin_pools = [pool for pool in pools if pool.contains_coin(coin.id)]
        if not coin_pools:
            return 0.0

        if self.get_current_price(coin, pools) == 0:
            return 0.0

        best_pool = _most_liquid(coin_pools)
        if len(best_pool.price_history) < 2:
            return 0.0

        initial_price = best_pool.price_history[0].open
        last_price = best_pool.price_history[-1].close
        if initial_price <= 0:
            return 0.0

        change = safe_divide(last_price - initial_price, initial_price) * 100.0

        logger.debug(
            "Price change for %s on %s: %.10g -> %.10g (%.4f%%)",
            coin.symbol,
            best_pool.pair_label,
            initial_price,
            last_price,
            change,
        )
        return change

    def get_circulating_supply(self, coin: Coin) -> float:
        return coin.total_supply * self.config.circulating_supply_ratio

    def get_market_cap(self, coin: Coin, pools: Sequence[Pool]) -> float:
        return self.get_current_price(coin, pools) * self.get_circulating_supply(coin)

    def get_fdv(self, coin: Coin, pools: Sequence[Pool]) -> float:
        return self.get_current_price(coin, pools) * coin.total_supply

    def calculate_metrics(
        self,
        coin: Coin,
        pools: Sequence[Pool],
        transactions: Sequence[Transaction],
        now_ms: int,
    ) -> CoinMetrics:
        """Все метрики токена."""
        price = self.get_current_price(coin, pools)
        circulating_supply = self.get_circulating_supply(coin)

        return CoinMetrics(
            price=price,
            market_cap=price * circulating_supply,
            fdv=price * coin.total_supply,
            volume_24h=self.get_24h_volume(coin, transactions, pools, now_ms),
            price_change_24h=self.get_24h_price_change(coin, pools),
            circulating_supply=circulating_supply,
        )


# =============================================================================
# ФОРМАТИРОВАНИЕ
# =============================================================================


def format_large_number(num: float) -> str:
    """Компактная запись: 1.20K, 3.45M, 1.00B, 2.50T."""
    if num == 0:
        return "0"

    abs_num = abs(num)
    sign = "-" if num < 0 else ""

    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")):
        if abs_num >= threshold:
            return f"{sign}{abs_num / threshold:.2f}{suffix}"

    return f"{sign}{abs_num:.2f}"


def format_price(price: float) -> str:
    """Цена с точностью по величине: $1.23, $0.0123, $0.00001234."""
    if price == 0:
        return "$0.00"
    if price >= 1:
        return f"${price:.2f}"
    if price >= 0.01:
        return f"${price:.4f}"
    return f"${price:.8f}"
