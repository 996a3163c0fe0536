"""
Тесты для Metrics Calculator

Проверяет:
1. Цену по самому ликвидному стабильному пулу
2. Market cap / FDV / circulating supply
3. Объём за окно 24h (по текущей цене)
4. Изменение цены по всей истории самого ликвидного пула
5. Форматирование чисел и цен
"""

import pytest

from src.amm.config import AMMConfig
from src.amm.metrics import (
    CoinMetrics,
    CoinMetricsCalculator,
    format_large_number,
    format_price,
)
from src.amm.pool_state import create_pool, current_price, execute_swap
from src.core.domain import DEFAULT_STABLE_COIN, Coin, Pool, Side, Transaction, TransactionType


T0 = 1_700_000_000_000
HOUR = 60 * 60 * 1000


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def calculator() -> CoinMetricsCalculator:
    return CoinMetricsCalculator()


@pytest.fixture
def usdt() -> Coin:
    return DEFAULT_STABLE_COIN


@pytest.fixture
def token() -> Coin:
    return Coin(id="tok", name="Token", symbol="TOK", color="#FF9900", total_supply=10_000_000.0)


@pytest.fixture
def other() -> Coin:
    return Coin(id="oth", name="Other", symbol="OTH", color="#0099FF", total_supply=1_000.0)


@pytest.fixture
def deep_pool(token: Coin, usdt: Coin) -> Pool:
    """Цена 0.1, сумма резервов 1 100 000"""
    return create_pool(token, usdt, 1_000_000.0, 100_000.0, now_ms=T0, pool_id="deep")


@pytest.fixture
def shallow_pool(token: Coin, usdt: Coin) -> Pool:
    """Цена 0.2, сумма резервов 1 200"""
    return create_pool(token, usdt, 1_000.0, 200.0, now_ms=T0, pool_id="shallow")


def _tx(tx_id: str, pool_id: str, token_in: str, token_out: str, amount_in: float, amount_out: float, ts: int) -> Transaction:
    return Transaction(
        id=tx_id,
        pool_id=pool_id,
        type=TransactionType.SELL,
        amount_in=amount_in,
        amount_out=amount_out,
        token_in=token_in,
        token_out=token_out,
        ts_utc_ms=ts,
        price=0.1,
    )


# =============================================================================
# ЦЕНА
# =============================================================================


class TestCurrentPrice:
    """Тесты get_current_price"""

    def test_stable_coin_is_one(self, calculator: CoinMetricsCalculator, usdt: Coin, deep_pool: Pool) -> None:
        assert calculator.get_current_price(usdt, [deep_pool]) == 1.0

    def test_most_liquid_pool_wins(
        self, calculator: CoinMetricsCalculator, token: Coin, shallow_pool: Pool, deep_pool: Pool
    ) -> None:
        assert calculator.get_current_price(token, [shallow_pool, deep_pool]) == pytest.approx(0.1)

    def test_tie_keeps_first_pool(self, calculator: CoinMetricsCalculator, token: Coin, usdt: Coin) -> None:
        first = create_pool(token, usdt, 1_000.0, 100.0, now_ms=T0, pool_id="first")
        second = create_pool(token, usdt, 900.0, 200.0, now_ms=T0, pool_id="second")

        assert calculator.get_current_price(token, [first, second]) == pytest.approx(0.1)

    def test_stable_on_side_a(self, calculator: CoinMetricsCalculator, token: Coin, usdt: Coin) -> None:
        """USDT/TOK: цена TOK всё равно в USDT"""
        pool = create_pool(usdt, token, 100_000.0, 1_000_000.0, now_ms=T0)
        assert calculator.get_current_price(token, [pool]) == pytest.approx(0.1)

    def test_no_stable_pool(self, calculator: CoinMetricsCalculator, token: Coin, other: Coin) -> None:
        cross = create_pool(token, other, 1_000.0, 10.0, now_ms=T0)
        assert calculator.get_current_price(token, [cross]) == 0.0
        assert calculator.get_current_price(token, []) == 0.0

    def test_stable_pools_for_excludes_quote_side(
        self, calculator: CoinMetricsCalculator, usdt: Coin, deep_pool: Pool
    ) -> None:
        assert calculator.stable_pools_for(usdt, [deep_pool]) == []


# =============================================================================
# SUPPLY / CAP
# =============================================================================


class TestValuation:
    """Тесты market cap / FDV"""

    def test_market_cap_and_fdv(self, calculator: CoinMetricsCalculator, token: Coin, deep_pool: Pool) -> None:
        assert calculator.get_circulating_supply(token) == pytest.approx(7_000_000.0)
        assert calculator.get_market_cap(token, [deep_pool]) == pytest.approx(700_000.0)
        assert calculator.get_fdv(token, [deep_pool]) == pytest.approx(1_000_000.0)

    def test_custom_circulating_ratio(self, token: Coin) -> None:
        calculator = CoinMetricsCalculator(AMMConfig(circulating_supply_ratio=0.5))
        assert calculator.get_circulating_supply(token) == pytest.approx(5_000_000.0)


# =============================================================================
# ОБЪЁМ
# =============================================================================


class TestVolume:
    """Тесты get_24h_volume"""

    def test_no_transactions(self, calculator: CoinMetricsCalculator, token: Coin, deep_pool: Pool) -> None:
        assert calculator.get_24h_volume(token, [], [deep_pool], now_ms=T0) == 0.0

    def test_window_and_pool_filter(self, calculator: CoinMetricsCalculator, token: Coin, deep_pool: Pool) -> None:
        now = T0 + 30 * HOUR
        transactions = [
            _tx("t1", "deep", "TOK", "USDT", 1_000.0, 99.0, now - HOUR),
            _tx("t2", "deep", "USDT", "TOK", 60.0, 500.0, now - 2 * HOUR),
            _tx("t3", "deep", "TOK", "USDT", 9_999.0, 900.0, now - 25 * HOUR),
            _tx("t4", "elsewhere", "TOK", "USDT", 9_999.0, 900.0, now),
        ]

        volume = calculator.get_24h_volume(token, transactions, [deep_pool], now_ms=now)

        # (1 000 + 500) TOK по текущей цене 0.1
        assert volume == pytest.approx(150.0)

    def test_stable_coin_volume(self, calculator: CoinMetricsCalculator, usdt: Coin, deep_pool: Pool) -> None:
        transactions = [_tx("t1", "deep", "TOK", "USDT", 1_000.0, 99.0, T0)]
        assert calculator.get_24h_volume(usdt, transactions, [deep_pool], now_ms=T0) == pytest.approx(99.0)


# =============================================================================
# ИЗМЕНЕНИЕ ЦЕНЫ
# =============================================================================


class TestPriceChange:
    """Тесты get_24h_price_change"""

    def test_single_point_history(self, calculator: CoinMetricsCalculator, token: Coin, deep_pool: Pool) -> None:
        assert calculator.get_24h_price_change(token, [deep_pool]) == 0.0

    def test_change_over_full_history(self, calculator: CoinMetricsCalculator, token: Coin, deep_pool: Pool) -> None:
        pool = execute_swap(deep_pool, 10_000.0, Side.A, now_ms=T0 + HOUR).updated_pool
        pool = execute_swap(pool, 50_000.0, Side.A, now_ms=T0 + 48 * HOUR).updated_pool

        change = calculator.get_24h_price_change(token, [pool])

        expected = (current_price(pool) - 0.1) / 0.1 * 100
        assert change == pytest.approx(expected)
        assert change < 0

    def test_stable_coin_no_change(self, calculator: CoinMetricsCalculator, usdt: Coin, deep_pool: Pool) -> None:
        pool = execute_swap(deep_pool, 10_000.0, Side.A, now_ms=T0 + 1).updated_pool
        assert calculator.get_24h_price_change(usdt, [pool]) == 0.0

    def test_no_price_no_change(self, calculator: CoinMetricsCalculator, token: Coin, other: Coin) -> None:
        cross = create_pool(token, other, 1_000.0, 10.0, now_ms=T0)
        cross = execute_swap(cross, 100.0, Side.A, now_ms=T0 + 1).updated_pool
        assert calculator.get_24h_price_change(token, [cross]) == 0.0


# =============================================================================
# ВСЕ МЕТРИКИ
# =============================================================================


class TestCalculateMetrics:
    """Тесты calculate_metrics"""

    def test_full_metrics(self, calculator: CoinMetricsCalculator, token: Coin, deep_pool: Pool) -> None:
        metrics = calculator.calculate_metrics(token, [deep_pool], [], now_ms=T0)

        assert metrics.price == pytest.approx(0.1)
        assert metrics.market_cap == pytest.approx(700_000.0)
        assert metrics.fdv == pytest.approx(1_000_000.0)
        assert metrics.volume_24h == 0.0
        assert metrics.price_change_24h == 0.0
        assert metrics.circulating_supply == pytest.approx(7_000_000.0)

    def test_empty_metrics(self) -> None:
        empty = CoinMetrics.empty()
        assert empty.price == empty.market_cap == empty.volume_24h == 0.0


# =============================================================================
# ФОРМАТИРОВАНИЕ
# =============================================================================


class TestFormatting:
    """Тесты format_large_number / format_price"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "0"),
            (12.5, "12.50"),
            (1_234.0, "1.23K"),
            (1_500_000.0, "1.50M"),
            (1_000_000_000.0, "1.00B"),
            (2_500_000_000_000.0, "2.50T"),
            (-2_000_000.0, "-2.00M"),
        ],
    )
    def test_format_large_number(self, value: float, expected: str) -> None:
        assert format_large_number(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "$0.00"),
            (1.5, "$1.50"),
            (0.0123, "$0.0123"),
            (0.00001234, "$0.00001234"),
        ],
    )
    def test_format_price(self, value: float, expected: str) -> None:
        assert format_price(value) == expected
