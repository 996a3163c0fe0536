"""Candle/OHLC Aggregator — свёртка ценовой истории пула в свечи таймфрейма.

Чистая, детерминированная, перезапускаемая свёртка:
- bucket_start = floor(ts / width) * width
- open  = open первой точки бакета (в исходном порядке)
- high  = max(high), low = min(low)
- close = close последней точки бакета (в исходном порядке)
- volume = sum(volume)

Свечи не хранятся по таймфреймам, а вычисляются по запросу.
"""

from dataclasses import dataclass
from typing import Final, Optional, Sequence

from src.core.domain.pool import PricePoint
from src.core.errors import ErrorCode


# =============================================================================
# ТАЙМФРЕЙМЫ
# =============================================================================

MINUTE_MS: Final[int] = 60 * 1000
HOUR_MS: Final[int] = 60 * MINUTE_MS
DAY_MS: Final[int] = 24 * HOUR_MS


@dataclass(frozen=True)
class TimeFrame:
    """Таймфрейм графика."""

    value: str  # например, "15m"
    label: str  # например, "15 Minutes"
    interval_ms: int


TIMEFRAMES: Final[tuple[TimeFrame, ...]] = (
    TimeFrame("1m", "1 Minute", MINUTE_MS),
    TimeFrame("5m", "5 Minutes", 5 * MINUTE_MS),
    TimeFrame("15m", "15 Minutes", 15 * MINUTE_MS),
    TimeFrame("1h", "1 Hour", HOUR_MS),
    TimeFrame("4h", "4 Hours", 4 * HOUR_MS),
    TimeFrame("1d", "1 Day", DAY_MS),
)


def get_timeframe(value: str) -> TimeFrame:
    """Поиск таймфрейма по значению.

    Raises:
        KeyError: неизвестный таймфрейм
    """
    for timeframe in TIMEFRAMES:
        if timeframe.value == value:
            return timeframe
    raise KeyError(f"Unknown timeframe '{value}'")


# =============================================================================
# СВЕЧИ
# =============================================================================


@dataclass(frozen=True)
class Candle:
    """OHLCV свеча таймфрейма."""

    bucket_start_ms: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    trade_count: int  # число исходных точек в бакете


@dataclass(frozen=True)
class AggregationResult:
    """Результат агрегации."""

    candles: tuple[Candle, ...]
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


def aggregate(
    price_history: Sequence[PricePoint],
    bucket_width_ms: int,
) -> AggregationResult:
    """Агрегация ценовой истории в свечи фиксированной ширины.

    Args:
        price_history: точки в порядке добавления
        bucket_width_ms: ширина бакета (> 0)

    Returns:
        AggregationResult со свечами по возрастанию bucket_start_ms,
        либо INVALID_TIMEFRAME при ширине <= 0
    """
    if isinstance(bucket_width_ms, bool) or not isinstance(bucket_width_ms, int) or bucket_width_ms <= 0:
        return AggregationResult(
            candles=(),
            error=ErrorCode.INVALID_TIMEFRAME,
            details=f"bucket_width_ms must be a positive integer, got {bucket_width_ms!r}",
        )

    # bucket_start -> [open, high, low, close, volume, count]
    buckets: dict[int, list] = {}

    for point in price_history:
        bucket_start = (point.ts_utc_ms // bucket_width_ms) * bucket_width_ms
        bucket = buckets.get(bucket_start)

        if bucket is None:
            buckets[bucket_start] = [
                point.open,
                point.high,
                point.low,
                point.close,
                point.volume,
                1,
            ]
            continue

        bucket[1] = max(bucket[1], point.high)
        bucket[2] = min(bucket[2], point.low)
        bucket[3] = point.close
        bucket[4] += point.volume
        bucket[5] += 1

    candles = tuple(
        Candle(
            bucket_start_ms=bucket_start,
            open=b[0],
            high=b[1],
            low=b[2],
            close=b[3],
            volume=b[4],
            trade_count=b[5],
        )
        for bucket_start, b in sorted(buckets.items())
    )

    return AggregationResult(
        candles=candles,
        error=None,
        details=f"{len(price_history)} points -> {len(candles)} candles",
    )


def aggregate_timeframe(
    price_history: Sequence[PricePoint],
    timeframe: str,
) -> AggregationResult:
    """Агрегация по таймфрейму из каталога (например, "1h")."""
    try:
        interval_ms = get_timeframe(timeframe).interval_ms
    except KeyError as e:
        return AggregationResult(
            candles=(),
            error=ErrorCode.INVALID_TIMEFRAME,
            details=e.args[0],
        )
    return aggregate(price_history, interval_ms)
