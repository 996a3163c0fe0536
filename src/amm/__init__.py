"""AMM — пулы, ledger, свечи и метрики поверх core.

- Pool State Machine: создание пулов и применение свопов
- Candle Aggregator: OHLC свёртка ценовой истории
- Transaction Ledger: append-only журнал с одношаговым undo
- Metrics Calculator: price, market cap, FDV, 24h volume/change
- AMMEngine: контроллер над снапшотом AMMState
"""

from .config import AMMConfig
from .engine import AMMEngine, CoinResult, EngineResult, PoolResult, TradeResult
from .candles import TIMEFRAMES, AggregationResult, Candle, TimeFrame
from .ledger import UndoResult
from .metrics import CoinMetrics, CoinMetricsCalculator
from .pool_state import SwapResult, current_price

__all__ = [
    "AMMConfig",
    "AMMEngine",
    "CoinResult",
    "EngineResult",
    "PoolResult",
    "TradeResult",
    "TIMEFRAMES",
    "AggregationResult",
    "Candle",
    "TimeFrame",
    "UndoResult",
    "CoinMetrics",
    "CoinMetricsCalculator",
    "SwapResult",
    "current_price",
]
