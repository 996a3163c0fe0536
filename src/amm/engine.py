"""AMMEngine — контроллер приложения над снапшотом AMMState.

Заменяет глобальный reducer: каждая операция вычисляет новый AMMState и
заменяет текущий целиком. Своп и запись в ledger фиксируются одной заменой
состояния, поэтому рассинхронизация резервов и ledger не наблюдаема.

Движок однопоточный: при доступе из нескольких источников событий
вызывающая сторона сериализует вызовы (например, очередь на pool_id).
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from src.amm import ledger as ledger_ops
from src.amm.candles import AggregationResult, aggregate, aggregate_timeframe
from src.amm.config import AMMConfig
from src.amm.ledger import UndoResult
from src.amm.metrics import CoinMetrics, CoinMetricsCalculator
from src.amm.pool_state import (
    create_pool,
    execute_swap,
    quote_for_pool,
    required_input_for_pool,
)
from src.core.contracts import validate_amm_state
from src.core.domain.amm_state import AMMState
from src.core.domain.coin import Coin
from src.core.domain.pool import Pool, Side
from src.core.domain.transaction import Transaction
from src.core.errors import ErrorCode
from src.core.math.constant_product import QuoteResult, RequiredInputResult
from src.core.math.numerical_safeguards import is_valid_float

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class EngineResult:
    """Результат операции контроллера без полезной нагрузки."""

    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CoinResult:
    """Результат create_coin."""

    coin: Optional[Coin]
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PoolResult:
    """Результат create_pool."""

    pool: Optional[Pool]
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TradeResult:
    """Результат execute_swap (своп + запись в ledger)."""

    transaction: Optional[Transaction]
    pool: Optional[Pool]
    amount_out: float
    price_impact: float
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


# =============================================================================
# ENGINE
# =============================================================================


class AMMEngine:
    """Контроллер AMM: реестр токенов/пулов, свопы, undo, метрики.

    Операции:
    - create_coin / delete_coin
    - create_pool
    - get_swap_quote / get_required_input
    - execute_swap / undo_last_transaction
    - get_candles / get_coin_metrics
    - reset_all_data
    - from_snapshot / to_snapshot (граница с persistence-слоем)
    """

    def __init__(
        self,
        state: Optional[AMMState] = None,
        config: Optional[AMMConfig] = None,
    ):
        """
        Args:
            state: начальный снапшот (default: AMMState.initial())
            config: протокольные константы (default: AMMConfig())
        """
        self.config = config or AMMConfig()
        self._state = state if state is not None else AMMState.initial()
        self._metrics = CoinMetricsCalculator(self.config)

    # -------------------------------------------------------------------------
    # Состояние
    # -------------------------------------------------------------------------

    @property
    def state(self) -> AMMState:
        return self._state

    @property
    def coins(self) -> tuple[Coin, ...]:
        return self._state.coins

    @property
    def pools(self) -> tuple[Pool, ...]:
        return self._state.pools

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._state.transactions

    @property
    def can_undo(self) -> bool:
        return ledger_ops.can_undo(self._state.transactions)

    @classmethod
    def from_snapshot(
        cls,
        data: dict[str, Any],
        config: Optional[AMMConfig] = None,
    ) -> "AMMEngine":
        """Создание движка из снапшота реестра (plain dict).

        Raises:
            jsonschema.ValidationError: снапшот не соответствует amm_state.json
            pydantic.ValidationError: нарушены инварианты модели
        """
        validate_amm_state(data)
        return cls(state=AMMState.model_validate(data), config=config)

    def to_snapshot(self) -> dict[str, Any]:
        """JSON-совместимый снапшот реестра для persistence-слоя."""
        return self._state.model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Coins
    # -------------------------------------------------------------------------

    def create_coin(
        self,
        name: str,
        symbol: str,
        color: str,
        total_supply: float,
        now_ms: Optional[int] = None,
    ) -> CoinResult:
        """Регистрация нового токена.

        Символ приводится к uppercase; должен быть уникален и не длиннее
        max_symbol_length.
        """
        now_ms = _now_ms() if now_ms is None else now_ms
        symbol = symbol.strip().upper()

        if not symbol or len(symbol) > self.config.max_symbol_length:
            return self._coin_failure(
                f"symbol '{symbol}' must be 1-{self.config.max_symbol_length} characters"
            )
        if self._state.find_coin_by_symbol(symbol) is not None:
            return self._coin_failure(f"symbol '{symbol}' already exists")
        if not is_valid_float(total_supply) or total_supply <= 0:
            return self._coin_failure(f"total_supply must be positive, got {total_supply}")

        try:
            coin = Coin(
                id=f"{symbol.lower()}-{now_ms}",
                name=name,
                symbol=symbol,
                color=color,
                total_supply=total_supply,
            )
        except ValidationError as e:
            return self._coin_failure(f"invalid coin: {e.errors()[0]['msg']}")

        self._state = self._state.model_copy(update={"coins": self._state.coins + (coin,)})
        logger.info("Coin created: %s (%s)", coin.symbol, coin.id)
        return CoinResult(coin=coin, error=None, details=f"Created {coin.symbol}")

    def _coin_failure(self, details: str) -> CoinResult:
        logger.warning("Coin creation rejected: %s", details)
        return CoinResult(coin=None, error=ErrorCode.INVALID_COIN, details=details)

    def delete_coin(self, coin_id: str) -> EngineResult:
        """Удаление токена, на который не ссылается ни один пул.

        Вместе с токеном удаляются транзакции, где он token_in или token_out.
        """
        coin = self._state.find_coin(coin_id)
        if coin is None:
            logger.warning("Delete rejected: unknown coin %s", coin_id)
            return EngineResult(error=ErrorCode.UNKNOWN_COIN, details=f"Coin '{coin_id}' not found")

        in_use = [pool.id for pool in self._state.pools if pool.contains_coin(coin_id)]
        if in_use:
            logger.warning("Delete rejected: %s used by pools %s", coin.symbol, in_use)
            return EngineResult(
                error=ErrorCode.COIN_IN_USE,
                details=f"Coin '{coin.symbol}' is referenced by {len(in_use)} active pool(s)",
            )

        self._state = self._state.model_copy(
            update={
                "coins": tuple(c for c in self._state.coins if c.id != coin_id),
                "transactions": tuple(
                    tx for tx in self._state.transactions if not tx.involves(coin.symbol)
                ),
            }
        )
        logger.info("Coin deleted: %s (%s)", coin.symbol, coin_id)
        return EngineResult(error=None, details=f"Deleted {coin.symbol}")

    # -------------------------------------------------------------------------
    # Pools
    # -------------------------------------------------------------------------

    def create_pool(
        self,
        coin_a_id: str,
        coin_b_id: str,
        reserve_a: float,
        reserve_b: float,
        now_ms: Optional[int] = None,
    ) -> PoolResult:
        """Создание пула из зарегистрированных токенов."""
        now_ms = _now_ms() if now_ms is None else now_ms

        coin_a = self._state.find_coin(coin_a_id)
        coin_b = self._state.find_coin(coin_b_id)
        missing = [cid for cid, c in ((coin_a_id, coin_a), (coin_b_id, coin_b)) if c is None]
        if missing:
            logger.warning("Pool creation rejected: unknown coins %s", missing)
            return PoolResult(
                pool=None,
                error=ErrorCode.UNKNOWN_COIN,
                details=f"Coins not found: {', '.join(missing)}",
            )

        if coin_a.id == coin_b.id:
            return PoolResult(
                pool=None,
                error=ErrorCode.INVALID_COIN,
                details="Pool requires two distinct coins",
            )

        for name, value in (("reserve_a", reserve_a), ("reserve_b", reserve_b)):
            if not is_valid_float(value) or value <= 0:
                return PoolResult(
                    pool=None,
                    error=ErrorCode.INVALID_AMOUNT,
                    details=f"{name} must be positive, got {value}",
                )

        pool_id = f"{coin_a.id}-{coin_b.id}-{now_ms}"
        if self._state.find_pool(pool_id) is not None:
            pool_id = f"{pool_id}-{len(self._state.pools)}"

        pool = create_pool(
            coin_a,
            coin_b,
            reserve_a,
            reserve_b,
            now_ms=now_ms,
            pool_id=pool_id,
            stable_symbol=self.config.stable_symbol,
        )
        self._state = self._state.model_copy(update={"pools": self._state.pools + (pool,)})
        return PoolResult(pool=pool, error=None, details=f"Created {pool.pair_label}")

    # -------------------------------------------------------------------------
    # Quotes & swaps
    # -------------------------------------------------------------------------

    def get_swap_quote(self, pool_id: str, amount_in: float, side: Side) -> QuoteResult:
        """Предпросмотр свопа без изменения состояния."""
        pool = self._state.find_pool(pool_id)
        if pool is None:
            return QuoteResult(
                quote=None,
                error=ErrorCode.UNKNOWN_POOL,
                details=f"Pool '{pool_id}' not found",
            )
        result = quote_for_pool(pool, amount_in, side, fee_rate=self.config.fee_rate)
        logger.debug("Quote %s side=%s in=%s: %s", pool_id, side.value, amount_in, result.details)
        return result

    def get_required_input(self, pool_id: str, amount_out: float, side: Side) -> RequiredInputResult:
        """Сколько внести на стороне side, чтобы получить amount_out."""
        pool = self._state.find_pool(pool_id)
        if pool is None:
            return RequiredInputResult(
                amount_in=None,
                error=ErrorCode.UNKNOWN_POOL,
                details=f"Pool '{pool_id}' not found",
            )
        return required_input_for_pool(pool, amount_out, side, fee_rate=self.config.fee_rate)

    def execute_swap(
        self,
        pool_id: str,
        amount_in: float,
        side: Side,
        now_ms: Optional[int] = None,
    ) -> TradeResult:
        """Исполнение свопа: обновление пула и запись в ledger одной заменой состояния."""
        now_ms = _now_ms() if now_ms is None else now_ms

        pool = self._state.find_pool(pool_id)
        if pool is None:
            logger.warning("Swap rejected: unknown pool %s", pool_id)
            return TradeResult(
                transaction=None,
                pool=None,
                amount_out=0.0,
                price_impact=0.0,
                error=ErrorCode.UNKNOWN_POOL,
                details=f"Pool '{pool_id}' not found",
            )

        swap = execute_swap(pool, amount_in, side, now_ms, fee_rate=self.config.fee_rate)
        if not swap.success:
            return TradeResult(
                transaction=None,
                pool=None,
                amount_out=0.0,
                price_impact=0.0,
                error=swap.error,
                details=swap.details,
            )

        tx = ledger_ops.record_swap(
            pool,
            swap,
            side,
            amount_in,
            now_ms,
            tx_id=f"tx-{now_ms}-{len(self._state.transactions)}",
        )

        self._state = self._state.model_copy(
            update={
                "pools": self._state.replace_pool(swap.updated_pool),
                "transactions": ledger_ops.append(self._state.transactions, tx),
            }
        )

        return TradeResult(
            transaction=tx,
            pool=swap.updated_pool,
            amount_out=swap.amount_out,
            price_impact=swap.quote.price_impact,
            error=None,
            details=swap.details,
        )

    def undo_last_transaction(self) -> UndoResult:
        """Отмена последнего свопа (один шаг, без redo)."""
        result = ledger_ops.undo_last(self._state.transactions, self._state.pools)
        if not result.success:
            return result

        self._state = self._state.model_copy(
            update={
                "pools": self._state.replace_pool(result.pool),
                "transactions": result.ledger,
            }
        )
        return result

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    def get_candles(self, pool_id: str, timeframe: Union[str, int]) -> AggregationResult:
        """Свечи пула для таймфрейма ("1h") или произвольной ширины бакета (мс)."""
        pool = self._state.find_pool(pool_id)
        if pool is None:
            return AggregationResult(
                candles=(),
                error=ErrorCode.UNKNOWN_POOL,
                details=f"Pool '{pool_id}' not found",
            )
        if isinstance(timeframe, str):
            return aggregate_timeframe(pool.price_history, timeframe)
        return aggregate(pool.price_history, timeframe)

    def get_coin_metrics(self, coin_id: str, now_ms: Optional[int] = None) -> CoinMetrics:
        """Метрики токена; нулевые метрики для неизвестного токена."""
        now_ms = _now_ms() if now_ms is None else now_ms

        coin = self._state.find_coin(coin_id)
        if coin is None:
            logger.warning("Metrics requested for unknown coin %s", coin_id)
            return CoinMetrics.empty()

        metrics = self._metrics.calculate_metrics(
            coin, self._state.pools, self._state.transactions, now_ms
        )
        logger.debug("Metrics for %s: %s", coin.symbol, metrics)
        return metrics

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset_all_data(self) -> None:
        """Сброс реестра: остаётся только стабильная монета."""
        stable_coin = Coin(
            id=f"{self.config.stable_symbol.lower()}-initial",
            name="Tether USD",
            symbol=self.config.stable_symbol,
            color="#26a69a",
            total_supply=1_000_000_000.0,
        )
        self._state = AMMState(coins=(stable_coin,))
        logger.info("All data reset")
