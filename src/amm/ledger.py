"""Transaction Ledger — append-only журнал свопов с одношаговым undo.

Ledger: кортеж Transaction в порядке исполнения. Единственная операция
удаления это undo последней записи. Резервы пула восстанавливаются точной
алгебраической инверсией обновления резервов свопа, из price_history
удаляется последняя точка (добавленная этим свопом).

Инверсия (side: сторона входного токена):
- SELL (A внесён): reserve_a = reserve_a' - amount_in,  reserve_b = reserve_b' + amount_out
- BUY  (B внесён): reserve_a = reserve_a' + amount_out, reserve_b = reserve_b' - amount_in

Корректность опирается на то, что undo всегда применяется к хвосту ledger, а
пул мутируется только свопом, добавившим соответствующую транзакцию.
Redo и многошаговый undo не поддерживаются.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from src.amm.pool_state import SwapResult, current_price
from src.core.domain.pool import Pool, Side
from src.core.domain.transaction import Transaction, TransactionType
from src.core.errors import ErrorCode, InvariantViolation

logger = logging.getLogger(__name__)

Ledger = tuple[Transaction, ...]


@dataclass(frozen=True)
class UndoResult:
    """Результат undo последней транзакции."""

    ledger: Ledger  # ledger после undo (без изменений при ошибке)
    pool: Optional[Pool]  # восстановленный пул
    undone: Optional[Transaction]  # отменённая транзакция
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


def append(ledger: Ledger, tx: Transaction) -> Ledger:
    """Добавление транзакции в конец ledger."""
    return ledger + (tx,)


def can_undo(ledger: Sequence[Transaction]) -> bool:
    return len(ledger) > 0


def transaction_type_for(side: Side) -> TransactionType:
    """Тип транзакции по стороне входного токена (относительно токена A)."""
    return TransactionType.SELL if side is Side.A else TransactionType.BUY


def record_swap(
    pool_before: Pool,
    swap: SwapResult,
    side: Side,
    amount_in: float,
    now_ms: int,
    tx_id: Optional[str] = None,
) -> Transaction:
    """Построение записи ledger для успешно применённого свопа.

    Raises:
        ValueError: swap не успешен
    """
    if not swap.success or swap.updated_pool is None:
        raise ValueError(f"Cannot record failed swap: {swap.details}")

    return Transaction(
        id=tx_id or f"tx-{now_ms}",
        pool_id=pool_before.id,
        type=transaction_type_for(side),
        amount_in=amount_in,
        amount_out=swap.amount_out,
        token_in=pool_before.coin_of(side).symbol,
        token_out=pool_before.coin_of(side.opposite()).symbol,
        ts_utc_ms=now_ms,
        price=current_price(swap.updated_pool),
    )


def _restore_reserves(pool: Pool, tx: Transaction) -> tuple[float, float]:
    if tx.type is TransactionType.SELL:
        return pool.reserve_a - tx.amount_in, pool.reserve_b + tx.amount_out
    return pool.reserve_a + tx.amount_out, pool.reserve_b - tx.amount_in


def undo_last(ledger: Ledger, pools: Sequence[Pool]) -> UndoResult:
    """Отмена последней транзакции ledger.

    Args:
        ledger: текущий ledger
        pools: текущие пулы реестра

    Returns:
        UndoResult с новым ledger и восстановленным пулом, либо:
        - NOTHING_TO_UNDO: ledger пуст
        - POOL_NOT_FOUND: пул транзакции отсутствует в реестре

    Raises:
        InvariantViolation: восстановленный резерв неположителен, либо
        у пула нет точки истории для удаления
    """
    if not ledger:
        logger.warning("Undo requested on empty ledger")
        return UndoResult(
            ledger=ledger,
            pool=None,
            undone=None,
            error=ErrorCode.NOTHING_TO_UNDO,
            details="No transactions to undo",
        )

    tx = ledger[-1]
    pool = next((p for p in pools if p.id == tx.pool_id), None)
    if pool is None:
        logger.warning("Undo target pool %s not found for %s", tx.pool_id, tx.id)
        return UndoResult(
            ledger=ledger,
            pool=None,
            undone=None,
            error=ErrorCode.POOL_NOT_FOUND,
            details=f"Pool '{tx.pool_id}' not found for transaction '{tx.id}'",
        )

    reserve_a, reserve_b = _restore_reserves(pool, tx)
    if reserve_a <= 0 or reserve_b <= 0:
        raise InvariantViolation(
            f"Undo of {tx.id} would leave non-positive reserves on {pool.id}: "
            f"A={reserve_a}, B={reserve_b}"
        )
    if len(pool.price_history) < 2:
        raise InvariantViolation(
            f"Undo of {tx.id}: pool {pool.id} has no swap price point to remove"
        )

    restored_pool = pool.model_copy(
        update={
            "reserve_a": reserve_a,
            "reserve_b": reserve_b,
            "price_history": pool.price_history[:-1],
        }
    )

    logger.info(
        "Transaction undone: %s on %s, reserves (%.10g, %.10g) -> (%.10g, %.10g)",
        tx.id,
        pool.pair_label,
        pool.reserve_a,
        pool.reserve_b,
        reserve_a,
        reserve_b,
    )

    return UndoResult(
        ledger=ledger[:-1],
        pool=restored_pool,
        undone=tx,
        error=None,
        details=f"Undone {tx.type.value} {tx.amount_in} {tx.token_in}",
    )
