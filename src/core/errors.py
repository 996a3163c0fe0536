"""
Errors — таксономия ошибок AMM движка

Два канала сигнализации:
- ErrorCode: ожидаемые, восстанавливаемые вызывающей стороной ситуации.
  Возвращаются как явные значения в result-объектах (quote-as-you-type,
  undo при пустом ledger и т.д.), исключения не бросаются.
- InvariantViolation: недостижимое состояние (отрицательный резерв и т.п.).
  Бросается и никогда не перехватывается внутри библиотеки.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Код доменной ошибки"""

    INVALID_AMOUNT = "INVALID_AMOUNT"  # amount <= 0, NaN/Inf, резерв <= 0
    RESERVE_EXHAUSTED = "RESERVE_EXHAUSTED"  # запрошенный output >= резерва
    UNKNOWN_COIN = "UNKNOWN_COIN"  # coin id не найден в реестре
    UNKNOWN_POOL = "UNKNOWN_POOL"  # pool id не найден в реестре
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"  # ledger пуст
    POOL_NOT_FOUND = "POOL_NOT_FOUND"  # pool для undo больше не существует
    COIN_IN_USE = "COIN_IN_USE"  # coin используется активным пулом
    INVALID_COIN = "INVALID_COIN"  # некорректный/дублирующийся символ, supply <= 0
    INVALID_TIMEFRAME = "INVALID_TIMEFRAME"  # ширина бакета <= 0 / неизвестный таймфрейм


class InvariantViolation(Exception):
    """
    Нарушение инварианта пула (недостижимое состояние).

    Возникает, если после применения свопа или его отмены резерв становится
    неположительным. При корректном использовании API это невозможно:
    amount_out < reserve_out для любого конечного amount_in > 0, а undo всегда
    применяется к хвосту ledger.
    """

    pass
