"""
ConstantProduct — Pricing Engine для constant-product AMM (x * y = k)

Модуль вычисляет котировки свопов против заданных резервов:
- amount_out для заданного amount_in (с учётом fee)
- amount_in, необходимый для заданного amount_out (обратная формула)
- price impact и fee
- LP-математику (mint/burn долей пула)

Все функции чистые: без состояния и побочных эффектов. Котировки
(quote_swap, quote_required_input) сигнализируют доменные ошибки явными
значениями в result-объектах, так как вызываются спекулятивно
(quote-as-you-type).

ФОРМУЛЫ:
    k            = reserve_in * reserve_out
    effective_in = amount_in * (1 - fee_rate)
    reserve_in'  = reserve_in + effective_in
    reserve_out' = k / reserve_in'
    amount_out   = reserve_out - reserve_out'
    price_impact = |(reserve_out'/reserve_in' - reserve_out/reserve_in) / (reserve_out/reserve_in)| * 100
    fee          = amount_in * fee_rate

    amount_in (inverse) = reserve_in * amount_out / ((reserve_out - amount_out) * (1 - fee_rate))
"""

import math
from dataclasses import dataclass
from typing import Final, Optional

from src.core.errors import ErrorCode
from src.core.math.numerical_safeguards import is_valid_float, validate_non_negative, validate_positive


# =============================================================================
# ПРОТОКОЛЬНЫЕ КОНСТАНТЫ
# =============================================================================

# Комиссия свопа (0.3%), остаётся в пуле
FEE_RATE: Final[float] = 0.003


# =============================================================================
# ТИПЫ
# =============================================================================


@dataclass(frozen=True)
class SwapQuote:
    """Котировка свопа против резервов."""

    amount_in: float
    amount_out: float
    price_impact: float  # проценты, например 1.96 означает 1.96%
    fee: float  # в единицах входного токена
    new_price: float  # reserve_out' / reserve_in'


@dataclass(frozen=True)
class QuoteResult:
    """Результат quote_swap."""

    quote: Optional[SwapQuote]
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class RequiredInputResult:
    """Результат quote_required_input."""

    amount_in: Optional[float]
    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


# =============================================================================
# КОТИРОВКИ
# =============================================================================


def _reserves_invalid(reserve_in: float, reserve_out: float) -> bool:
    return not (
        is_valid_float(reserve_in)
        and is_valid_float(reserve_out)
        and reserve_in > 0
        and reserve_out > 0
    )


def quote_swap(
    amount_in: float,
    reserve_in: float,
    reserve_out: float,
    fee_rate: float = FEE_RATE,
) -> QuoteResult:
    """
    Котировка свопа: сколько получим за amount_in.

    Args:
        amount_in: Количество входного токена (> 0)
        reserve_in: Резерв входного токена в пуле (> 0)
        reserve_out: Резерв выходного токена в пуле (> 0)
        fee_rate: Комиссия (default: FEE_RATE)

    Returns:
        QuoteResult с SwapQuote или кодом ошибки:
        - INVALID_AMOUNT: amount_in <= 0 / NaN / Inf, резерв <= 0, либо amount_out
          округлился до нуля
        - RESERVE_EXHAUSTED: amount_out >= reserve_out (недостижимо для конечного amount_in)
    """
    if not is_valid_float(amount_in) or amount_in <= 0:
        return QuoteResult(
            quote=None,
            error=ErrorCode.INVALID_AMOUNT,
            details=f"amount_in must be positive and finite, got {amount_in}",
        )

    if _reserves_invalid(reserve_in, reserve_out):
        return QuoteResult(
            quote=None,
            error=ErrorCode.INVALID_AMOUNT,
            details=f"Reserves must be positive, got reserve_in={reserve_in}, reserve_out={reserve_out}",
        )

    k = reserve_in * reserve_out
    amount_in_with_fee = amount_in * (1.0 - fee_rate)
    new_reserve_in = reserve_in + amount_in_with_fee
    new_reserve_out = k / new_reserve_in
    amount_out = reserve_out - new_reserve_out

    if amount_out >= reserve_out:
        return QuoteResult(
            quote=None,
            error=ErrorCode.RESERVE_EXHAUSTED,
            details=f"amount_out {amount_out} would drain reserve_out {reserve_out}",
        )

    # Вход ниже точности float относительно резерва
    if amount_out <= 0:
        return QuoteResult(
            quote=None,
            error=ErrorCode.INVALID_AMOUNT,
            details=f"amount_in {amount_in} too small to produce output",
        )

    price_before = reserve_out / reserve_in
    price_after = new_reserve_out / new_reserve_in
    price_impact = abs((price_after - price_before) / price_before) * 100.0

    return QuoteResult(
        quote=SwapQuote(
            amount_in=amount_in,
            amount_out=amount_out,
            price_impact=price_impact,
            fee=amount_in * fee_rate,
            new_price=price_after,
        ),
        error=None,
        details=f"out={amount_out:.8f}, impact={price_impact:.4f}%",
    )


def quote_required_input(
    amount_out: float,
    reserve_in: float,
    reserve_out: float,
    fee_rate: float = FEE_RATE,
) -> RequiredInputResult:
    """
    Обратная котировка: сколько нужно отдать, чтобы получить amount_out.

    Args:
        amount_out: Желаемое количество выходного токена (0 < amount_out < reserve_out)
        reserve_in: Резерв входного токена
        reserve_out: Резерв выходного токена
        fee_rate: Комиссия (default: FEE_RATE)

    Returns:
        RequiredInputResult с amount_in или кодом ошибки:
        - INVALID_AMOUNT: amount_out <= 0 / NaN / Inf, либо резерв <= 0
        - RESERVE_EXHAUSTED: amount_out >= reserve_out
    """
    if not is_valid_float(amount_out) or amount_out <= 0:
        return RequiredInputResult(
            amount_in=None,
            error=ErrorCode.INVALID_AMOUNT,
            details=f"amount_out must be positive and finite, got {amount_out}",
        )

    if _reserves_invalid(reserve_in, reserve_out):
        return RequiredInputResult(
            amount_in=None,
            error=ErrorCode.INVALID_AMOUNT,
            details=f"Reserves must be positive, got reserve_in={reserve_in}, reserve_out={reserve_out}",
        )

    if amount_out >= reserve_out:
        return RequiredInputResult(
            amount_in=None,
            error=ErrorCode.RESERVE_EXHAUSTED,
            details=f"amount_out {amount_out} >= reserve_out {reserve_out}",
        )

    numerator = reserve_in * amount_out
    denominator = (reserve_out - amount_out) * (1.0 - fee_rate)
    amount_in = numerator / denominator

    return RequiredInputResult(
        amount_in=amount_in,
        error=None,
        details=f"in={amount_in:.8f}",
    )


def calculate_price_impact(
    amount_in: float,
    reserve_in: float,
    reserve_out: float,
    fee_rate: float = FEE_RATE,
) -> float:
    """
    Standalone price impact (проценты).

    В отличие от SwapQuote.price_impact, пост-трейдовая цена считается по
    резервам после полного зачисления amount_in (fee остаётся в пуле):
        price_after = (reserve_out - amount_out) / (reserve_in + amount_in)

    Raises:
        ValueError: Если параметры некорректны
    """
    validate_positive(amount_in, "amount_in")
    validate_positive(reserve_in, "reserve_in")
    validate_positive(reserve_out, "reserve_out")

    amount_in_with_fee = amount_in * (1.0 - fee_rate)
    amount_out = (amount_in_with_fee * reserve_out) / (reserve_in + amount_in_with_fee)

    price_before = reserve_out / reserve_in
    price_after = (reserve_out - amount_out) / (reserve_in + amount_in)

    return abs((price_after - price_before) / price_before) * 100.0


# =============================================================================
# LP-МАТЕМАТИКА
# =============================================================================


def initial_lp_supply(reserve_a: float, reserve_b: float) -> float:
    """Начальный LP supply при создании пула: sqrt(reserve_a * reserve_b)."""
    validate_positive(reserve_a, "reserve_a")
    validate_positive(reserve_b, "reserve_b")
    return math.sqrt(reserve_a * reserve_b)


def lp_tokens_to_mint(
    amount_a: float,
    amount_b: float,
    reserve_a: float,
    reserve_b: float,
    lp_supply: float,
) -> float:
    """
    Количество LP токенов за внесение ликвидности.

    - Первое внесение (lp_supply == 0): sqrt(amount_a * amount_b)
    - Иначе: min(amount_a * S / reserve_a, amount_b * S / reserve_b)

    Raises:
        ValueError: Если параметры некорректны
    """
    validate_positive(amount_a, "amount_a")
    validate_positive(amount_b, "amount_b")
    validate_non_negative(lp_supply, "lp_supply")

    if lp_supply == 0:
        return math.sqrt(amount_a * amount_b)

    validate_positive(reserve_a, "reserve_a")
    validate_positive(reserve_b, "reserve_b")

    liquidity_a = (amount_a * lp_supply) / reserve_a
    liquidity_b = (amount_b * lp_supply) / reserve_b
    return min(liquidity_a, liquidity_b)


def tokens_for_lp(
    lp_amount: float,
    reserve_a: float,
    reserve_b: float,
    lp_supply: float,
) -> tuple[float, float]:
    """
    Количество токенов, возвращаемых при сжигании LP.

    Returns:
        (amount_a, amount_b) пропорционально доле lp_amount / lp_supply

    Raises:
        ValueError: Если lp_amount > lp_supply или параметры некорректны
    """
    validate_positive(lp_amount, "lp_amount")
    validate_positive(lp_supply, "lp_supply")

    if lp_amount > lp_supply:
        raise ValueError(f"lp_amount {lp_amount} exceeds lp_supply {lp_supply}")

    share = lp_amount / lp_supply
    return reserve_a * share, reserve_b * share
