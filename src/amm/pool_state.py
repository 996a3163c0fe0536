"""Pool State Machine — создание пулов и применение свопов.

Каждая операция возвращает новый снапшот Pool (copy-on-write), входной пул
никогда не мутируется. Своп одновременно:
- обновляет резервы (вход += amount_in, выход -= amount_out)
- добавляет ровно одну PricePoint в price_history

Цена пула = reserve_quote / reserve_base (роли назначаются при создании).
Для пулов, где стабильная монета не на стороне A, это reserve_b / reserve_a.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.coin import STABLE_SYMBOL, Coin
from src.core.domain.pool import Pool, PricePoint, Role, Side
from src.core.errors import ErrorCode, InvariantViolation
from src.core.math.constant_product import (
    FEE_RATE,
    QuoteResult,
    RequiredInputResult,
    SwapQuote,
    initial_lp_supply,
    quote_required_input,
    quote_swap,
)
from src.core.math.numerical_safeguards import validate_positive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapResult:
    """Результат применения свопа к пулу."""

    updated_pool: Optional[Pool]
    amount_out: float
    quote: Optional[SwapQuote]

    # Цены пула до/после (QUOTE за BASE)
    price_before: float
    price_after: float

    # Объём, записанный в PricePoint
    volume: float

    error: Optional[ErrorCode]
    details: str

    @property
    def success(self) -> bool:
        return self.error is None


# =============================================================================
# РОЛИ И ЦЕНА
# =============================================================================


def assign_roles(
    coin_a: Coin,
    coin_b: Coin,
    stable_symbol: str = STABLE_SYMBOL,
) -> tuple[Role, Role, bool]:
    """Назначение ролей сторонам пула.

    - Стабильная монета на стороне A → A=QUOTE, B=BASE
    - Иначе → A=BASE, B=QUOTE

    Returns:
        (role_a, role_b, quote_is_stable)
    """
    if coin_a.is_stable(stable_symbol) and not coin_b.is_stable(stable_symbol):
        return Role.QUOTE, Role.BASE, True
    return Role.BASE, Role.QUOTE, coin_b.is_stable(stable_symbol)


def price_from_reserves(reserve_a: float, reserve_b: float, role_a: Role) -> float:
    """Цена BASE в единицах QUOTE по резервам."""
    if role_a is Role.BASE:
        return reserve_b / reserve_a
    return reserve_a / reserve_b


def current_price(pool: Pool) -> float:
    """Текущая цена пула (QUOTE за BASE)."""
    return price_from_reserves(pool.reserve_a, pool.reserve_b, pool.role_a)


# =============================================================================
# СОЗДАНИЕ ПУЛА
# =============================================================================


def create_pool(
    coin_a: Coin,
    coin_b: Coin,
    reserve_a: float,
    reserve_b: float,
    now_ms: int,
    pool_id: Optional[str] = None,
    stable_symbol: str = STABLE_SYMBOL,
) -> Pool:
    """Создание пула с seed-точкой ценовой истории.

    Входы считаются провалидированными реестром (coin id существуют).

    Args:
        coin_a: токен стороны A
        coin_b: токен стороны B
        reserve_a: начальный резерв A (> 0)
        reserve_b: начальный резерв B (> 0)
        now_ms: текущее время (UTC, миллисекунды)
        pool_id: идентификатор (default: "{coin_a.id}-{coin_b.id}-{now_ms}")
        stable_symbol: символ стабильной монеты

    Returns:
        Новый Pool с lp_token_supply = sqrt(reserve_a * reserve_b) и одной
        PricePoint {open=high=low=close=initial_price, volume=0}

    Raises:
        ValueError: резерв <= 0 или одинаковые токены
    """
    validate_positive(reserve_a, "reserve_a")
    validate_positive(reserve_b, "reserve_b")
    if coin_a.id == coin_b.id:
        raise ValueError(f"Pool requires two distinct coins, got '{coin_a.id}' twice")

    role_a, role_b, quote_is_stable = assign_roles(coin_a, coin_b, stable_symbol)
    initial_price = price_from_reserves(reserve_a, reserve_b, role_a)

    seed_point = PricePoint(
        ts_utc_ms=now_ms,
        open=initial_price,
        high=initial_price,
        low=initial_price,
        close=initial_price,
        volume=0.0,
    )

    pool = Pool(
        id=pool_id or f"{coin_a.id}-{coin_b.id}-{now_ms}",
        coin_a=coin_a,
        coin_b=coin_b,
        role_a=role_a,
        role_b=role_b,
        quote_is_stable=quote_is_stable,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        lp_token_supply=initial_lp_supply(reserve_a, reserve_b),
        created_ts_utc_ms=now_ms,
        price_history=(seed_point,),
    )

    logger.info(
        "Pool created: %s reserves=(%s, %s) initial_price=%.10g",
        pool.pair_label,
        reserve_a,
        reserve_b,
        initial_price,
    )
    return pool


# =============================================================================
# КОТИРОВКИ ПО ПУЛУ
# =============================================================================


def quote_for_pool(
    pool: Pool,
    amount_in: float,
    side: Side,
    fee_rate: float = FEE_RATE,
) -> QuoteResult:
    """Котировка свопа (side: сторона входного токена)."""
    return quote_swap(
        amount_in,
        pool.reserve_of(side),
        pool.reserve_of(side.opposite()),
        fee_rate=fee_rate,
    )


def required_input_for_pool(
    pool: Pool,
    amount_out: float,
    side: Side,
    fee_rate: float = FEE_RATE,
) -> RequiredInputResult:
    """Сколько внести на стороне side, чтобы получить amount_out с другой стороны."""
    return quote_required_input(
        amount_out,
        pool.reserve_of(side),
        pool.reserve_of(side.opposite()),
        fee_rate=fee_rate,
    )


# =============================================================================
# СВОП
# =============================================================================


def swap_volume(
    pool: Pool,
    side: Side,
    amount_in: float,
    amount_out: float,
    price_before: float,
    price_after: float,
) -> float:
    """Объём свопа в стабильной валюте (если выводимо).

    | пул                | вход            | volume                   |
    |--------------------|-----------------|--------------------------|
    | QUOTE стабильна    | BASE            | amount_out               |
    | QUOTE стабильна    | QUOTE           | amount_in                |
    | без стабильной     | сторона A       | amount_in * price_before |
    | без стабильной     | сторона B       | amount_out * price_after |
    """
    if pool.quote_is_stable:
        if pool.role_of(side) is Role.QUOTE:
            return amount_in
        return amount_out

    if side is Side.A:
        return amount_in * price_before
    return amount_out * price_after


def execute_swap(
    pool: Pool,
    amount_in: float,
    side: Side,
    now_ms: int,
    fee_rate: float = FEE_RATE,
) -> SwapResult:
    """Применение свопа к пулу.

    Args:
        pool: текущий снапшот пула (не мутируется)
        amount_in: внесённое количество (> 0)
        side: сторона входного токена
        now_ms: время сделки (UTC, миллисекунды)
        fee_rate: комиссия

    Returns:
        SwapResult с новым снапшотом пула, либо ошибкой котировки
        (INVALID_AMOUNT / RESERVE_EXHAUSTED) без изменений

    Raises:
        InvariantViolation: резерв стал неположительным (недостижимо)
    """
    price_before = current_price(pool)

    quote_result = quote_for_pool(pool, amount_in, side, fee_rate=fee_rate)
    if not quote_result.success:
        logger.warning("Swap rejected on %s: %s", pool.id, quote_result.details)
        return SwapResult(
            updated_pool=None,
            amount_out=0.0,
            quote=None,
            price_before=price_before,
            price_after=price_before,
            volume=0.0,
            error=quote_result.error,
            details=quote_result.details,
        )

    quote = quote_result.quote
    amount_out = quote.amount_out

    if side is Side.A:
        new_reserve_a = pool.reserve_a + amount_in
        new_reserve_b = pool.reserve_b - amount_out
    else:
        new_reserve_a = pool.reserve_a - amount_out
        new_reserve_b = pool.reserve_b + amount_in

    if new_reserve_a <= 0 or new_reserve_b <= 0:
        raise InvariantViolation(
            f"Swap on {pool.id} would leave non-positive reserves: "
            f"A={new_reserve_a}, B={new_reserve_b}"
        )

    price_after = price_from_reserves(new_reserve_a, new_reserve_b, pool.role_a)
    volume = swap_volume(pool, side, amount_in, amount_out, price_before, price_after)

    # История упорядочена по времени
    ts_utc_ms = max(now_ms, pool.price_history[-1].ts_utc_ms)

    point = PricePoint(
        ts_utc_ms=ts_utc_ms,
        open=price_before,
        high=max(price_before, price_after),
        low=min(price_before, price_after),
        close=price_after,
        volume=volume,
    )

    updated_pool = pool.model_copy(
        update={
            "reserve_a": new_reserve_a,
            "reserve_b": new_reserve_b,
            "price_history": pool.price_history + (point,),
        }
    )

    logger.info(
        "Swap executed on %s: side=%s in=%s out=%.10g price %.10g -> %.10g",
        pool.pair_label,
        side.value,
        amount_in,
        amount_out,
        price_before,
        price_after,
    )

    return SwapResult(
        updated_pool=updated_pool,
        amount_out=amount_out,
        quote=quote,
        price_before=price_before,
        price_after=price_after,
        volume=volume,
        error=None,
        details=f"{side.value} in={amount_in}, out={amount_out:.8f}",
    )
