"""
Тесты для domain моделей (Coin, PricePoint, Pool, Transaction, AMMState)

Проверяет:
1. Валидацию полей и инвариантов
2. Immutability (frozen=True)
3. Вспомогательные методы доступа по стороне/роли
4. JSON сериализацию
"""

import json

import pytest
from pydantic import ValidationError

from src.core.domain import (
    DEFAULT_STABLE_COIN,
    AMMState,
    Coin,
    Pool,
    PricePoint,
    Role,
    Side,
    Transaction,
    TransactionType,
)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def token() -> Coin:
    return Coin(id="tok-1", name="Token", symbol="TOK", color="#FF9900", total_supply=10_000_000.0)


@pytest.fixture
def usdt() -> Coin:
    return DEFAULT_STABLE_COIN


@pytest.fixture
def seed_point() -> PricePoint:
    return PricePoint(ts_utc_ms=1_000, open=0.1, high=0.1, low=0.1, close=0.1, volume=0.0)


@pytest.fixture
def valid_pool(token: Coin, usdt: Coin, seed_point: PricePoint) -> Pool:
    return Pool(
        id="tok-usdt",
        coin_a=token,
        coin_b=usdt,
        role_a=Role.BASE,
        role_b=Role.QUOTE,
        quote_is_stable=True,
        reserve_a=1_000_000.0,
        reserve_b=100_000.0,
        lp_token_supply=316_227.77,
        created_ts_utc_ms=1_000,
        price_history=(seed_point,),
    )


@pytest.fixture
def valid_tx() -> Transaction:
    return Transaction(
        id="tx-1",
        pool_id="tok-usdt",
        type=TransactionType.SELL,
        amount_in=10_000.0,
        amount_out=987.158,
        token_in="TOK",
        token_out="USDT",
        ts_utc_ms=2_000,
        price=0.098,
    )


# =============================================================================
# COIN
# =============================================================================


class TestCoin:
    """Тесты Coin"""

    def test_valid_coin(self, token: Coin) -> None:
        assert token.symbol == "TOK"
        assert not token.is_stable()

    def test_stable_coin(self, usdt: Coin) -> None:
        assert usdt.is_stable()
        assert usdt.is_stable("USDT")
        assert not usdt.is_stable("USDC")

    def test_symbol_too_long(self) -> None:
        """Символ длиннее 6 символов отклоняется"""
        with pytest.raises(ValidationError, match="longer than"):
            Coin(id="x", name="X", symbol="TOOLONG", color="#000", total_supply=1.0)

    def test_lowercase_symbol_rejected(self) -> None:
        with pytest.raises(ValidationError, match="uppercase"):
            Coin(id="x", name="X", symbol="tok", color="#000", total_supply=1.0)

    def test_non_positive_supply(self) -> None:
        with pytest.raises(ValidationError):
            Coin(id="x", name="X", symbol="X", color="#000", total_supply=0.0)

    def test_coin_immutable(self, token: Coin) -> None:
        """Coin должен быть immutable (frozen=True)"""
        with pytest.raises(ValidationError):
            token.total_supply = 1.0  # type: ignore


# =============================================================================
# PRICE POINT
# =============================================================================


class TestPricePoint:
    """Тесты PricePoint"""

    def test_valid_swap_point(self) -> None:
        point = PricePoint(ts_utc_ms=5, open=0.1, high=0.1, low=0.098, close=0.098, volume=987.0)
        assert point.low <= point.close <= point.high

    def test_high_below_open(self) -> None:
        with pytest.raises(ValidationError, match="below open"):
            PricePoint(ts_utc_ms=0, open=1.0, high=0.9, low=0.9, close=0.9, volume=0.0)

    def test_low_above_open(self) -> None:
        with pytest.raises(ValidationError, match="above open"):
            PricePoint(ts_utc_ms=0, open=1.0, high=1.2, low=1.1, close=1.1, volume=0.0)

    def test_close_outside_range(self) -> None:
        with pytest.raises(ValidationError, match="close"):
            PricePoint(ts_utc_ms=0, open=1.0, high=1.1, low=0.9, close=1.5, volume=0.0)

    def test_negative_volume(self) -> None:
        with pytest.raises(ValidationError):
            PricePoint(ts_utc_ms=0, open=1.0, high=1.0, low=1.0, close=1.0, volume=-1.0)


# =============================================================================
# POOL
# =============================================================================


class TestPool:
    """Тесты Pool"""

    def test_side_accessors(self, valid_pool: Pool, token: Coin, usdt: Coin) -> None:
        assert valid_pool.coin_of(Side.A) == token
        assert valid_pool.reserve_of(Side.B) == 100_000.0
        assert valid_pool.role_of(Side.A) is Role.BASE
        assert Side.A.opposite() is Side.B

    def test_role_accessors(self, valid_pool: Pool, token: Coin, usdt: Coin) -> None:
        assert valid_pool.base_side is Side.A
        assert valid_pool.quote_side is Side.B
        assert valid_pool.base_coin == token
        assert valid_pool.quote_coin == usdt

    def test_helpers(self, valid_pool: Pool) -> None:
        assert valid_pool.total_reserves == 1_100_000.0
        assert valid_pool.pair_label == "TOK/USDT"
        assert valid_pool.contains_coin("tok-1")
        assert not valid_pool.contains_coin("other")

    def test_same_coin_rejected(self, valid_pool: Pool, token: Coin) -> None:
        data = valid_pool.model_dump()
        data["coin_b"] = token.model_dump()
        with pytest.raises(ValidationError, match="must differ"):
            Pool.model_validate(data)

    def test_same_roles_rejected(self, valid_pool: Pool) -> None:
        data = valid_pool.model_dump()
        data["role_b"] = Role.BASE
        with pytest.raises(ValidationError, match="role_a and role_b"):
            Pool.model_validate(data)

    def test_zero_reserve_rejected(self, valid_pool: Pool) -> None:
        data = valid_pool.model_dump()
        data["reserve_a"] = 0.0
        with pytest.raises(ValidationError):
            Pool.model_validate(data)

    def test_empty_history_rejected(self, valid_pool: Pool) -> None:
        data = valid_pool.model_dump()
        data["price_history"] = ()
        with pytest.raises(ValidationError):
            Pool.model_validate(data)

    def test_history_out_of_order(self, valid_pool: Pool, seed_point: PricePoint) -> None:
        earlier = seed_point.model_copy(update={"ts_utc_ms": 500})
        data = valid_pool.model_dump()
        data["price_history"] = (seed_point.model_dump(), earlier.model_dump())
        with pytest.raises(ValidationError, match="out of order"):
            Pool.model_validate(data)

    def test_pool_immutable(self, valid_pool: Pool) -> None:
        """Pool должен быть immutable (frozen=True)"""
        with pytest.raises(ValidationError):
            valid_pool.reserve_a = 1.0  # type: ignore

    def test_pool_json_serialization(self, valid_pool: Pool) -> None:
        """JSON сериализация/десериализация Pool"""
        json_str = valid_pool.model_dump_json()
        data = json.loads(json_str)

        assert data["role_a"] == "BASE"
        assert data["coin_b"]["symbol"] == "USDT"
        assert len(data["price_history"]) == 1

        restored = Pool.model_validate_json(json_str)
        assert restored == valid_pool


# =============================================================================
# TRANSACTION
# =============================================================================


class TestTransaction:
    """Тесты Transaction"""

    def test_involves(self, valid_tx: Transaction) -> None:
        assert valid_tx.involves("TOK")
        assert valid_tx.involves("USDT")
        assert not valid_tx.involves("ABC")

    def test_same_tokens_rejected(self, valid_tx: Transaction) -> None:
        data = valid_tx.model_dump()
        data["token_out"] = "TOK"
        with pytest.raises(ValidationError, match="must differ"):
            Transaction.model_validate(data)

    def test_zero_amount_out_rejected(self, valid_tx: Transaction) -> None:
        data = valid_tx.model_dump()
        data["amount_out"] = 0.0
        with pytest.raises(ValidationError):
            Transaction.model_validate(data)

    def test_type_serialized_as_value(self, valid_tx: Transaction) -> None:
        assert json.loads(valid_tx.model_dump_json())["type"] == "sell"


# =============================================================================
# AMM STATE
# =============================================================================


class TestAMMState:
    """Тесты AMMState"""

    def test_initial_state(self) -> None:
        state = AMMState.initial()

        assert state.coins == (DEFAULT_STABLE_COIN,)
        assert state.pools == ()
        assert state.transactions == ()

    def test_duplicate_symbol_rejected(self, usdt: Coin) -> None:
        clone = usdt.model_copy(update={"id": "usdt-2"})
        with pytest.raises(ValidationError, match="symbols must be unique"):
            AMMState(coins=(usdt, clone))

    def test_duplicate_pool_rejected(self, valid_pool: Pool) -> None:
        with pytest.raises(ValidationError, match="pool ids must be unique"):
            AMMState(pools=(valid_pool, valid_pool))

    def test_lookups(self, valid_pool: Pool, token: Coin, usdt: Coin) -> None:
        state = AMMState(coins=(usdt, token), pools=(valid_pool,))

        assert state.find_coin("tok-1") == token
        assert state.find_coin_by_symbol("USDT") == usdt
        assert state.find_pool("tok-usdt") == valid_pool
        assert state.find_pool("missing") is None

    def test_replace_pool(self, valid_pool: Pool) -> None:
        state = AMMState(pools=(valid_pool,))
        updated = valid_pool.model_copy(update={"reserve_a": 2_000_000.0})

        pools = state.replace_pool(updated)

        assert pools[0].reserve_a == 2_000_000.0
        assert state.pools[0].reserve_a == 1_000_000.0
