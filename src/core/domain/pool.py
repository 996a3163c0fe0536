"""
Pool — Модель пула ликвидности и ценовой истории

Immutable Pydantic модели:
- PricePoint: OHLCV точка (одна на каждый исполненный своп + seed точка)
- Pool: снапшот пула (резервы, LP supply, роли сторон, ценовая история)

Роли сторон (BASE/QUOTE) назначаются один раз при создании пула и далее
используются вместо анализа строкового символа. Цена пула всегда выражена
как количество QUOTE за единицу BASE.

Любое изменение пула создаёт новый экземпляр (copy-on-write).
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from .coin import Coin


# =============================================================================
# ENUMS
# =============================================================================


class Side(str, Enum):
    """Сторона пула"""

    A = "A"
    B = "B"

    def opposite(self) -> "Side":
        return Side.B if self is Side.A else Side.A


class Role(str, Enum):
    """Роль стороны пула в котировке цены"""

    BASE = "BASE"  # котируемый токен
    QUOTE = "QUOTE"  # валюта котировки


# =============================================================================
# PRICE POINT
# =============================================================================


class PricePoint(BaseModel):
    """
    OHLCV точка ценовой истории пула.

    Volume выражен в стабильной валюте, когда это выводимо, иначе в
    единицах QUOTE стороны.
    """

    ts_utc_ms: int = Field(..., ge=0, description="Время точки (UTC, миллисекунды)")
    open: float = Field(..., gt=0, description="Цена до сделки")
    high: float = Field(..., gt=0, description="Максимум цены")
    low: float = Field(..., gt=0, description="Минимум цены")
    close: float = Field(..., gt=0, description="Цена после сделки")
    volume: float = Field(..., ge=0, description="Объём сделки")

    model_config = {"frozen": True}

    @field_validator("high")
    @classmethod
    def validate_high(cls, v: float, info) -> float:
        """high >= open"""
        if "open" in info.data and v < info.data["open"]:
            raise ValueError(f"high {v} below open {info.data['open']}")
        return v

    @field_validator("low")
    @classmethod
    def validate_low(cls, v: float, info) -> float:
        """low <= min(open, high)"""
        if "open" in info.data and v > info.data["open"]:
            raise ValueError(f"low {v} above open {info.data['open']}")
        if "high" in info.data and v > info.data["high"]:
            raise ValueError(f"low {v} above high {info.data['high']}")
        return v

    @field_validator("close")
    @classmethod
    def validate_close_within_range(cls, v: float, info) -> float:
        """low <= close <= high"""
        high = info.data.get("high")
        low = info.data.get("low")
        if high is not None and v > high:
            raise ValueError(f"close {v} above high {high}")
        if low is not None and v < low:
            raise ValueError(f"close {v} below low {low}")
        return v


# =============================================================================
# POOL MODEL
# =============================================================================


class Pool(BaseModel):
    """
    Снапшот пула ликвидности.

    Инварианты:
    - reserve_a > 0, reserve_b > 0
    - role_a != role_b
    - price_history непуста и упорядочена по ts_utc_ms (неубывание)

    Immutable модель (frozen=True).
    """

    # Идентификация
    id: str = Field(..., min_length=1, description="Уникальный идентификатор пула")
    coin_a: Coin = Field(..., description="Токен стороны A")
    coin_b: Coin = Field(..., description="Токен стороны B")

    # Роли сторон
    role_a: Role = Field(..., description="Роль стороны A")
    role_b: Role = Field(..., description="Роль стороны B")
    quote_is_stable: bool = Field(..., description="QUOTE сторона является стабильной монетой")

    # Резервы
    reserve_a: float = Field(..., gt=0, description="Резерв токена A")
    reserve_b: float = Field(..., gt=0, description="Резерв токена B")
    lp_token_supply: float = Field(..., ge=0, description="LP supply")

    # Время и история
    created_ts_utc_ms: int = Field(..., ge=0, description="Время создания (UTC, миллисекунды)")
    price_history: tuple[PricePoint, ...] = Field(
        ..., min_length=1, description="Ценовая история (append-only)"
    )

    model_config = {"frozen": True}

    @field_validator("coin_b")
    @classmethod
    def validate_distinct_coins(cls, v: Coin, info) -> Coin:
        """Стороны пула: разные токены"""
        if "coin_a" in info.data and info.data["coin_a"].id == v.id:
            raise ValueError(f"coin_a and coin_b must differ, got '{v.id}' twice")
        return v

    @field_validator("role_b")
    @classmethod
    def validate_distinct_roles(cls, v: Role, info) -> Role:
        """Одна сторона BASE, другая QUOTE"""
        if "role_a" in info.data and info.data["role_a"] == v:
            raise ValueError(f"role_a and role_b must differ, got {v.value} twice")
        return v

    @field_validator("price_history")
    @classmethod
    def validate_history_order(cls, v: tuple[PricePoint, ...]) -> tuple[PricePoint, ...]:
        """Неубывание timestamp в ценовой истории"""
        for prev, cur in zip(v, v[1:]):
            if cur.ts_utc_ms < prev.ts_utc_ms:
                raise ValueError(
                    f"price_history out of order: {cur.ts_utc_ms} after {prev.ts_utc_ms}"
                )
        return v

    # -------------------------------------------------------------------------
    # Доступ по стороне
    # -------------------------------------------------------------------------

    def coin_of(self, side: Side) -> Coin:
        return self.coin_a if side is Side.A else self.coin_b

    def reserve_of(self, side: Side) -> float:
        return self.reserve_a if side is Side.A else self.reserve_b

    def role_of(self, side: Side) -> Role:
        return self.role_a if side is Side.A else self.role_b

    @property
    def base_side(self) -> Side:
        return Side.A if self.role_a is Role.BASE else Side.B

    @property
    def quote_side(self) -> Side:
        return self.base_side.opposite()

    @property
    def base_coin(self) -> Coin:
        return self.coin_of(self.base_side)

    @property
    def quote_coin(self) -> Coin:
        return self.coin_of(self.quote_side)

    @property
    def total_reserves(self) -> float:
        """reserve_a + reserve_b (грубая мера ликвидности)"""
        return self.reserve_a + self.reserve_b

    @property
    def pair_label(self) -> str:
        return f"{self.coin_a.symbol}/{self.coin_b.symbol}"

    def contains_coin(self, coin_id: str) -> bool:
        return self.coin_a.id == coin_id or self.coin_b.id == coin_id
