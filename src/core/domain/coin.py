"""
Coin — Модель токена

Immutable Pydantic модель токена, участвующего в пулах.
Coin неизменяем, пока на него ссылается пул; удаление разрешено только
для неиспользуемых токенов (см. AMMEngine.delete_coin).
"""

import re
from typing import Final

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# CONSTANTS
# =============================================================================

# Символ стабильной референсной монеты (unit of account)
STABLE_SYMBOL: Final[str] = "USDT"

# Максимальная длина символа токена
MAX_SYMBOL_LENGTH: Final[int] = 6

_SYMBOL_RE: Final = re.compile(r"^[A-Z0-9]+$")


# =============================================================================
# COIN MODEL
# =============================================================================


class Coin(BaseModel):
    """
    Модель токена.

    Immutable модель (frozen=True).
    """

    id: str = Field(..., min_length=1, description="Уникальный идентификатор токена")
    name: str = Field(..., min_length=1, description="Отображаемое имя (например, 'Tether USD')")
    symbol: str = Field(..., min_length=1, description="Уникальный символ (uppercase, <= 6 символов)")
    color: str = Field(..., min_length=1, description="Цвет для отображения (например, '#26A17B')")
    total_supply: float = Field(..., gt=0, description="Общая эмиссия")

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        """Символ: только A-Z/0-9, не длиннее MAX_SYMBOL_LENGTH"""
        if len(v) > MAX_SYMBOL_LENGTH:
            raise ValueError(f"symbol '{v}' longer than {MAX_SYMBOL_LENGTH} characters")
        if not _SYMBOL_RE.match(v):
            raise ValueError(f"symbol '{v}' must be uppercase alphanumeric")
        return v

    def is_stable(self, stable_symbol: str = STABLE_SYMBOL) -> bool:
        """Является ли токен стабильной референсной монетой"""
        return self.symbol == stable_symbol
