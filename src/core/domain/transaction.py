"""
Transaction — Модель исполненного свопа

Immutable Pydantic модель записи ledger. Transaction не владеет пулом:
ссылается на него по pool_id и согласована с состоянием пула на момент записи.
"""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class TransactionType(str, Enum):
    """Тип свопа относительно токена стороны A"""

    BUY = "buy"  # токен B внесён, токен A получен
    SELL = "sell"  # токен A внесён, токен B получен


class Transaction(BaseModel):
    """
    Запись исполненного свопа.

    Immutable модель (frozen=True).
    """

    id: str = Field(..., min_length=1, description="Уникальный идентификатор транзакции")
    pool_id: str = Field(..., min_length=1, description="Идентификатор пула")
    type: TransactionType = Field(..., description="buy/sell относительно токена A")
    amount_in: float = Field(..., gt=0, description="Внесённое количество")
    amount_out: float = Field(..., gt=0, description="Полученное количество")
    token_in: str = Field(..., min_length=1, description="Символ внесённого токена")
    token_out: str = Field(..., min_length=1, description="Символ полученного токена")
    ts_utc_ms: int = Field(..., ge=0, description="Время исполнения (UTC, миллисекунды)")
    price: float = Field(..., gt=0, description="Цена пула после свопа")

    model_config = {"frozen": True}

    @field_validator("token_out")
    @classmethod
    def validate_distinct_tokens(cls, v: str, info) -> str:
        if "token_in" in info.data and info.data["token_in"] == v:
            raise ValueError(f"token_in and token_out must differ, got '{v}' twice")
        return v

    def involves(self, symbol: str) -> bool:
        """Затрагивает ли транзакция токен с данным символом"""
        return self.token_in == symbol or self.token_out == symbol
