"""Money value object

Amounts are (currency, Decimal) pairs. Equality is exact: the currency
codes must match case-insensitively and the decimal values must be
numerically equal. Callback bodies are decoded with Decimal for JSON
numbers; any float that still arrives is converted through str().
"""

from decimal import Decimal, InvalidOperation
from typing import Any
from pydantic import BaseModel, Field, field_validator


class Money(BaseModel):
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code")
    value: Decimal = Field(..., ge=0, description="Decimal amount")

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("value", mode="before")
    @classmethod
    def parse_value(cls, v: Any) -> Decimal:
        if isinstance(v, bool):
            raise ValueError("value must be a number")
        if isinstance(v, float):
            v = str(v)
        try:
            value = Decimal(v)
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError("value must be a decimal number")
        if not value.is_finite():
            raise ValueError("value must be finite")
        return value

    def same_as(self, other: "Money") -> bool:
        return self.currency == other.currency and self.value == other.value

    def as_dict(self) -> dict:
        return {"currency": self.currency, "value": str(self.value)}
