"""Credit Pack Domain Entity

Reference data: purchasable bundles of credits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, BigInteger, Integer, Numeric, String
from src.domain.base import BaseModel
from src.domain.money import Money


class CreditPack(BaseModel, table=True):
    """
    Credit Pack - Named bundle of credits with a price

    Domain Rules:
    - code is unique
    - credits >= 1, price >= 0, bonus_percent in [0, 100]
    - Effective credits = credits + floor(bonus_percent * credits / 100)
    - Only active packs can be purchased
    """

    __tablename__ = "credit_packs"
    __table_args__ = (
        CheckConstraint('credits >= 1', name='credits_positive'),
        CheckConstraint('price_value >= 0', name='price_non_negative'),
        CheckConstraint('bonus_percent >= 0 AND bonus_percent <= 100', name='bonus_percent_range'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        description="Unique pack identifier (auto-increment)"
    )

    code: str = Field(
        index=True,
        unique=True,
        description="Pack code (e.g., STARTER_20)"
    )

    name: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Display name"
    )

    credits: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Base credits granted"
    )

    price_currency: str = Field(
        sa_column=Column(String(3), nullable=False),
        description="Price currency (ISO 4217)"
    )

    price_value: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Price amount"
    )

    bonus_percent: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Bonus credits as a percentage of base credits"
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether the pack can be purchased"
    )

    sort: int = Field(
        default=0,
        description="Display order"
    )

    region: Optional[str] = Field(
        default=None,
        sa_column=Column(String(16), nullable=True),
        description="Optional region restriction"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def price(self) -> Money:
        return Money(currency=self.price_currency, value=self.price_value)

    def effective_credits(self) -> int:
        bonus = self.bonus_percent or 0
        return self.credits + (bonus * self.credits) // 100

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "code": "STARTER_20",
                "name": "Starter Pack",
                "credits": 20,
                "price_currency": "USD",
                "price_value": "3.00",
                "bonus_percent": 0,
                "is_active": True,
                "sort": 1,
            }
        }
