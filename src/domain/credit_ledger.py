"""Credit Ledger Domain Entity

Immutable append-only audit trail of every balance mutation.
Each entry records the signed credit delta and the available balance
immediately after it was applied.
"""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, Integer, Numeric, String, Text
from src.domain.base import BaseModel
from src.domain.money import Money


class LedgerEntryType(str, Enum):
    """Ledger entry types"""
    PURCHASE = "purchase"        # Credits bought through a payment
    CONSUME = "consume"          # One credit charged for an order
    REFUND = "refund"            # Credits returned to the business
    BONUS = "bonus"              # Promotional credits
    ADJUSTMENT = "adjustment"    # Manual admin adjustment
    REVERSAL = "reversal"        # Consume undone (order cancelled in grace window)


class LedgerSource(str, Enum):
    """Channel that originated the mutation"""
    WEB = "web"
    WHATSAPP = "whatsapp"
    MOBILE_MONEY = "mobile_money"
    ADMIN = "admin"
    SYSTEM = "system"


class CreditLedgerEntry(BaseModel, table=True):
    """
    Credit Ledger Entry - Immutable record of one balance mutation

    Domain Rules:
    - Entries are immutable (append-only), never updated or deleted
    - Written in the same database transaction as the balance update
    - balance_after equals the running sum of credits_delta for the business
    - idempotency_key is unique when present (one purchase per deposit)
    """

    __tablename__ = "credit_ledger_entries"
    __table_args__ = (
        Index('ix_credit_ledger_entries_business_created', 'business_id', 'created_at'),
        Index('ix_credit_ledger_entries_business_order', 'business_id', 'order_id', 'entry_type'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        description="Unique entry identifier (auto-increment, creation order)"
    )

    business_id: str = Field(
        sa_column=Column(String(64), nullable=False, index=True),
        description="Business the entry belongs to"
    )

    entry_type: LedgerEntryType = Field(
        description="Type of entry (purchase, consume, reversal, ...)"
    )

    credits_delta: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Signed credit change"
    )

    balance_after: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Available balance immediately after this entry"
    )

    order_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Order correlation key for consume/reversal entries"
    )

    pack_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Credit pack purchased"
    )

    amount_currency: Optional[str] = Field(
        default=None,
        sa_column=Column(String(3), nullable=True),
        description="Currency of the money paid"
    )

    amount_value: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 2), nullable=True),
        description="Money paid"
    )

    idempotency_key: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, unique=True, index=True),
        description="Unique key for idempotent mutations (e.g., deposit id)"
    )

    source: LedgerSource = Field(
        default=LedgerSource.SYSTEM,
        description="Channel that originated the mutation"
    )

    metadata_json: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="JSON metadata for audit context"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Entry timestamp (immutable)"
    )

    @property
    def amount_money(self) -> Optional[Money]:
        if self.amount_currency is None or self.amount_value is None:
            return None
        return Money(currency=self.amount_currency, value=self.amount_value)

    @property
    def extra(self) -> Dict[str, Any]:
        if not self.metadata_json:
            return {}
        return json.loads(self.metadata_json)

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "business_id": "biz_a1b2c3",
                "entry_type": "purchase",
                "credits_delta": 20,
                "balance_after": 20,
                "pack_code": "STARTER_20",
                "amount_currency": "USD",
                "amount_value": "3.00",
                "idempotency_key": "dep-1",
                "source": "mobile_money",
                "created_at": "2024-01-01T00:00:00Z"
            }
        }
