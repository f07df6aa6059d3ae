"""Payment Domain Entity

Tracks one external deposit attempt from initiation to a terminal status.
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


class PaymentStatus(str, Enum):
    """Known payment statuses"""
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"
    EXPIRED = "EXPIRED"


TERMINAL_STATUSES = frozenset(
    {PaymentStatus.COMPLETED.value, PaymentStatus.FAILED.value, PaymentStatus.CANCELED.value, PaymentStatus.EXPIRED.value}
)


class Payment(BaseModel, table=True):
    """
    Payment - External deposit reconciled by provider callbacks

    Domain Rules:
    - deposit_id is provider-assigned and unique
    - business_id, pack_code and expected amount are bound at initiation
      and are the only trusted source of identity and price
    - COMPLETED is sticky: once set it is never overwritten
    - status is stored as text so that unrecognized provider statuses
      can be recorded verbatim
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index('ix_payments_business_id', 'business_id'),
        Index('ix_payments_status', 'status'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
        description="Unique payment identifier (auto-increment)"
    )

    provider: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Payment provider (e.g., pawapay)"
    )

    deposit_id: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True, index=True),
        description="Provider deposit identifier (doubles as idempotency key)"
    )

    status: str = Field(
        default=PaymentStatus.PENDING.value,
        sa_column=Column(String(32), nullable=False, default=PaymentStatus.PENDING.value),
        description="Payment status"
    )

    business_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Business to credit (bound at initiation)"
    )

    pack_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Pack purchased (bound at initiation)"
    )

    expected_currency: Optional[str] = Field(
        default=None,
        sa_column=Column(String(3), nullable=True),
        description="Expected currency (authoritative)"
    )

    expected_value: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 2), nullable=True),
        description="Expected amount (authoritative)"
    )

    callback_currency: Optional[str] = Field(
        default=None,
        sa_column=Column(String(3), nullable=True),
        description="Currency reported by the provider callback (audit)"
    )

    callback_value: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Amount reported by the provider callback (audit)"
    )

    idempotency_key: str = Field(
        sa_column=Column(String(255), nullable=False, index=True),
        description="Idempotency key of the initiation request"
    )

    failure_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Machine-readable reason for FAILED"
    )

    raw_payload: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Last callback body, JSON, kept for forensics"
    )

    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the payment was credited"
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
    def expected_amount(self) -> Optional[Money]:
        if self.expected_currency is None or self.expected_value is None:
            return None
        return Money(currency=self.expected_currency, value=self.expected_value)

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED.value

    @property
    def raw(self) -> Dict[str, Any]:
        if not self.raw_payload:
            return {}
        return json.loads(self.raw_payload)

    class Config:
        json_schema_extra = {
            "example": {
                "id": 1,
                "provider": "pawapay",
                "deposit_id": "f4401bd2-1568-4140-bf2d-eb77d2b2b639",
                "status": "PENDING",
                "business_id": "biz_a1b2c3",
                "pack_code": "STARTER_20",
                "expected_currency": "USD",
                "expected_value": "3.00",
                "idempotency_key": "checkout:biz_a1b2c3:1",
            }
        }
