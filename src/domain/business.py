"""Business Credit Balance Aggregate

Per-tenant balance counters. One row per business. Mutated only by the
credit ledger engine through versioned conditional updates.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, BigInteger, Integer, String
from src.domain.base import BaseModel, generate_uuid


class Business(BaseModel, table=True):
    """
    Business - Tenant credit balance aggregate

    Domain Rules:
    - credits_total and credits_used only grow/shrink through ledger entries
    - available = credits_total - credits_used (may be negative)
    - available >= -overdraft_limit is enforced at consume time
    - version increments on every balance write (optimistic concurrency)
    """

    __tablename__ = "businesses"
    __table_args__ = (
        CheckConstraint('credits_total >= 0', name='credits_total_non_negative'),
        CheckConstraint('credits_used >= 0', name='credits_used_non_negative'),
        CheckConstraint('overdraft_limit >= 0', name='overdraft_limit_non_negative'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(64), primary_key=True),
        description="Business identifier"
    )

    name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Display name"
    )

    credits_total: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Cumulative credits ever granted"
    )

    credits_used: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Cumulative credits ever consumed (net of reversals)"
    )

    overdraft_limit: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="How far credits_used may exceed credits_total"
    )

    version: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Row version for optimistic concurrency control"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last balance update timestamp"
    )

    @property
    def available(self) -> int:
        return self.credits_total - self.credits_used

    def can_consume_one(self) -> bool:
        return self.available > 0 or (self.credits_used - self.credits_total) < self.overdraft_limit

    class Config:
        json_schema_extra = {
            "example": {
                "id": "biz_a1b2c3",
                "name": "Mama Put Kitchen",
                "credits_total": 120,
                "credits_used": 37,
                "overdraft_limit": 5,
                "version": 41,
            }
        }
