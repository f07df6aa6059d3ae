"""Data Transfer Objects for Credit Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from src.domain.credit_ledger import CreditLedgerEntry, LedgerSource
from src.domain.money import Money


class PaymentInfoDTO(BaseModel):
    """Money received for a purchase and where it came from"""

    amount: Money = Field(
        ...,
        description="Amount paid"
    )

    provider: str = Field(
        ...,
        min_length=1,
        description="Payment provider (e.g., pawapay)"
    )

    deposit_id: str = Field(
        ...,
        min_length=1,
        description="Provider deposit identifier"
    )


class PurchaseCommandDTO(BaseModel):
    """
    Command DTO for purchasing a credit pack

    Used as input to PurchaseCredits use case.
    """

    business_id: str = Field(
        ...,
        min_length=1,
        description="Business identifier"
    )

    pack_code: str = Field(
        ...,
        min_length=1,
        description="Code of the pack to grant"
    )

    payment_info: PaymentInfoDTO = Field(
        ...,
        description="Payment backing the purchase"
    )

    idempotency_key: str = Field(
        ...,
        min_length=1,
        description="Unique key for the purchase (the deposit id for provider payments)"
    )

    source: LedgerSource = Field(
        default=LedgerSource.MOBILE_MONEY,
        description="Channel that originated the purchase"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "business_id": "biz_a1b2c3",
                "pack_code": "STARTER_20",
                "payment_info": {
                    "amount": {"currency": "USD", "value": "3.00"},
                    "provider": "pawapay",
                    "deposit_id": "dep-1"
                },
                "idempotency_key": "dep-1",
                "source": "mobile_money"
            }
        }


class ConsumeCommandDTO(BaseModel):
    """
    Command DTO for charging one credit for an order

    Used as input to ConsumeCredit use case.
    """

    business_id: str = Field(
        ...,
        min_length=1,
        description="Business identifier"
    )

    order_id: str = Field(
        ...,
        min_length=1,
        description="Order correlation key"
    )

    reason: Optional[str] = Field(
        default=None,
        description="Why the credit is charged (e.g., order_completed)"
    )

    source: LedgerSource = Field(
        default=LedgerSource.SYSTEM,
        description="Channel that originated the charge"
    )


class ReverseCommandDTO(BaseModel):
    """
    Command DTO for reversing a consumed credit

    Used as input to ReverseConsume use case.
    """

    business_id: str = Field(
        ...,
        min_length=1,
        description="Business identifier"
    )

    order_id: str = Field(
        ...,
        min_length=1,
        description="Order whose consume is reversed"
    )

    reason: Optional[str] = Field(
        default=None,
        description="Why the credit is returned (e.g., cancel_within_grace)"
    )


class LedgerEntryResponseDTO(BaseModel):
    """
    Response DTO for ledger mutations

    Returned by PurchaseCredits, ConsumeCredit and ReverseConsume.
    """

    entry_id: int = Field(
        ...,
        description="Ledger entry ID"
    )

    business_id: str = Field(
        ...,
        description="Business identifier"
    )

    entry_type: str = Field(
        ...,
        description="Entry type (purchase, consume, reversal)"
    )

    credits_delta: int = Field(
        ...,
        description="Signed credit change"
    )

    balance_after: int = Field(
        ...,
        description="Available balance after the entry"
    )

    order_id: Optional[str] = Field(
        default=None,
        description="Order correlation key"
    )

    pack_code: Optional[str] = Field(
        default=None,
        description="Pack purchased"
    )

    idempotency_key: Optional[str] = Field(
        default=None,
        description="Idempotency key"
    )

    replayed: bool = Field(
        default=False,
        description="True when an existing entry was returned without a new mutation"
    )

    created_at: datetime = Field(
        ...,
        description="Entry timestamp"
    )

    @classmethod
    def from_entry(cls, entry: CreditLedgerEntry, replayed: bool = False) -> "LedgerEntryResponseDTO":
        entry_type = entry.entry_type.value if hasattr(entry.entry_type, "value") else entry.entry_type
        return cls(
            entry_id=entry.id,
            business_id=entry.business_id,
            entry_type=entry_type,
            credits_delta=entry.credits_delta,
            balance_after=entry.balance_after,
            order_id=entry.order_id,
            pack_code=entry.pack_code,
            idempotency_key=entry.idempotency_key,
            replayed=replayed,
            created_at=entry.created_at,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "entry_id": 42,
                "business_id": "biz_a1b2c3",
                "entry_type": "consume",
                "credits_delta": -1,
                "balance_after": 19,
                "order_id": "order-1",
                "replayed": False,
                "created_at": "2024-01-01T00:00:00Z"
            }
        }


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for get balance operation

    Returned by GetBalance use case.
    """

    business_id: str = Field(..., description="Business identifier")
    total: int = Field(..., description="Cumulative credits granted")
    used: int = Field(..., description="Cumulative credits consumed")
    available: int = Field(..., description="total - used (may be negative)")
    overdraft_limit: int = Field(..., description="Allowed overdraft")
    effective_available: int = Field(..., description="available + overdraft_limit")
    last_updated: datetime = Field(..., description="Timestamp of last balance update")

    class Config:
        json_schema_extra = {
            "example": {
                "business_id": "biz_a1b2c3",
                "total": 120,
                "used": 37,
                "available": 83,
                "overdraft_limit": 5,
                "effective_available": 88,
                "last_updated": "2024-01-01T00:00:00Z"
            }
        }


class LedgerEntryDTO(BaseModel):
    """Single ledger entry in a listing"""

    id: int
    entry_type: str
    credits_delta: int
    balance_after: int
    order_id: Optional[str] = None
    pack_code: Optional[str] = None
    amount_currency: Optional[str] = None
    amount_value: Optional[Decimal] = None
    idempotency_key: Optional[str] = None
    source: str
    created_at: datetime


class ListLedgerEntriesResponseDTO(BaseModel):
    """Paginated ledger listing, newest first"""

    items: List[LedgerEntryDTO]
    page: int
    limit: int
    total: int


class LedgerDiscrepancyDTO(BaseModel):
    """One business whose balance does not match its ledger"""

    business_id: str = Field(..., description="Business identifier")
    balance_available: int = Field(..., description="credits_total - credits_used on the aggregate")
    ledger_sum: int = Field(..., description="Sum of credits_delta over all entries")
    discrepancy: int = Field(..., description="balance_available - ledger_sum")
    broken_entry_id: Optional[int] = Field(
        default=None,
        description="First entry whose balance_after differs from the running sum"
    )


class ReconciliationResultDTO(BaseModel):
    """Result of a ledger reconciliation run"""

    total_businesses_checked: int
    discrepancies_found: int
    discrepancies: List[LedgerDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int


class SeedPacksResultDTO(BaseModel):
    created: List[str]
    existing: List[str]
