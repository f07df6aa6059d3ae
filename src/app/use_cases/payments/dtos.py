"""Data Transfer Objects for Payment Use Cases

The provider callback body is parsed into a closed schema at the trust
boundary. Fields the schema does not name are kept only as opaque audit
data in the raw payload.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, Field, ValidationError, field_validator
from src.domain.money import Money
from src.domain.payment import Payment, PaymentStatus


class CallbackStatusKind(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    OTHER = "OTHER"


SUCCESS_STATUSES = frozenset({"COMPLETED", "SUCCESS"})

FAILURE_STATUSES: Dict[str, str] = {
    "FAILED": PaymentStatus.FAILED.value,
    "CANCELED": PaymentStatus.CANCELED.value,
    "CANCELLED": PaymentStatus.CANCELED.value,
    "EXPIRED": PaymentStatus.EXPIRED.value,
}

MAX_STATUS_LENGTH = 32


def classify_status(status: str) -> Tuple[CallbackStatusKind, str]:
    """
    Map a provider status onto the payment state machine

    Returns:
        (kind, status to store). Success maps to COMPLETED, failures map
        to their terminal value (CANCELLED is stored as CANCELED), any
        other status is upper-cased and stored as-is.
    """
    normalized = status.strip().upper()
    if normalized in SUCCESS_STATUSES:
        return CallbackStatusKind.SUCCESS, PaymentStatus.COMPLETED.value
    if normalized in FAILURE_STATUSES:
        return CallbackStatusKind.FAILURE, FAILURE_STATUSES[normalized]
    return CallbackStatusKind.OTHER, normalized[:MAX_STATUS_LENGTH]


class DepositCallbackDTO(BaseModel):
    """
    Parsed deposit callback

    Only deposit_id, status and amount are interpreted. metadata is
    carried for audit and never used to resolve business or pack.
    """

    deposit_id: str = Field(..., alias="depositId", min_length=1)
    status: str = Field(..., min_length=1)
    amount: Money
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("deposit_id", "status", mode="before")
    @classmethod
    def require_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["DepositCallbackDTO"]:
        """Parse a decoded JSON body, None when required fields are missing or malformed"""
        if not isinstance(payload, dict):
            return None
        try:
            return cls.model_validate(payload)
        except ValidationError:
            return None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "depositId": "f4401bd2-1568-4140-bf2d-eb77d2b2b639",
                "status": "COMPLETED",
                "amount": {"currency": "USD", "value": "3.00"},
                "metadata": {"orderId": "ORD-123"}
            }
        }


class CallbackOutcomeDTO(BaseModel):
    """Result of an accepted callback (HTTP 200)"""

    deposit_id: str = Field(..., description="Provider deposit identifier")
    payment_status: str = Field(..., description="Payment status after processing")
    credited: bool = Field(default=False, description="True if this delivery granted credits")
    replayed: bool = Field(default=False, description="True if the purchase had already been applied")
    ledger_entry_id: Optional[int] = Field(default=None, description="Purchase ledger entry")


class RegisterPaymentCommandDTO(BaseModel):
    """
    Command DTO for registering a pending deposit

    Used by the checkout flow before redirecting the payer to the provider.
    """

    business_id: str = Field(..., min_length=1, description="Business to credit")
    pack_code: str = Field(..., min_length=1, description="Pack being purchased")
    deposit_id: str = Field(..., min_length=1, description="Provider deposit identifier")
    idempotency_key: Optional[str] = Field(
        default=None,
        description="Checkout idempotency key (defaults to deposit_id)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "business_id": "biz_a1b2c3",
                "pack_code": "STARTER_20",
                "deposit_id": "f4401bd2-1568-4140-bf2d-eb77d2b2b639"
            }
        }


class PaymentResponseDTO(BaseModel):
    payment_id: int
    provider: str
    deposit_id: str
    status: str
    business_id: Optional[str] = None
    pack_code: Optional[str] = None
    expected_amount: Optional[Money] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponseDTO":
        return cls(
            payment_id=payment.id,
            provider=payment.provider,
            deposit_id=payment.deposit_id,
            status=payment.status,
            business_id=payment.business_id,
            pack_code=payment.pack_code,
            expected_amount=payment.expected_amount,
            failure_reason=payment.failure_reason,
            created_at=payment.created_at,
            completed_at=payment.completed_at,
        )
