"""Payment reconciliation use cases"""
from .register_pending_payment import RegisterPendingPayment
from .reconcile_deposit_callback import ReconcileDepositCallback, CALLBACK_PROCESSING_FAILED
from .dtos import (
    CallbackStatusKind,
    classify_status,
    DepositCallbackDTO,
    CallbackOutcomeDTO,
    RegisterPaymentCommandDTO,
    PaymentResponseDTO,
)

__all__ = [
    "RegisterPendingPayment",
    "ReconcileDepositCallback",
    "CALLBACK_PROCESSING_FAILED",
    "CallbackStatusKind",
    "classify_status",
    "DepositCallbackDTO",
    "CallbackOutcomeDTO",
    "RegisterPaymentCommandDTO",
    "PaymentResponseDTO",
]
