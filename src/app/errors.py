"""Billing error taxonomy

Raised inside a unit of work so that the whole transaction is rolled
back, and converted to libs.result.Error at the use case boundary.
"""

from typing import Optional
from libs.result import Error


class ErrorCode:
    BUSINESS_NOT_FOUND = "BUSINESS_NOT_FOUND"
    PACK_NOT_FOUND = "PACK_NOT_FOUND"
    PACK_INACTIVE_OR_MISSING = "PACK_INACTIVE_OR_MISSING"
    MISSING_BUSINESS_OR_PACK = "MISSING_BUSINESS_OR_PACK"
    UNKNOWN_DEPOSIT = "UNKNOWN_DEPOSIT"
    DUPLICATE_DEPOSIT = "DUPLICATE_DEPOSIT"
    IDEMPOTENCY_KEY_REUSED = "IDEMPOTENCY_KEY_REUSED"
    MISSING_FIELDS = "MISSING_FIELDS"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    NO_CONSUME_TO_REVERSE = "NO_CONSUME_TO_REVERSE"
    NO_USAGE_TO_REVERSE = "NO_USAGE_TO_REVERSE"
    ALREADY_REVERSED = "ALREADY_REVERSED"
    AMOUNT_MISMATCH = "AMOUNT_MISMATCH"
    TRANSACTION_CONFLICT = "TRANSACTION_CONFLICT"
    INVALID_CONTENT_DIGEST = "INVALID_CONTENT_DIGEST"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    MISSING_SIGNATURE = "MISSING_SIGNATURE"


class BillingError(Exception):
    code: str = "BILLING_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.message = message
        self.reason = reason

    def to_error(self) -> Error:
        return Error(code=self.code, message=self.message, reason=self.reason)


class VerificationError(BillingError):
    """Bad content digest or message signature"""
    code = ErrorCode.INVALID_SIGNATURE


class NotFoundError(BillingError):
    """Unknown deposit, business or pack"""


class AmountMismatchError(BillingError):
    code = ErrorCode.AMOUNT_MISMATCH


class InsufficientCreditsError(BillingError):
    code = ErrorCode.INSUFFICIENT_CREDITS


class ReversalPreconditionError(BillingError):
    """No matching consume, no usage, or consume already reversed"""


class TransactionConflictError(BillingError):
    """Concurrent write on the business aggregate detected"""
    code = ErrorCode.TRANSACTION_CONFLICT
