from .base import BaseModel, generate_uuid
from .money import Money
from .business import Business
from .credit_pack import CreditPack
from .credit_ledger import CreditLedgerEntry, LedgerEntryType, LedgerSource
from .payment import Payment, PaymentStatus, TERMINAL_STATUSES

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Money",
    "Business",
    "CreditPack",
    "CreditLedgerEntry",
    "LedgerEntryType",
    "LedgerSource",
    "Payment",
    "PaymentStatus",
    "TERMINAL_STATUSES",
]
