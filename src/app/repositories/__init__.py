from .business_repository import BusinessRepository
from .credit_ledger_repository import CreditLedgerRepository
from .credit_pack_repository import CreditPackRepository
from .payment_repository import PaymentRepository

__all__ = [
    "BusinessRepository",
    "CreditLedgerRepository",
    "CreditPackRepository",
    "PaymentRepository",
]
