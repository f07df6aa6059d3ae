from .business_repository import SqlAlchemyBusinessRepository
from .credit_ledger_repository import SqlAlchemyCreditLedgerRepository
from .credit_pack_repository import SqlAlchemyCreditPackRepository
from .payment_repository import SqlAlchemyPaymentRepository

__all__ = [
    "SqlAlchemyBusinessRepository",
    "SqlAlchemyCreditLedgerRepository",
    "SqlAlchemyCreditPackRepository",
    "SqlAlchemyPaymentRepository",
]
