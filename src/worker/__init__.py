"""Background workers for the credits service"""
from .ledger_reconciler import LedgerReconcilerWorker

__all__ = ["LedgerReconcilerWorker"]
