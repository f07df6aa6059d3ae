"""Credit ledger use cases"""
from .purchase_credits import PurchaseCredits
from .consume_credit import ConsumeCredit
from .reverse_consume import ReverseConsume
from .get_balance import GetBalance
from .list_ledger_entries import ListLedgerEntries
from .reconcile_ledger import ReconcileLedger
from .ensure_default_packs import EnsureDefaultCreditPacks
from .order_hooks import OrderCreditsHook
from .dtos import (
    PaymentInfoDTO,
    PurchaseCommandDTO,
    ConsumeCommandDTO,
    ReverseCommandDTO,
    LedgerEntryResponseDTO,
    BalanceResponseDTO,
    LedgerEntryDTO,
    ListLedgerEntriesResponseDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
    SeedPacksResultDTO,
)

__all__ = [
    "PurchaseCredits",
    "ConsumeCredit",
    "ReverseConsume",
    "GetBalance",
    "ListLedgerEntries",
    "ReconcileLedger",
    "EnsureDefaultCreditPacks",
    "OrderCreditsHook",
    "PaymentInfoDTO",
    "PurchaseCommandDTO",
    "ConsumeCommandDTO",
    "ReverseCommandDTO",
    "LedgerEntryResponseDTO",
    "BalanceResponseDTO",
    "LedgerEntryDTO",
    "ListLedgerEntriesResponseDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
    "SeedPacksResultDTO",
]
