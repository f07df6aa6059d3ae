"""Credit Ledger Repository Interface

Defines the contract for ledger entry persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType


class CreditLedgerRepository(ABC):
    """
    Repository interface for CreditLedgerEntry persistence

    Entries are immutable and append-only. There is no update or delete.
    """

    @abstractmethod
    async def create(self, entry: CreditLedgerEntry) -> CreditLedgerEntry:
        """
        Append a ledger entry

        Raises:
            IntegrityError: If idempotency_key already exists
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[CreditLedgerEntry]:
        pass

    @abstractmethod
    async def count_for_order(
        self, business_id: str, order_id: str, entry_type: LedgerEntryType
    ) -> int:
        """
        Count entries of one type tagged with an order

        Used to require a prior consume before a reversal and to cap
        reversals at one per consume.
        """
        pass

    @abstractmethod
    async def get_by_business_id(
        self, business_id: str, limit: int = 20, offset: int = 0
    ) -> Tuple[List[CreditLedgerEntry], int]:
        """
        Retrieve entries for a business, newest first

        Returns:
            Tuple of (entries, total count)
        """
        pass

    @abstractmethod
    async def get_history(self, business_id: str) -> List[CreditLedgerEntry]:
        """Retrieve all entries for a business in creation order"""
        pass
