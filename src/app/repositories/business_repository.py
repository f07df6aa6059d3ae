"""Business Repository Interface

Defines the contract for the business balance aggregate.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.business import Business


class BusinessRepository(ABC):
    """
    Repository interface for the Business balance aggregate

    Balance writes use optimistic concurrency: the caller reads the row
    with its version, then issues a conditional update that only applies
    if the version is unchanged.
    """

    @abstractmethod
    async def get_by_id(self, business_id: str) -> Optional[Business]:
        """
        Retrieve a business by ID, always reading fresh column values

        Args:
            business_id: Business identifier

        Returns:
            Business if found, None otherwise
        """
        pass

    @abstractmethod
    async def exists(self, business_id: str) -> bool:
        pass

    @abstractmethod
    async def create(self, business: Business) -> Business:
        pass

    @abstractmethod
    async def update_balance(
        self,
        business_id: str,
        expected_version: int,
        credits_total: int,
        credits_used: int,
    ) -> bool:
        """
        Conditionally write new balance counters

        Args:
            business_id: Business identifier
            expected_version: Version observed when the row was read
            credits_total: New cumulative credits granted
            credits_used: New cumulative credits consumed

        Returns:
            True if the row was updated, False if another writer bumped
            the version first (caller must roll back and retry)
        """
        pass

    @abstractmethod
    async def get_all(self) -> List[Business]:
        """Retrieve every business (used by ledger reconciliation)"""
        pass
