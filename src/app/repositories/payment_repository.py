"""Payment Repository Interface

Defines the contract for payment persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from src.domain.money import Money
from src.domain.payment import Payment


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    Status writes never overwrite COMPLETED: implementations guard every
    status update with a status <> 'COMPLETED' predicate.
    """

    @abstractmethod
    async def get_by_deposit_id(self, deposit_id: str) -> Optional[Payment]:
        """
        Retrieve payment by provider deposit ID, reading fresh values

        Args:
            deposit_id: Provider deposit identifier

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def record_callback(
        self, payment_id: int, amount: Optional[Money], raw_payload: Dict[str, Any]
    ) -> None:
        """
        Store the amount and body reported by a callback for audit

        Args:
            payment_id: Payment ID
            amount: Amount claimed by the callback
            raw_payload: Parsed callback body
        """
        pass

    @abstractmethod
    async def update_status(
        self, payment_id: int, status: str, failure_reason: Optional[str] = None
    ) -> bool:
        """
        Set payment status unless it is already COMPLETED

        failure_reason is written only when given; otherwise the stored
        reason is kept.

        Returns:
            True if the row changed, False if the payment was COMPLETED
        """
        pass

    @abstractmethod
    async def update_open_status(self, payment_id: int, status: str) -> bool:
        """
        Set payment status only while it is not yet terminal

        Used for failure and intermediate callbacks, so a late or
        out-of-order delivery never replaces a terminal status and never
        touches failure_reason.

        Returns:
            True if the row changed, False if the payment was already terminal
        """
        pass
