"""Notification Service Interface

Defines the contract for alerting on ledger reconciliation discrepancies.
"""

from abc import ABC, abstractmethod
from src.app.use_cases.credits.dtos import LedgerDiscrepancyDTO


class NotificationService(ABC):
    """
    Abstract notification service for sending alerts

    Implementations can send notifications via:
    - Log output
    - Webhook (HTTP POST)
    """

    @abstractmethod
    async def send_discrepancy_alert(self, discrepancy: LedgerDiscrepancyDTO) -> bool:
        """
        Send alert for a business whose balance does not match its ledger

        Args:
            discrepancy: LedgerDiscrepancyDTO to alert about

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
