"""Notification Service Implementations

Logging and webhook channels for ledger discrepancy alerts.
"""

import logging
from typing import Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.app.use_cases.credits.dtos import LedgerDiscrepancyDTO

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """Notification service that logs alerts"""

    async def send_discrepancy_alert(self, discrepancy: LedgerDiscrepancyDTO) -> bool:
        logger.warning(
            f"[LEDGER ALERT] Business: {discrepancy.business_id}, "
            f"Available: {discrepancy.balance_available}, "
            f"Ledger sum: {discrepancy.ledger_sum}, "
            f"Discrepancy: {discrepancy.discrepancy}, "
            f"First broken entry: {discrepancy.broken_entry_id}"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that sends alerts via HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_discrepancy_alert(self, discrepancy: LedgerDiscrepancyDTO) -> bool:
        """
        Send discrepancy alert via webhook

        Returns:
            True if webhook call succeeded, False otherwise
        """
        payload = {
            "type": "ledger_discrepancy",
            "business_id": discrepancy.business_id,
            "balance_available": discrepancy.balance_available,
            "ledger_sum": discrepancy.ledger_sum,
            "discrepancy": discrepancy.discrepancy,
            "broken_entry_id": discrepancy.broken_entry_id,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
                logger.info(
                    f"Discrepancy alert for business {discrepancy.business_id} sent to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send discrepancy alert for business {discrepancy.business_id}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """Delegates to several channels, succeeding if any of them does"""

    def __init__(self, services: list[NotificationService]):
        self.services = services

    async def send_discrepancy_alert(self, discrepancy: LedgerDiscrepancyDTO) -> bool:
        success = False
        for service in self.services:
            try:
                if await service.send_discrepancy_alert(discrepancy):
                    success = True
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
        return success


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """
    Build the notification service for the reconciler

    Args:
        webhook_url: Optional alert URL. With it, alerts go to the log and
                     the webhook; without it, only to the log.
    """
    if not webhook_url:
        return LoggingNotificationService()

    return CompositeNotificationService(
        [LoggingNotificationService(), WebhookNotificationService(webhook_url)]
    )
