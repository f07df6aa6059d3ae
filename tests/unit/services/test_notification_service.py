"""Unit tests for ledger discrepancy notification channels"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.adapter.services.notification_service import (
    CompositeNotificationService,
    LoggingNotificationService,
    WebhookNotificationService,
    create_notification_service,
)
from src.app.use_cases.credits.dtos import LedgerDiscrepancyDTO


@pytest.fixture
def discrepancy():
    return LedgerDiscrepancyDTO(
        business_id="biz_1",
        balance_available=24,
        ledger_sum=19,
        discrepancy=5,
        broken_entry_id=None,
    )


def mock_client(post: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.post = post
    client_cls = MagicMock()
    client_cls.return_value.__aenter__ = AsyncMock(return_value=client)
    client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return client_cls


@pytest.mark.asyncio
class TestNotificationChannels:
    async def test_logging_channel(self, discrepancy, caplog):
        # Act
        with caplog.at_level("WARNING"):
            sent = await LoggingNotificationService().send_discrepancy_alert(discrepancy)

        # Assert
        assert sent is True
        assert "[LEDGER ALERT] Business: biz_1" in caplog.text

    async def test_webhook_posts_payload(self, discrepancy):
        # Arrange
        post = AsyncMock(return_value=MagicMock())
        client_cls = mock_client(post)

        # Act
        with patch("src.adapter.services.notification_service.httpx.AsyncClient", client_cls):
            sent = await WebhookNotificationService("https://alerts.example.com/hook").send_discrepancy_alert(
                discrepancy
            )

        # Assert
        assert sent is True
        url = post.await_args.args[0]
        payload = post.await_args.kwargs["json"]
        assert url == "https://alerts.example.com/hook"
        assert payload["type"] == "ledger_discrepancy"
        assert payload["business_id"] == "biz_1"
        assert payload["discrepancy"] == 5

    async def test_webhook_failure_returns_false(self, discrepancy):
        # Arrange
        post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        client_cls = mock_client(post)

        # Act
        with patch("src.adapter.services.notification_service.httpx.AsyncClient", client_cls):
            sent = await WebhookNotificationService("https://alerts.example.com/hook").send_discrepancy_alert(
                discrepancy
            )

        # Assert
        assert sent is False

    async def test_composite_succeeds_if_any_channel_does(self, discrepancy):
        # Arrange
        failing = MagicMock()
        failing.send_discrepancy_alert = AsyncMock(side_effect=RuntimeError("boom"))
        working = MagicMock()
        working.send_discrepancy_alert = AsyncMock(return_value=True)

        # Act
        sent = await CompositeNotificationService([failing, working]).send_discrepancy_alert(discrepancy)

        # Assert
        assert sent is True
        working.send_discrepancy_alert.assert_awaited_once_with(discrepancy)

    async def test_composite_fails_if_all_fail(self, discrepancy):
        # Arrange
        failing = MagicMock()
        failing.send_discrepancy_alert = AsyncMock(return_value=False)

        # Act
        sent = await CompositeNotificationService([failing]).send_discrepancy_alert(discrepancy)

        # Assert
        assert sent is False


class TestCreateNotificationService:
    def test_log_only_without_webhook(self):
        assert isinstance(create_notification_service(None), LoggingNotificationService)

    def test_log_and_webhook(self):
        service = create_notification_service("https://alerts.example.com/hook")

        assert isinstance(service, CompositeNotificationService)
        assert [type(s) for s in service.services] == [LoggingNotificationService, WebhookNotificationService]
