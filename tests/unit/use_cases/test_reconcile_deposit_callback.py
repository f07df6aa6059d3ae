"""Unit tests for ReconcileDepositCallback use case

Tests cover:
- Verification failures (nothing read or written)
- Malformed bodies and unknown deposits
- Success path: crediting, duplicate delivery, amount mismatch, missing bindings
- Retryable vs terminal crediting failures
- Failure and intermediate statuses, COMPLETED stickiness
"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from libs.result import Error, Return
from src.app.errors import ErrorCode, VerificationError
from src.app.services.webhook_authenticator import InboundRequest
from src.app.use_cases.credits.dtos import LedgerEntryResponseDTO
from src.app.use_cases.payments.reconcile_deposit_callback import (
    CALLBACK_PROCESSING_FAILED,
    ReconcileDepositCallback,
)
from tests.fixtures.signing import CALLBACK_URL, callback_body


def purchase_entry(replayed: bool = False) -> LedgerEntryResponseDTO:
    return LedgerEntryResponseDTO(
        entry_id=11,
        business_id="biz_1",
        entry_type="purchase",
        credits_delta=20,
        balance_after=20,
        pack_code="STARTER_20",
        idempotency_key="dep-1",
        replayed=replayed,
        created_at=datetime.utcnow(),
    )


def inbound(body: bytes) -> InboundRequest:
    return InboundRequest(
        method="POST",
        url=CALLBACK_URL,
        headers={"content-type": "application/json", "signature": "sig-pp=:c2VjcmV0LXNpZ25hdHVyZQ==:"},
        body=body,
    )


@pytest.fixture
def authenticator():
    auth = MagicMock()
    auth.verify = MagicMock(return_value=None)
    return auth


@pytest.fixture
def purchase_credits():
    purchase = MagicMock()
    purchase.execute = AsyncMock(return_value=Return.ok(purchase_entry()))
    return purchase


@pytest.fixture
def use_case(mock_uow, authenticator, mock_payment_repo, mock_business_repo, mock_pack_repo, purchase_credits):
    return ReconcileDepositCallback(
        uow=mock_uow,
        authenticator=authenticator,
        payment_repo=mock_payment_repo,
        business_repo=mock_business_repo,
        pack_repo=mock_pack_repo,
        purchase_credits=purchase_credits,
    )


@pytest.fixture
def ready(mock_payment_repo, mock_pack_repo, pending_payment, starter_pack):
    """Pending payment and active pack in place"""
    mock_payment_repo.get_by_deposit_id.return_value = pending_payment
    mock_pack_repo.get_active_by_code.return_value = starter_pack
    return pending_payment


@pytest.mark.asyncio
class TestCallbackRejection:
    async def test_verification_failure_touches_nothing(
        self, use_case, authenticator, mock_uow, mock_payment_repo, purchase_credits
    ):
        # Arrange
        authenticator.verify.side_effect = VerificationError(
            "Invalid Content-Digest", code=ErrorCode.INVALID_CONTENT_DIGEST, reason="sha-512 mismatch"
        )

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.is_err()
        assert result.error.code == "INVALID_CONTENT_DIGEST"
        assert result.error.message == "Invalid Content-Digest"
        mock_payment_repo.get_by_deposit_id.assert_not_awaited()
        purchase_credits.execute.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            b"[1, 2, 3]",
            b'{"status": "COMPLETED", "amount": {"currency": "USD", "value": "3.00"}}',
            b'{"depositId": "dep-1", "amount": {"currency": "USD", "value": "3.00"}}',
            b'{"depositId": "dep-1", "status": "COMPLETED"}',
            b'{"depositId": "dep-1", "status": "COMPLETED", "amount": {"currency": "USD", "value": "abc"}}',
            b'{"depositId": "", "status": "COMPLETED", "amount": {"currency": "USD", "value": "3.00"}}',
        ],
    )
    async def test_missing_or_malformed_fields(self, use_case, mock_payment_repo, body):
        # Act
        result = await use_case.execute(inbound(body))

        # Assert
        assert result.error.code == "MISSING_FIELDS"
        assert result.error.message == "Missing fields"
        mock_payment_repo.get_by_deposit_id.assert_not_awaited()

    async def test_unknown_deposit_is_never_created(self, use_case, mock_payment_repo, purchase_credits):
        # Act
        result = await use_case.execute(inbound(callback_body(deposit_id="dep-404")))

        # Assert
        assert result.error.code == "UNKNOWN_DEPOSIT"
        assert result.error.message == "Unknown depositId"
        mock_payment_repo.create.assert_not_awaited()
        mock_payment_repo.update_status.assert_not_awaited()
        purchase_credits.execute.assert_not_awaited()


@pytest.mark.asyncio
class TestCallbackSuccess:
    async def test_credits_and_completes(
        self, use_case, ready, mock_uow, mock_payment_repo, purchase_credits
    ):
        """
        Given: PENDING dep-1 bound to biz_1 / STARTER_20 / USD 3.00
        When: a COMPLETED callback for USD 3.00 arrives
        Then: credits are purchased with the deposit id as key and the payment is COMPLETED
        """
        # Act
        result = await use_case.execute(inbound(callback_body(metadata={"orderId": "ORD-1"})))

        # Assert
        assert result.is_ok()
        outcome = result.value
        assert outcome.payment_status == "COMPLETED"
        assert outcome.credited is True
        assert outcome.ledger_entry_id == 11

        command = purchase_credits.execute.await_args.args[0]
        assert command.business_id == "biz_1"
        assert command.pack_code == "STARTER_20"
        assert command.idempotency_key == "dep-1"
        assert command.payment_info.deposit_id == "dep-1"
        assert command.payment_info.amount.value == Decimal("3.00")

        payment_id, amount, raw = mock_payment_repo.record_callback.await_args.args
        assert payment_id == 1
        assert amount.currency == "USD"
        assert raw["depositId"] == "dep-1"
        assert raw["metadata"] == {"orderId": "ORD-1"}
        mock_payment_repo.update_status.assert_awaited_once_with(1, "COMPLETED")
        assert mock_uow.commit.await_count == 2

    async def test_success_status_alias(self, use_case, ready, purchase_credits):
        # Act
        result = await use_case.execute(inbound(callback_body(status="success")))

        # Assert
        assert result.value.payment_status == "COMPLETED"
        purchase_credits.execute.assert_awaited_once()

    async def test_numeric_amount_equal_to_expected(self, use_case, ready):
        # Arrange
        body = b'{"depositId": "dep-1", "status": "COMPLETED", "amount": {"currency": "usd", "value": 3.0}}'

        # Act
        result = await use_case.execute(inbound(body))

        # Assert
        assert result.is_ok()

    async def test_numeric_amount_keeps_every_digit(self, use_case, ready, purchase_credits):
        # Arrange
        ready.expected_value = Decimal("1234567890123456.78")
        body = b'{"depositId": "dep-1", "status": "COMPLETED", "amount": {"currency": "USD", "value": 1234567890123456.78}}'

        # Act
        result = await use_case.execute(inbound(body))

        # Assert
        assert result.is_ok()
        command = purchase_credits.execute.await_args.args[0]
        assert command.payment_info.amount.value == Decimal("1234567890123456.78")

    async def test_numeric_amount_one_cent_off_is_mismatch(self, use_case, ready, mock_payment_repo, purchase_credits):
        # Arrange
        ready.expected_value = Decimal("1234567890123456.78")
        body = b'{"depositId": "dep-1", "status": "COMPLETED", "amount": {"currency": "USD", "value": 1234567890123456.79}}'

        # Act
        result = await use_case.execute(inbound(body))

        # Assert
        assert result.error.code == "AMOUNT_MISMATCH"
        mock_payment_repo.update_status.assert_awaited_once_with(1, "FAILED", failure_reason="AMOUNT_MISMATCH")
        purchase_credits.execute.assert_not_awaited()

    async def test_duplicate_delivery_after_completion_is_noop(
        self, use_case, ready, mock_payment_repo, purchase_credits, mock_uow
    ):
        # Arrange
        ready.status = "COMPLETED"

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.is_ok()
        assert result.value.replayed is True
        assert result.value.credited is False
        purchase_credits.execute.assert_not_awaited()
        mock_payment_repo.update_status.assert_not_awaited()
        mock_uow.commit.assert_not_awaited()

    async def test_redelivery_after_crash_completes_without_double_credit(
        self, use_case, ready, mock_payment_repo, purchase_credits
    ):
        """
        Given: The purchase for dep-1 was committed but the payment is still PENDING
        When: the callback is delivered again
        Then: the purchase replays and the payment is moved to COMPLETED
        """
        # Arrange
        purchase_credits.execute.return_value = Return.ok(purchase_entry(replayed=True))

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.value.credited is False
        assert result.value.replayed is True
        mock_payment_repo.update_status.assert_awaited_once_with(1, "COMPLETED")


@pytest.mark.asyncio
class TestCallbackSuccessFailures:
    @pytest.mark.parametrize(
        "currency,value",
        [("USD", "2.99"), ("EUR", "3.00"), ("USD", "3.001")],
    )
    async def test_amount_mismatch_fails_payment(
        self, use_case, ready, mock_payment_repo, purchase_credits, currency, value
    ):
        # Act
        result = await use_case.execute(inbound(callback_body(currency=currency, value=value)))

        # Assert
        assert result.error.code == "AMOUNT_MISMATCH"
        assert result.error.message == "Amount mismatch"
        mock_payment_repo.record_callback.assert_awaited_once()
        mock_payment_repo.update_status.assert_awaited_once_with(1, "FAILED", failure_reason="AMOUNT_MISMATCH")
        purchase_credits.execute.assert_not_awaited()

    async def test_missing_binding(self, use_case, ready, mock_payment_repo, purchase_credits):
        # Arrange
        ready.pack_code = None

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.error.code == "MISSING_BUSINESS_OR_PACK"
        assert result.error.message == "Missing business or pack"
        mock_payment_repo.update_status.assert_awaited_once_with(
            1, "FAILED", failure_reason="MISSING_BUSINESS_OR_PACK"
        )
        purchase_credits.execute.assert_not_awaited()

    async def test_business_gone(self, use_case, ready, mock_business_repo, mock_payment_repo):
        # Arrange
        mock_business_repo.exists.return_value = False

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.error.code == "BUSINESS_NOT_FOUND"
        assert result.error.message == "Business not found"
        mock_payment_repo.update_status.assert_awaited_once_with(1, "FAILED", failure_reason="BUSINESS_NOT_FOUND")

    async def test_pack_deactivated(self, use_case, ready, mock_pack_repo, mock_payment_repo):
        # Arrange
        mock_pack_repo.get_active_by_code.return_value = None

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.error.code == "PACK_INACTIVE_OR_MISSING"
        assert result.error.message == "Pack inactive or missing"

    @pytest.mark.parametrize("code", ["TRANSACTION_CONFLICT", "PURCHASE_CREDITS_FAILED"])
    async def test_retryable_crediting_failure_leaves_payment_pending(
        self, use_case, ready, mock_payment_repo, purchase_credits, code
    ):
        # Arrange
        purchase_credits.execute.return_value = Return.err(Error(code=code, message="busy"))

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.error.code == CALLBACK_PROCESSING_FAILED
        assert result.error.message == "Internal error"
        mock_payment_repo.update_status.assert_not_awaited()

    async def test_terminal_crediting_failure_fails_payment(
        self, use_case, ready, mock_payment_repo, purchase_credits
    ):
        # Arrange
        purchase_credits.execute.return_value = Return.err(
            Error(code="IDEMPOTENCY_KEY_REUSED", message="Idempotency key dep-1 already used")
        )

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.error.code == "IDEMPOTENCY_KEY_REUSED"
        mock_payment_repo.update_status.assert_awaited_once_with(
            1, "FAILED", failure_reason="IDEMPOTENCY_KEY_REUSED"
        )

    async def test_unexpected_error_rolls_back(self, use_case, ready, mock_uow, mock_payment_repo):
        # Arrange
        mock_payment_repo.record_callback.side_effect = RuntimeError("connection reset")

        # Act
        result = await use_case.execute(inbound(callback_body()))

        # Assert
        assert result.error.code == CALLBACK_PROCESSING_FAILED
        assert result.error.message == "Internal error"
        mock_uow.rollback.assert_awaited_once()


@pytest.mark.asyncio
class TestCallbackNonSuccess:
    @pytest.mark.parametrize(
        "status,stored",
        [("FAILED", "FAILED"), ("cancelled", "CANCELED"), ("CANCELED", "CANCELED"), ("EXPIRED", "EXPIRED")],
    )
    async def test_final_failure_is_recorded(
        self, use_case, ready, mock_payment_repo, purchase_credits, status, stored
    ):
        # Act
        result = await use_case.execute(inbound(callback_body(status=status)))

        # Assert
        assert result.is_ok()
        assert result.value.payment_status == stored
        assert result.value.replayed is False
        mock_payment_repo.record_callback.assert_awaited_once()
        mock_payment_repo.update_open_status.assert_awaited_once_with(1, stored)
        mock_payment_repo.update_status.assert_not_awaited()
        purchase_credits.execute.assert_not_awaited()

    async def test_failure_after_completion_is_ignored(self, use_case, ready, mock_payment_repo):
        # Arrange
        ready.status = "COMPLETED"

        # Act
        result = await use_case.execute(inbound(callback_body(status="FAILED")))

        # Assert
        assert result.is_ok()
        assert result.value.payment_status == "COMPLETED"
        mock_payment_repo.update_status.assert_not_awaited()
        mock_payment_repo.update_open_status.assert_not_awaited()
        mock_payment_repo.record_callback.assert_not_awaited()

    @pytest.mark.parametrize("stored", ["FAILED", "CANCELED", "EXPIRED"])
    @pytest.mark.parametrize("late", ["ACCEPTED", "PROCESSING", "EXPIRED", "cancelled"])
    async def test_late_callback_leaves_terminal_payment(self, use_case, ready, mock_payment_repo, stored, late):
        """
        Given: A payment already FAILED, CANCELED or EXPIRED
        When: An out-of-order non-success callback arrives
        Then: Status, failure reason and recorded payload are untouched
        """
        # Arrange
        ready.status = stored
        ready.failure_reason = "AMOUNT_MISMATCH" if stored == "FAILED" else None

        # Act
        result = await use_case.execute(inbound(callback_body(status=late)))

        # Assert
        assert result.is_ok()
        assert result.value.payment_status == stored
        assert result.value.replayed is True
        mock_payment_repo.update_open_status.assert_not_awaited()
        mock_payment_repo.update_status.assert_not_awaited()
        mock_payment_repo.record_callback.assert_not_awaited()

    async def test_payment_turned_terminal_concurrently(self, use_case, ready, mock_payment_repo):
        # Arrange
        expired = MagicMock(status="EXPIRED")
        mock_payment_repo.get_by_deposit_id.side_effect = [ready, expired]
        mock_payment_repo.update_open_status.return_value = False

        # Act
        result = await use_case.execute(inbound(callback_body(status="ACCEPTED")))

        # Assert
        assert result.value.payment_status == "EXPIRED"
        assert result.value.replayed is True
        mock_payment_repo.record_callback.assert_not_awaited()

    async def test_intermediate_status_stored_upper_cased(self, use_case, ready, mock_payment_repo):
        # Act
        result = await use_case.execute(inbound(callback_body(status="processing")))

        # Assert
        assert result.value.payment_status == "PROCESSING"
        mock_payment_repo.update_open_status.assert_awaited_once_with(1, "PROCESSING")
        mock_payment_repo.update_status.assert_not_awaited()

    async def test_long_status_truncated(self, use_case, ready, mock_payment_repo):
        # Act
        result = await use_case.execute(inbound(callback_body(status="x" * 40)))

        # Assert
        assert result.value.payment_status == "X" * 32
