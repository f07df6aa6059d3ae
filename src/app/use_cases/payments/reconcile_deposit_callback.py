"""ReconcileDepositCallback Use Case

Applies a provider deposit callback to its Payment: authenticate, look
up the payment registered at checkout, validate, credit exactly once and
move the payment to its terminal status.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Optional
from libs.result import Result, Return, Error
from src.app.errors import ErrorCode, VerificationError
from src.app.repositories.business_repository import BusinessRepository
from src.app.repositories.credit_pack_repository import CreditPackRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.webhook_authenticator import (
    InboundRequest,
    WebhookAuthenticator,
    mask_signature_headers,
)
from src.app.use_cases.credits.dtos import PaymentInfoDTO, PurchaseCommandDTO
from src.app.use_cases.credits.purchase_credits import PurchaseCredits
from src.domain.payment import TERMINAL_STATUSES, Payment, PaymentStatus
from .dtos import CallbackOutcomeDTO, CallbackStatusKind, DepositCallbackDTO, classify_status

logger = logging.getLogger(__name__)

CALLBACK_PROCESSING_FAILED = "CALLBACK_PROCESSING_FAILED"

# Purchase failures that leave the payment PENDING for a provider retry
RETRYABLE_PURCHASE_ERRORS = frozenset({ErrorCode.TRANSACTION_CONFLICT, "PURCHASE_CREDITS_FAILED"})


def _decode_json(body: bytes) -> Any:
    try:
        return json.loads(body.decode("utf-8"), parse_float=Decimal)
    except (UnicodeDecodeError, ValueError):
        return None


def _claimed_deposit_id(body: bytes) -> Optional[str]:
    """depositId from an unverified body, for log correlation only"""
    payload = _decode_json(body)
    if isinstance(payload, dict):
        value = payload.get("depositId")
        return str(value) if value is not None else None
    return None


class ReconcileDepositCallback:
    """
    Use Case: Reconcile a provider deposit callback

    Business Rules:
    1. Nothing in the body is trusted before digest and signature pass
    2. depositId, status and amount are required
    3. Unknown depositId is rejected; payments are never created here
    4. Business and pack come from the stored payment, never the body
    5. Callback amount must equal the expected amount exactly
    6. COMPLETED is terminal; duplicate success callbacks are no-ops
    7. Failure and intermediate statuses are recorded only while the
       payment is not terminal; they never overwrite failure_reason
    8. JSON numbers are read as Decimal, never as binary floats

    Crediting and the COMPLETED write are sequenced: the purchase entry
    is committed first under the deposit id as idempotency key, so a
    crash before the status write is repaired by the next delivery.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        authenticator: WebhookAuthenticator,
        payment_repo: PaymentRepository,
        business_repo: BusinessRepository,
        pack_repo: CreditPackRepository,
        purchase_credits: PurchaseCredits,
        provider: str = "pawapay",
    ):
        self.uow = uow
        self.authenticator = authenticator
        self.payment_repo = payment_repo
        self.business_repo = business_repo
        self.pack_repo = pack_repo
        self.purchase_credits = purchase_credits
        self.provider = provider

    async def execute(self, request: InboundRequest) -> Result[CallbackOutcomeDTO]:
        """
        Execute callback reconciliation

        Args:
            request: Raw inbound callback

        Returns:
            Result[CallbackOutcomeDTO]: Accepted outcome, or an error whose
            message is the plain-text rejection. CALLBACK_PROCESSING_FAILED
            marks an unexpected failure.
        """
        try:
            try:
                self.authenticator.verify(request)
            except VerificationError as e:
                logger.error(
                    f"{self.provider} callback verification failed: {e.message} ({e.reason}), "
                    f"claimed_deposit_id={_claimed_deposit_id(request.body)}, "
                    f"headers={mask_signature_headers(request.headers)}"
                )
                return Return.err(e.to_error())

            callback = DepositCallbackDTO.from_payload(_decode_json(request.body))
            if callback is None:
                logger.error(
                    f"{self.provider} callback missing required fields, "
                    f"deposit_id={_claimed_deposit_id(request.body)}"
                )
                return Return.err(Error(code=ErrorCode.MISSING_FIELDS, message="Missing fields"))

            payment = await self.payment_repo.get_by_deposit_id(callback.deposit_id)
            if not payment:
                logger.error(
                    f"{self.provider} callback received unknown deposit_id={callback.deposit_id}, "
                    f"status={callback.status}"
                )
                return Return.err(Error(code=ErrorCode.UNKNOWN_DEPOSIT, message="Unknown depositId"))

            kind, status = classify_status(callback.status)
            if kind == CallbackStatusKind.SUCCESS:
                return await self._complete(payment, callback)
            if kind == CallbackStatusKind.FAILURE:
                return await self._record_final_failure(payment, callback, status)
            return await self._record_intermediate(payment, callback, status)

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"{self.provider} callback unhandled error: {e}")
            return Return.err(
                Error(
                    code=CALLBACK_PROCESSING_FAILED,
                    message="Internal error",
                    reason=str(e),
                )
            )

    async def _complete(self, payment: Payment, callback: DepositCallbackDTO) -> Result[CallbackOutcomeDTO]:
        if payment.is_completed:
            logger.info(f"{self.provider} deposit {payment.deposit_id} already COMPLETED, ignoring duplicate")
            return Return.ok(
                CallbackOutcomeDTO(
                    deposit_id=payment.deposit_id,
                    payment_status=payment.status,
                    replayed=True,
                )
            )

        # Crediting may roll the session back, which expires the loaded payment
        payment_id = payment.id
        deposit_id = payment.deposit_id
        payment_status = payment.status
        business_id = payment.business_id
        pack_code = payment.pack_code
        expected = payment.expected_amount
        context = (
            f"deposit_id={deposit_id}, payment_id={payment_id}, "
            f"business_id={business_id}, pack_code={pack_code}"
        )

        if not business_id or not pack_code:
            return await self._fail(
                payment_id, ErrorCode.MISSING_BUSINESS_OR_PACK, "Missing business or pack", context
            )

        if not await self.business_repo.exists(business_id):
            return await self._fail(payment_id, ErrorCode.BUSINESS_NOT_FOUND, "Business not found", context)

        pack = await self.pack_repo.get_active_by_code(pack_code)
        if not pack:
            return await self._fail(
                payment_id, ErrorCode.PACK_INACTIVE_OR_MISSING, "Pack inactive or missing", context
            )

        await self.payment_repo.record_callback(
            payment_id, callback.amount, callback.model_dump(mode="json", by_alias=True)
        )

        if expected is not None and not expected.same_as(callback.amount):
            return await self._fail(
                payment_id,
                ErrorCode.AMOUNT_MISMATCH,
                "Amount mismatch",
                f"{context}, expected={expected.as_dict()}, callback={callback.amount.as_dict()}",
            )

        await self.uow.commit()

        purchase = await self.purchase_credits.execute(
            PurchaseCommandDTO(
                business_id=business_id,
                pack_code=pack_code,
                payment_info=PaymentInfoDTO(
                    amount=callback.amount,
                    provider=self.provider,
                    deposit_id=deposit_id,
                ),
                idempotency_key=deposit_id,
            )
        )

        if purchase.is_err():
            error = purchase.error
            if error.code in RETRYABLE_PURCHASE_ERRORS:
                logger.error(
                    f"{self.provider} crediting failed, payment left {payment_status}: "
                    f"{error.code} ({error.reason}), {context}"
                )
                return Return.err(
                    Error(
                        code=CALLBACK_PROCESSING_FAILED,
                        message="Internal error",
                        reason=error.code,
                    )
                )
            return await self._fail(payment_id, error.code, error.message, context)

        entry = purchase.value
        await self.payment_repo.update_status(payment_id, PaymentStatus.COMPLETED.value)
        await self.uow.commit()

        logger.info(
            f"{self.provider} deposit completed: {context}, "
            f"ledger_entry_id={entry.entry_id}, replayed={entry.replayed}"
        )
        return Return.ok(
            CallbackOutcomeDTO(
                deposit_id=deposit_id,
                payment_status=PaymentStatus.COMPLETED.value,
                credited=not entry.replayed,
                replayed=entry.replayed,
                ledger_entry_id=entry.entry_id,
            )
        )

    async def _fail(self, payment_id: int, reason: str, message: str, context: str) -> Result[CallbackOutcomeDTO]:
        await self.payment_repo.update_status(payment_id, PaymentStatus.FAILED.value, failure_reason=reason)
        await self.uow.commit()
        logger.error(f"{self.provider} crediting failed: {reason}, {context}")
        return Return.err(Error(code=reason, message=message))

    async def _record_final_failure(
        self, payment: Payment, callback: DepositCallbackDTO, status: str
    ) -> Result[CallbackOutcomeDTO]:
        result = await self._record_open_status(payment, callback, status)
        if not result.value.replayed:
            logger.error(
                f"{self.provider} payment final non-success status: deposit_id={payment.deposit_id}, "
                f"payment_id={payment.id}, business_id={payment.business_id}, "
                f"pack_code={payment.pack_code}, final_status={status}"
            )
        return result

    async def _record_intermediate(
        self, payment: Payment, callback: DepositCallbackDTO, status: str
    ) -> Result[CallbackOutcomeDTO]:
        result = await self._record_open_status(payment, callback, status)
        if not result.value.replayed:
            logger.info(f"{self.provider} deposit {payment.deposit_id} status recorded as {status}")
        return result

    async def _record_open_status(
        self, payment: Payment, callback: DepositCallbackDTO, status: str
    ) -> Result[CallbackOutcomeDTO]:
        """Record a non-success status unless the payment already reached a terminal one"""
        if payment.status in TERMINAL_STATUSES:
            logger.info(
                f"{self.provider} deposit {payment.deposit_id} is {payment.status}, "
                f"ignoring late {status} callback"
            )
            return Return.ok(
                CallbackOutcomeDTO(deposit_id=payment.deposit_id, payment_status=payment.status, replayed=True)
            )

        payment_id = payment.id
        deposit_id = payment.deposit_id
        applied = await self.payment_repo.update_open_status(payment_id, status)
        if applied:
            await self.payment_repo.record_callback(
                payment_id, callback.amount, callback.model_dump(mode="json", by_alias=True)
            )
        await self.uow.commit()

        if not applied:
            # A concurrent delivery moved the payment to a terminal status first
            current = await self.payment_repo.get_by_deposit_id(deposit_id)
            logger.info(f"{self.provider} deposit {deposit_id} became {current.status}, {status} not recorded")
            return Return.ok(
                CallbackOutcomeDTO(deposit_id=deposit_id, payment_status=current.status, replayed=True)
            )
        return Return.ok(CallbackOutcomeDTO(deposit_id=deposit_id, payment_status=status))
