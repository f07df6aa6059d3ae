"""Payments API Routes

Provider deposit callback. Responses are plain text as the provider
expects: "OK" for accepted outcomes, the rejection reason otherwise.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.business_repository import SqlAlchemyBusinessRepository
from src.adapter.repositories.credit_ledger_repository import SqlAlchemyCreditLedgerRepository
from src.adapter.repositories.credit_pack_repository import SqlAlchemyCreditPackRepository
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.webhook_authenticator import InboundRequest, WebhookAuthenticator
from src.app.use_cases.credits.purchase_credits import PurchaseCredits
from src.app.use_cases.payments.reconcile_deposit_callback import (
    CALLBACK_PROCESSING_FAILED,
    ReconcileDepositCallback,
)
from src.depends import get_session, get_webhook_authenticator

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/pawapay/callback",
    response_class=PlainTextResponse,
    responses={
        200: {"description": "Callback accepted", "content": {"text/plain": {"example": "OK"}}},
        400: {"description": "Verification failure, missing fields, unknown deposit or rejected payment",
              "content": {"text/plain": {"example": "Unknown depositId"}}},
        500: {"description": "Unexpected failure, safe to redeliver",
              "content": {"text/plain": {"example": "Internal error"}}},
    }
)
async def pawapay_callback(
    request: Request,
    session: AsyncSession = Depends(get_session),
    authenticator: WebhookAuthenticator = Depends(get_webhook_authenticator),
):
    """
    Reconcile a pawaPay deposit callback.

    The raw body is verified against Content-Digest and the HTTP message
    signature before it is parsed. Duplicate deliveries are acknowledged
    without side effects.
    """
    inbound = InboundRequest(
        method=request.method,
        url=str(request.url),
        headers={name.lower(): value for name, value in request.headers.items()},
        body=await request.body(),
    )

    uow = SqlAlchemyUnitOfWork(session)
    business_repo = SqlAlchemyBusinessRepository(session)
    ledger_repo = SqlAlchemyCreditLedgerRepository(session)
    pack_repo = SqlAlchemyCreditPackRepository(session)
    payment_repo = SqlAlchemyPaymentRepository(session)

    use_case = ReconcileDepositCallback(
        uow=uow,
        authenticator=authenticator,
        payment_repo=payment_repo,
        business_repo=business_repo,
        pack_repo=pack_repo,
        purchase_credits=PurchaseCredits(
            uow, business_repo, ledger_repo, pack_repo, ApplicationConfig.LEDGER_MAX_RETRIES
        ),
        provider=ApplicationConfig.PAYMENT_PROVIDER,
    )
    result = await use_case.execute(inbound)

    if result.is_ok():
        return PlainTextResponse("OK", status_code=status.HTTP_200_OK)
    if result.error.code == CALLBACK_PROCESSING_FAILED:
        return PlainTextResponse("Internal error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return PlainTextResponse(result.error.message, status_code=status.HTTP_400_BAD_REQUEST)
