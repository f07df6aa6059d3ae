"""Credits API Routes

FastAPI routes for business credit balance, ledger and order charges.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.business_repository import SqlAlchemyBusinessRepository
from src.adapter.repositories.credit_ledger_repository import SqlAlchemyCreditLedgerRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.app.errors import ErrorCode
from src.app.use_cases.credits.consume_credit import ConsumeCredit
from src.app.use_cases.credits.dtos import (
    BalanceResponseDTO,
    LedgerEntryResponseDTO,
    ListLedgerEntriesResponseDTO,
)
from src.app.use_cases.credits.get_balance import GetBalance
from src.app.use_cases.credits.list_ledger_entries import ListLedgerEntries
from src.app.use_cases.credits.order_hooks import OrderCreditsHook
from src.app.use_cases.credits.reverse_consume import ReverseConsume
from src.depends import get_session
from libs.result import Error

router = APIRouter(prefix="/business/{business_id}/credits", tags=["Credits"])

ERROR_STATUS_CODES = {
    ErrorCode.BUSINESS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSUFFICIENT_CREDITS: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.NO_CONSUME_TO_REVERSE: status.HTTP_409_CONFLICT,
    ErrorCode.NO_USAGE_TO_REVERSE: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_REVERSED: status.HTTP_409_CONFLICT,
    ErrorCode.TRANSACTION_CONFLICT: status.HTTP_409_CONFLICT,
}


def to_client_error(error: Error) -> ClientError:
    if error.code.endswith("_FAILED"):
        return ClientError(error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return ClientError(error, status_code=ERROR_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST))


def build_order_hook(session: AsyncSession) -> OrderCreditsHook:
    uow = SqlAlchemyUnitOfWork(session)
    business_repo = SqlAlchemyBusinessRepository(session)
    ledger_repo = SqlAlchemyCreditLedgerRepository(session)
    max_retries = ApplicationConfig.LEDGER_MAX_RETRIES
    return OrderCreditsHook(
        consume_credit=ConsumeCredit(uow, business_repo, ledger_repo, max_retries),
        reverse_consume=ReverseConsume(uow, business_repo, ledger_repo, max_retries),
    )


@router.get(
    "/balance",
    response_model=BalanceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Business not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "BUSINESS_NOT_FOUND",
                            "message": "Business biz_a1b2c3 not found"
                        }
                    }
                }
            }
        }
    }
)
async def get_balance(
    business_id: str,
    session: AsyncSession = Depends(get_session)
):
    """
    Get the credit balance of a business.

    **Returns:**
    - 200: total, used, available, overdraft_limit, effective_available
    - 404: Business not found
    """
    use_case = GetBalance(SqlAlchemyBusinessRepository(session))
    result = await use_case.execute(business_id)

    if result.is_err():
        raise to_client_error(result.error)

    return result.value


@router.get(
    "/ledger",
    response_model=ListLedgerEntriesResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_ledger(
    business_id: str,
    page: int = Query(default=1, description="Page number, starting at 1"),
    limit: int = Query(default=20, description="Entries per page (clamped to 1..100)"),
    session: AsyncSession = Depends(get_session)
):
    """
    List the credit ledger of a business, newest first.

    Out-of-range page and limit values are clamped rather than rejected.
    """
    use_case = ListLedgerEntries(
        SqlAlchemyCreditLedgerRepository(session),
        max_page_size=ApplicationConfig.LEDGER_PAGE_SIZE_MAX,
    )
    result = await use_case.execute(business_id, page=page, limit=limit)

    if result.is_err():
        raise to_client_error(result.error)

    return result.value


@router.post(
    "/orders/{order_id}/consume",
    response_model=LedgerEntryResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        402: {
            "description": "Insufficient credits",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INSUFFICIENT_CREDITS",
                            "message": "Insufficient credits. Available: 0, overdraft limit: 0"
                        }
                    }
                }
            }
        },
        404: {"description": "Business not found"},
    }
)
async def consume_for_order(
    business_id: str,
    order_id: str,
    session: AsyncSession = Depends(get_session)
):
    """
    Charge one credit for a completed order.

    The balance may dip into the business overdraft band. Callers should
    decline the order on 402.
    """
    result = await build_order_hook(session).on_order_completed(business_id, order_id)

    if result.is_err():
        raise to_client_error(result.error)

    return result.value


@router.post(
    "/orders/{order_id}/reverse",
    response_model=LedgerEntryResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        409: {
            "description": "Nothing to reverse",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "NO_CONSUME_TO_REVERSE",
                            "message": "No consume recorded for order order-1"
                        }
                    }
                }
            }
        },
        404: {"description": "Business not found"},
    }
)
async def reverse_for_order(
    business_id: str,
    order_id: str,
    session: AsyncSession = Depends(get_session)
):
    """
    Return the credit charged for an order cancelled within the grace window.

    At most one reversal is accepted per consume.
    """
    result = await build_order_hook(session).on_order_cancelled_within_grace(business_id, order_id)

    if result.is_err():
        raise to_client_error(result.error)

    return result.value
