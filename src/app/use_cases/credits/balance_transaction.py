"""Optimistic transaction loop over the business balance aggregate

Every balance mutation is a read-modify-write of one business row plus
the insertion of one ledger entry, committed together. The balance write
is a compare-and-set on the row version; when another writer got there
first the whole unit of work is rolled back and replayed from a fresh
read.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Union
from sqlalchemy.exc import IntegrityError
from src.app.errors import BillingError, ErrorCode, NotFoundError, TransactionConflictError
from src.app.repositories.business_repository import BusinessRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.business import Business
from src.domain.credit_ledger import CreditLedgerEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 10


@dataclass
class BalanceChange:
    """New counters for the business and the entry recording the change"""

    credits_total: int
    credits_used: int
    entry: CreditLedgerEntry


PlanResult = Union[BalanceChange, CreditLedgerEntry]
Planner = Callable[[Business], Awaitable[PlanResult]]


class BalanceTransaction:
    """
    Base for use cases that mutate a business balance

    Subclasses build a planner: given a freshly read Business it either
    returns a BalanceChange to apply, returns an existing entry when the
    mutation was already applied, or raises a BillingError to abort.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        business_repo: BusinessRepository,
        ledger_repo: CreditLedgerRepository,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self.uow = uow
        self.business_repo = business_repo
        self.ledger_repo = ledger_repo
        self.max_retries = max(1, max_retries)

    async def _load_business(self, business_id: str) -> Business:
        business = await self.business_repo.get_by_id(business_id)
        if not business:
            raise NotFoundError(
                f"Business {business_id} not found",
                code=ErrorCode.BUSINESS_NOT_FOUND,
            )
        return business

    async def run(self, business_id: str, plan: Planner) -> Tuple[CreditLedgerEntry, bool]:
        """
        Apply a planned mutation atomically, retrying on write conflicts

        Returns:
            (entry, applied) where applied is False if the planner found
            the mutation already recorded

        Raises:
            BillingError: Business rule failure (nothing written)
            TransactionConflictError: Retries exhausted
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                business = await self._load_business(business_id)
                planned = await plan(business)

                if isinstance(planned, CreditLedgerEntry):
                    # Read-only path, the entry must stay loaded for the caller
                    return planned, False

                updated = await self.business_repo.update_balance(
                    business.id,
                    business.version,
                    planned.credits_total,
                    planned.credits_used,
                )
                if not updated:
                    await self.uow.rollback()
                    logger.info(
                        f"Balance write conflict for business {business_id} "
                        f"(attempt {attempt}/{self.max_retries}), retrying"
                    )
                    continue

                created = await self.ledger_repo.create(planned.entry)
                await self.uow.commit()
                return created, True

            except BillingError:
                await self.uow.rollback()
                raise
            except IntegrityError as e:
                # A concurrent writer inserted the same idempotency key first
                await self.uow.rollback()
                logger.info(
                    f"Ledger integrity conflict for business {business_id} "
                    f"(attempt {attempt}/{self.max_retries}): {e.orig}"
                )
                continue
            except Exception:
                await self.uow.rollback()
                raise

        logger.warning(
            f"Giving up on business {business_id} after {self.max_retries} conflicting attempts"
        )
        raise TransactionConflictError(
            f"Concurrent updates on business {business_id}, retry later",
            reason=f"attempts={self.max_retries}",
        )
