"""ReconcileLedger Use Case

Replays each business's ledger and compares it with the balance
aggregate to detect drift between the audit log and the cached counters.
"""

import logging
import time
from datetime import datetime
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.repositories.business_repository import BusinessRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.domain.credit_ledger import CreditLedgerEntry
from .dtos import LedgerDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


def first_broken_entry(entries: List[CreditLedgerEntry]) -> Optional[int]:
    """Return the id of the first entry whose balance_after is not the running sum"""
    running = 0
    for entry in entries:
        running += entry.credits_delta
        if entry.balance_after != running:
            return entry.id
    return None


class ReconcileLedger:
    """
    Use Case: Reconcile business balances against their ledgers

    Business Rules:
    1. For each business, sum(credits_delta) must equal credits_total - credits_used
    2. Each entry's balance_after must equal the running sum at that point
    3. Read-only: discrepancies are reported, never repaired

    Flow:
    1. Get all businesses
    2. For each business replay its ledger in creation order
    3. Return reconciliation result with all discrepancies
    """

    def __init__(
        self,
        business_repo: BusinessRepository,
        ledger_repo: CreditLedgerRepository,
    ):
        self.business_repo = business_repo
        self.ledger_repo = ledger_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting credit ledger reconciliation")

            businesses = await self.business_repo.get_all()
            total_businesses = len(businesses)

            logger.info(f"Found {total_businesses} businesses to reconcile")

            discrepancies: list[LedgerDiscrepancyDTO] = []

            for business in businesses:
                entries = await self.ledger_repo.get_history(business.id)
                ledger_sum = sum(entry.credits_delta for entry in entries)
                available = business.credits_total - business.credits_used
                broken_entry_id = first_broken_entry(entries)

                if ledger_sum != available or broken_entry_id is not None:
                    discrepancy = LedgerDiscrepancyDTO(
                        business_id=business.id,
                        balance_available=available,
                        ledger_sum=ledger_sum,
                        discrepancy=available - ledger_sum,
                        broken_entry_id=broken_entry_id,
                    )
                    discrepancies.append(discrepancy)

                    logger.warning(
                        f"Discrepancy found for business {business.id}: "
                        f"available={available}, ledger_sum={ledger_sum}, "
                        f"broken_entry_id={broken_entry_id}"
                    )

            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_businesses_checked=total_businesses,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {total_businesses} businesses in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total_businesses} businesses balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile credit ledger",
                    reason=str(e),
                )
            )
