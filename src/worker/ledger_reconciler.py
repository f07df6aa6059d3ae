"""Ledger Reconciliation Background Worker

Periodically replays every business's credit ledger against its balance.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.business_repository import SqlAlchemyBusinessRepository
from src.adapter.repositories.credit_ledger_repository import SqlAlchemyCreditLedgerRepository
from src.adapter.services.notification_service import create_notification_service
from src.app.services.notification_service import NotificationService
from src.app.use_cases.credits import ReconcileLedger, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class LedgerReconcilerWorker:
    """
    Background worker for credit ledger reconciliation

    Features:
    - Compares business balances against ledger sums and snapshots
    - Logs discrepancies and sends one alert per affected business
    - Can run once or continuously
    - Configurable interval (default: daily)

    Usage:
        # Run once
        worker = LedgerReconcilerWorker()
        result = await worker.run_once()

        # Run continuously
        worker = LedgerReconcilerWorker()
        await worker.run_forever(interval_seconds=86400)  # Daily
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            notification_service: Alert channel (defaults to log, plus the
                                  configured webhook if any)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        self.notification_service = notification_service or create_notification_service(
            ApplicationConfig.RECONCILIATION_NOTIFICATION_WEBHOOK
        )

        logger.info("LedgerReconcilerWorker initialized")

    async def run_once(self) -> ReconciliationResultDTO:
        """
        Run reconciliation once

        Returns:
            ReconciliationResultDTO with reconciliation results
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Ledger reconciliation is disabled, skipping")
            return ReconciliationResultDTO(
                total_businesses_checked=0,
                discrepancies_found=0,
                discrepancies=[],
                reconciliation_time=datetime.utcnow(),
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            use_case = ReconcileLedger(
                business_repo=SqlAlchemyBusinessRepository(session),
                ledger_repo=SqlAlchemyCreditLedgerRepository(session),
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Reconciliation failed: {result.error.message} ({result.error.reason})")
                raise RuntimeError(f"Reconciliation failed: {result.error.message}")

            response = result.value

        if response.discrepancies_found > 0:
            logger.error(
                f"ALERT: {response.discrepancies_found} ledger discrepancies found!"
            )
            for d in response.discrepancies:
                logger.error(
                    f"  - Business {d.business_id}: available={d.balance_available}, "
                    f"ledger_sum={d.ledger_sum}, diff={d.discrepancy}, "
                    f"broken_entry_id={d.broken_entry_id}"
                )
                await self.notification_service.send_discrepancy_alert(d)

        return response

    async def run_forever(self, interval_seconds: int = 86400):
        """
        Run reconciliation continuously at specified interval

        Args:
            interval_seconds: Seconds between reconciliation runs (default: 24 hours)
        """
        logger.info(
            f"Starting continuous ledger reconciliation with {interval_seconds}s interval"
        )

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Reconciliation cycle complete. "
                    f"Checked {result.total_businesses_checked} businesses, "
                    f"found {result.discrepancies_found} discrepancies "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("LedgerReconcilerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.ledger_reconciler --once

        # Run continuously (default: RECONCILIATION_INTERVAL_SECONDS)
        python -m src.worker.ledger_reconciler

        # Run continuously with custom interval (in seconds)
        python -m src.worker.ledger_reconciler --interval 3600
    """
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Ledger Reconciliation Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: RECONCILIATION_INTERVAL_SECONDS)"
    )
    args = parser.parse_args()

    worker = LedgerReconcilerWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Reconciliation complete:")
            print(f"  Total businesses checked: {result.total_businesses_checked}")
            print(f"  Discrepancies found: {result.discrepancies_found}")
            print(f"  Execution time: {result.execution_time_ms}ms")
            if result.discrepancies:
                print("\nDiscrepancies:")
                for d in result.discrepancies:
                    print(
                        f"  - Business {d.business_id}: "
                        f"available={d.balance_available}, "
                        f"ledger_sum={d.ledger_sum}, "
                        f"diff={d.discrepancy}"
                    )
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
