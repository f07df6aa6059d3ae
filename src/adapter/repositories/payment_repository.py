"""SQLAlchemy implementation of PaymentRepository

Status updates are guarded in SQL so that COMPLETED can never be
overwritten, even by a callback racing with the crediting request, and
so that non-terminal statuses never replace a terminal one.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.money import Money
from src.domain.payment import TERMINAL_STATUSES, Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Features:
    - Unique deposit_id lookup
    - COMPLETED-is-sticky status writes
    - Open-only writes for failure and intermediate statuses
    - Raw callback payload stored as JSON text for forensics
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_deposit_id(self, deposit_id: str) -> Optional[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.deposit_id == deposit_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def record_callback(
        self, payment_id: int, amount: Optional[Money], raw_payload: Dict[str, Any]
    ) -> None:
        values: Dict[str, Any] = {
            "raw_payload": json.dumps(raw_payload, default=str),
            "updated_at": datetime.utcnow(),
        }
        if amount is not None:
            values["callback_currency"] = amount.currency
            values["callback_value"] = amount.value

        stmt = (
            update(Payment)
            .where(Payment.id == payment_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def update_status(
        self, payment_id: int, status: str, failure_reason: Optional[str] = None
    ) -> bool:
        now = datetime.utcnow()
        values: Dict[str, Any] = {"status": status, "updated_at": now}
        if failure_reason is not None:
            values["failure_reason"] = failure_reason
        if status == PaymentStatus.COMPLETED.value:
            values["completed_at"] = now

        stmt = (
            update(Payment)
            .where(Payment.id == payment_id)
            .where(Payment.status != PaymentStatus.COMPLETED.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def update_open_status(self, payment_id: int, status: str) -> bool:
        stmt = (
            update(Payment)
            .where(Payment.id == payment_id)
            .where(Payment.status.not_in(sorted(TERMINAL_STATUSES)))
            .values(status=status, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
