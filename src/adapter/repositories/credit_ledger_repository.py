"""SQLAlchemy implementation of CreditLedgerRepository

Provides append-only persistence for ledger entries with idempotency
enforcement via the unique constraint on idempotency_key.
"""

from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType


class SqlAlchemyCreditLedgerRepository(CreditLedgerRepository):
    """
    SQLAlchemy implementation of CreditLedgerRepository

    Features:
    - Idempotency enforcement via unique idempotency_key constraint
    - Immutable append-only entries
    - Newest-first pagination on (created_at, id)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: CreditLedgerEntry) -> CreditLedgerEntry:
        """
        Append a ledger entry

        Raises:
            IntegrityError: If idempotency_key already exists (duplicate purchase attempt)
        """
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[CreditLedgerEntry]:
        stmt = select(CreditLedgerEntry).where(
            CreditLedgerEntry.idempotency_key == idempotency_key
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_for_order(
        self, business_id: str, order_id: str, entry_type: LedgerEntryType
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(CreditLedgerEntry)
            .where(CreditLedgerEntry.business_id == business_id)
            .where(CreditLedgerEntry.order_id == order_id)
            .where(CreditLedgerEntry.entry_type == entry_type)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_by_business_id(
        self, business_id: str, limit: int = 20, offset: int = 0
    ) -> Tuple[List[CreditLedgerEntry], int]:
        count_stmt = (
            select(func.count())
            .select_from(CreditLedgerEntry)
            .where(CreditLedgerEntry.business_id == business_id)
        )
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(CreditLedgerEntry)
            .where(CreditLedgerEntry.business_id == business_id)
            .order_by(CreditLedgerEntry.created_at.desc(), CreditLedgerEntry.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_history(self, business_id: str) -> List[CreditLedgerEntry]:
        stmt = (
            select(CreditLedgerEntry)
            .where(CreditLedgerEntry.business_id == business_id)
            .order_by(CreditLedgerEntry.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
