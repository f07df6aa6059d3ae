"""SQLAlchemy implementation of BusinessRepository

Balance writes are conditional UPDATEs on the row version, so two
concurrent writers that read the same version cannot both commit.
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import update, func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.business_repository import BusinessRepository
from src.domain.business import Business


class SqlAlchemyBusinessRepository(BusinessRepository):
    """
    SQLAlchemy implementation of BusinessRepository

    Features:
    - Optimistic concurrency via version column compare-and-set
    - populate_existing reads so retries never see stale identity-map state
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, business_id: str) -> Optional[Business]:
        stmt = (
            select(Business)
            .where(Business.id == business_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, business_id: str) -> bool:
        stmt = select(func.count()).select_from(Business).where(Business.id == business_id)
        result = await self.session.execute(stmt)
        return result.scalar_one() > 0

    async def create(self, business: Business) -> Business:
        self.session.add(business)
        await self.session.flush()
        await self.session.refresh(business)
        return business

    async def update_balance(
        self,
        business_id: str,
        expected_version: int,
        credits_total: int,
        credits_used: int,
    ) -> bool:
        """
        Compare-and-set the balance counters

        Note:
            Must be followed by commit() on success or rollback() on failure
        """
        stmt = (
            update(Business)
            .where(Business.id == business_id)
            .where(Business.version == expected_version)
            .values(
                credits_total=credits_total,
                credits_used=credits_used,
                version=expected_version + 1,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def get_all(self) -> List[Business]:
        stmt = select(Business).order_by(Business.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
