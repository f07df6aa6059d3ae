"""SQLAlchemy implementation of CreditPackRepository"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_pack_repository import CreditPackRepository
from src.domain.credit_pack import CreditPack


class SqlAlchemyCreditPackRepository(CreditPackRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active_by_code(self, code: str) -> Optional[CreditPack]:
        stmt = select(CreditPack).where(CreditPack.code == code).where(CreditPack.is_active == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> Optional[CreditPack]:
        stmt = select(CreditPack).where(CreditPack.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self) -> List[CreditPack]:
        stmt = (
            select(CreditPack)
            .where(CreditPack.is_active == True)  # noqa: E712
            .order_by(CreditPack.sort, CreditPack.code)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, pack: CreditPack) -> CreditPack:
        self.session.add(pack)
        await self.session.flush()
        await self.session.refresh(pack)
        return pack
