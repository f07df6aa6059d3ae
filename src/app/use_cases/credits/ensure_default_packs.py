"""EnsureDefaultCreditPacks Use Case

Seeds the default credit pack catalog. Existing packs are left untouched.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.credit_pack_repository import CreditPackRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.credit_pack import CreditPack
from src.domain.pack_catalog import DEFAULT_CREDIT_PACKS
from .dtos import SeedPacksResultDTO

logger = logging.getLogger(__name__)


class EnsureDefaultCreditPacks:
    def __init__(self, uow: UnitOfWork, pack_repo: CreditPackRepository):
        self.uow = uow
        self.pack_repo = pack_repo

    async def execute(self) -> Result[SeedPacksResultDTO]:
        created: list[str] = []
        existing: list[str] = []
        try:
            for defaults in DEFAULT_CREDIT_PACKS:
                if await self.pack_repo.get_by_code(defaults["code"]):
                    existing.append(defaults["code"])
                    continue
                await self.pack_repo.create(CreditPack(**defaults, is_active=True))
                created.append(defaults["code"])

            await self.uow.commit()

            if created:
                logger.info(f"Seeded credit packs: {', '.join(created)}")
            return Return.ok(SeedPacksResultDTO(created=created, existing=existing))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SEED_PACKS_FAILED",
                    message="Failed to seed default credit packs",
                    reason=str(e),
                )
            )
