"""Seed the default credit packs

Usage:
    # Seed packs into an existing schema
    python -m src.worker.seed_credit_packs

    # Create missing tables first (development databases)
    python -m src.worker.seed_credit_packs --create-tables
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers all tables on SQLModel.metadata
from config import ApplicationConfig
from src.adapter.repositories.credit_pack_repository import SqlAlchemyCreditPackRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.credits import EnsureDefaultCreditPacks, SeedPacksResultDTO

logger = logging.getLogger(__name__)


async def seed_credit_packs(db_uri: Optional[str] = None, create_tables: bool = False) -> SeedPacksResultDTO:
    engine = create_async_engine(db_uri or ApplicationConfig.DB_URI, echo=False, future=True)
    try:
        if create_tables:
            async with engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Database tables created")

        session_factory = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        async with session_factory() as session:
            use_case = EnsureDefaultCreditPacks(
                SqlAlchemyUnitOfWork(session),
                SqlAlchemyCreditPackRepository(session),
            )
            result = await use_case.execute()

        if result.is_err():
            raise RuntimeError(f"Seeding failed: {result.error.message} ({result.error.reason})")
        return result.value
    finally:
        await engine.dispose()


async def main():
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Seed default credit packs")
    parser.add_argument(
        "--create-tables", action="store_true", help="Create missing tables before seeding"
    )
    args = parser.parse_args()

    result = await seed_credit_packs(create_tables=args.create_tables)
    print(f"Created: {', '.join(result.created) or '-'}")
    print(f"Already present: {', '.join(result.existing) or '-'}")


if __name__ == "__main__":
    asyncio.run(main())
