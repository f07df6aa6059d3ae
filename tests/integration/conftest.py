import pytest_asyncio
from decimal import Decimal
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers all tables on SQLModel.metadata
from src.adapter.services.http_signature_authenticator import HttpSignatureAuthenticator
from src.depends import get_session, get_webhook_authenticator
from src.domain.business import Business
from src.domain.credit_pack import CreditPack
from src.domain.pack_catalog import DEFAULT_CREDIT_PACKS
from src.domain.payment import Payment
from tests.fixtures.signing import TEST_WEBHOOK_SECRET


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a file-backed SQLite database per test"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'credits_test.db'}"
    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory):
    """
    Businesses, default packs and one pending deposit

    - biz_1: empty balance
    - biz_overdraft: {total: 10, used: 10, overdraft: 2}
    - dep-1: PENDING, biz_1 / STARTER_20 / USD 3.00
    """
    async with session_factory() as session:
        session.add(Business(id="biz_1", name="Mama Put Kitchen"))
        session.add(Business(id="biz_overdraft", credits_total=10, credits_used=10, overdraft_limit=2))
        for defaults in DEFAULT_CREDIT_PACKS:
            session.add(CreditPack(**defaults, is_active=True))
        session.add(
            Payment(
                provider="pawapay",
                deposit_id="dep-1",
                status="PENDING",
                business_id="biz_1",
                pack_code="STARTER_20",
                expected_currency="USD",
                expected_value=Decimal("3.00"),
                idempotency_key="dep-1",
            )
        )
        await session.commit()


@pytest_asyncio.fixture
async def client(db_session, seeded):
    """Create test client with database session and authenticator overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_session():
        yield db_session

    def override_get_webhook_authenticator():
        return HttpSignatureAuthenticator(hmac_secret=TEST_WEBHOOK_SECRET, max_age_seconds=0)

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_webhook_authenticator] = override_get_webhook_authenticator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
