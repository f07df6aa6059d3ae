"""Shared fixtures for unit tests"""

import itertools
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.business import Business
from src.domain.credit_pack import CreditPack
from src.domain.payment import Payment


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_business_repo():
    """Mock business repository, balance writes succeed by default"""
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=None)
    repo.exists = AsyncMock(return_value=True)
    repo.update_balance = AsyncMock(return_value=True)
    repo.get_all = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_ledger_repo():
    """Mock ledger repository that assigns ids to created entries"""
    ids = itertools.count(1)

    async def create(entry):
        entry.id = next(ids)
        return entry

    repo = MagicMock()
    repo.create = AsyncMock(side_effect=create)
    repo.get_by_idempotency_key = AsyncMock(return_value=None)
    repo.count_for_order = AsyncMock(return_value=0)
    repo.get_by_business_id = AsyncMock(return_value=([], 0))
    repo.get_history = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_pack_repo():
    """Mock credit pack repository"""
    async def create(pack):
        return pack

    repo = MagicMock()
    repo.get_active_by_code = AsyncMock(return_value=None)
    repo.get_by_code = AsyncMock(return_value=None)
    repo.list_active = AsyncMock(return_value=[])
    repo.create = AsyncMock(side_effect=create)
    return repo


@pytest.fixture
def mock_payment_repo():
    """Mock payment repository"""
    async def create(payment):
        payment.id = 1
        return payment

    repo = MagicMock()
    repo.get_by_deposit_id = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=create)
    repo.record_callback = AsyncMock()
    repo.update_status = AsyncMock(return_value=True)
    repo.update_open_status = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def sample_business():
    """Business with 20 credits, none used"""
    return Business(
        id="biz_1",
        name="Mama Put Kitchen",
        credits_total=20,
        credits_used=0,
        overdraft_limit=0,
        version=3,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )


@pytest.fixture
def starter_pack():
    """STARTER_20: 20 credits for USD 3.00, no bonus"""
    return CreditPack(
        id=1,
        code="STARTER_20",
        name="Starter Pack",
        credits=20,
        price_currency="USD",
        price_value=Decimal("3.00"),
        bonus_percent=0,
        is_active=True,
        sort=1,
    )


@pytest.fixture
def pending_payment():
    """PENDING deposit bound to biz_1 / STARTER_20 / USD 3.00"""
    return Payment(
        id=1,
        provider="pawapay",
        deposit_id="dep-1",
        status="PENDING",
        business_id="biz_1",
        pack_code="STARTER_20",
        expected_currency="USD",
        expected_value=Decimal("3.00"),
        idempotency_key="dep-1",
    )
