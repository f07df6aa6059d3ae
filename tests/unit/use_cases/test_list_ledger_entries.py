"""Unit tests for ListLedgerEntries use case"""

import pytest
from datetime import datetime
from decimal import Decimal
from src.app.use_cases.credits.list_ledger_entries import ListLedgerEntries
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType, LedgerSource


@pytest.fixture
def entries():
    now = datetime.utcnow()
    return [
        CreditLedgerEntry(
            id=2,
            business_id="biz_1",
            entry_type=LedgerEntryType.CONSUME,
            credits_delta=-1,
            balance_after=19,
            order_id="order-1",
            created_at=now,
        ),
        CreditLedgerEntry(
            id=1,
            business_id="biz_1",
            entry_type=LedgerEntryType.PURCHASE,
            credits_delta=20,
            balance_after=20,
            pack_code="STARTER_20",
            amount_currency="USD",
            amount_value=Decimal("3.00"),
            idempotency_key="dep-1",
            source=LedgerSource.MOBILE_MONEY,
            created_at=now,
        ),
    ]


@pytest.mark.asyncio
class TestListLedgerEntries:
    async def test_maps_entries_and_pagination(self, mock_ledger_repo, entries):
        # Arrange
        mock_ledger_repo.get_by_business_id.return_value = (entries, 12)
        use_case = ListLedgerEntries(mock_ledger_repo)

        # Act
        result = await use_case.execute("biz_1", page=2, limit=5)

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.page == 2
        assert response.limit == 5
        assert response.total == 12
        assert [item.id for item in response.items] == [2, 1]
        assert response.items[0].entry_type == "consume"
        assert response.items[0].source == "system"
        assert response.items[1].pack_code == "STARTER_20"
        assert response.items[1].amount_value == Decimal("3.00")
        assert response.items[1].source == "mobile_money"
        mock_ledger_repo.get_by_business_id.assert_awaited_once_with(
            business_id="biz_1", limit=5, offset=5
        )

    @pytest.mark.parametrize(
        "page,limit,expected_page,expected_limit,expected_offset",
        [
            (0, 20, 1, 20, 0),
            (-3, 0, 1, 1, 0),
            (3, 500, 3, 100, 200),
        ],
    )
    async def test_clamps_page_and_limit(
        self, mock_ledger_repo, page, limit, expected_page, expected_limit, expected_offset
    ):
        # Act
        result = await ListLedgerEntries(mock_ledger_repo).execute("biz_1", page=page, limit=limit)

        # Assert
        assert result.value.page == expected_page
        assert result.value.limit == expected_limit
        assert result.value.items == []
        mock_ledger_repo.get_by_business_id.assert_awaited_once_with(
            business_id="biz_1", limit=expected_limit, offset=expected_offset
        )
