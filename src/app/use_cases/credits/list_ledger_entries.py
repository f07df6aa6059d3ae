"""
List Ledger Entries Use Case

Retrieves the credit ledger of a business with page-based pagination.
"""
from libs.result import Result, Return
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from .dtos import ListLedgerEntriesResponseDTO, LedgerEntryDTO

MAX_PAGE_SIZE = 100


class ListLedgerEntries:
    """
    Use case: View credit ledger

    Entries are ordered newest first. page is clamped to >= 1 and limit
    to [1, max_page_size].
    """

    def __init__(self, ledger_repo: CreditLedgerRepository, max_page_size: int = MAX_PAGE_SIZE):
        self.ledger_repo = ledger_repo
        self.max_page_size = max_page_size

    async def execute(
        self, business_id: str, page: int = 1, limit: int = 20
    ) -> Result[ListLedgerEntriesResponseDTO]:
        page = max(1, page)
        limit = min(self.max_page_size, max(1, limit))
        offset = (page - 1) * limit

        entries, total = await self.ledger_repo.get_by_business_id(
            business_id=business_id,
            limit=limit,
            offset=offset,
        )

        items = [
            LedgerEntryDTO(
                id=entry.id,
                entry_type=entry.entry_type.value if hasattr(entry.entry_type, "value") else entry.entry_type,
                credits_delta=entry.credits_delta,
                balance_after=entry.balance_after,
                order_id=entry.order_id,
                pack_code=entry.pack_code,
                amount_currency=entry.amount_currency,
                amount_value=entry.amount_value,
                idempotency_key=entry.idempotency_key,
                source=entry.source.value if hasattr(entry.source, "value") else entry.source,
                created_at=entry.created_at,
            )
            for entry in entries
        ]

        return Return.ok(
            ListLedgerEntriesResponseDTO(
                items=items,
                page=page,
                limit=limit,
                total=total,
            )
        )
