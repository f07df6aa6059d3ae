"""Get Balance Use Case

Retrieves a business's current credit balance.
"""

from libs.result import Result, Return, Error
from src.app.errors import ErrorCode
from src.app.repositories.business_repository import BusinessRepository
from src.app.use_cases.credits.dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Read-only operation, no transaction required.
    effective_available = available + overdraft_limit
    """

    def __init__(self, business_repo: BusinessRepository):
        self.business_repo = business_repo

    async def execute(self, business_id: str) -> Result[BalanceResponseDTO]:
        """
        Execute get balance operation

        Errors:
            BUSINESS_NOT_FOUND: Business does not exist
        """
        business = await self.business_repo.get_by_id(business_id)

        if not business:
            return Return.err(
                Error(
                    code=ErrorCode.BUSINESS_NOT_FOUND,
                    message=f"Business {business_id} not found",
                )
            )

        total = business.credits_total or 0
        used = business.credits_used or 0
        overdraft_limit = business.overdraft_limit or 0
        available = total - used

        return Return.ok(
            BalanceResponseDTO(
                business_id=business.id,
                total=total,
                used=used,
                available=available,
                overdraft_limit=overdraft_limit,
                effective_available=available + overdraft_limit,
                last_updated=business.updated_at,
            )
        )
