"""ConsumeCredit Use Case

Charges exactly one credit to a business for an order, allowing the
balance to dip into the configured overdraft band.
"""

import json
from libs.result import Result, Return, Error
from src.app.errors import BillingError, InsufficientCreditsError
from src.domain.business import Business
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType
from .balance_transaction import BalanceChange, BalanceTransaction, PlanResult
from .dtos import ConsumeCommandDTO, LedgerEntryResponseDTO


class ConsumeCredit(BalanceTransaction):
    """
    Use Case: Consume one credit for an order

    Business Rules:
    1. Admitted if available > 0 or (used - total) < overdraft_limit
    2. Otherwise INSUFFICIENT_CREDITS, nothing written
    3. credits_used += 1 and a consume entry (delta -1) tagged with order_id
    4. Balance update and ledger entry are committed together
    """

    async def execute(self, command: ConsumeCommandDTO) -> Result[LedgerEntryResponseDTO]:
        """
        Execute credit consumption

        Args:
            command: ConsumeCommandDTO with business_id, order_id, reason

        Returns:
            Result[LedgerEntryResponseDTO]: Consume entry or error
        """
        try:
            async def plan(business: Business) -> PlanResult:
                if not business.can_consume_one():
                    raise InsufficientCreditsError(
                        f"Insufficient credits. Available: {business.available}, "
                        f"overdraft limit: {business.overdraft_limit}",
                        reason=(
                            f"total={business.credits_total}, used={business.credits_used}, "
                            f"overdraft_limit={business.overdraft_limit}"
                        ),
                    )

                new_used = business.credits_used + 1
                entry = CreditLedgerEntry(
                    business_id=business.id,
                    entry_type=LedgerEntryType.CONSUME,
                    credits_delta=-1,
                    balance_after=business.credits_total - new_used,
                    order_id=command.order_id,
                    source=command.source,
                    metadata_json=json.dumps({"reason": command.reason}),
                )
                return BalanceChange(
                    credits_total=business.credits_total,
                    credits_used=new_used,
                    entry=entry,
                )

            entry, _ = await self.run(command.business_id, plan)
            return Return.ok(LedgerEntryResponseDTO.from_entry(entry))

        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CONSUME_CREDIT_FAILED",
                    message="Failed to consume credit",
                    reason=str(e),
                )
            )
