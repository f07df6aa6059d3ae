"""ReverseConsume Use Case

Returns the credit charged for an order, e.g. when the order is
cancelled inside the grace window.
"""

import json
from libs.result import Result, Return, Error
from src.app.errors import BillingError, ErrorCode, ReversalPreconditionError
from src.domain.business import Business
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType
from .balance_transaction import BalanceChange, BalanceTransaction, PlanResult
from .dtos import ReverseCommandDTO, LedgerEntryResponseDTO


class ReverseConsume(BalanceTransaction):
    """
    Use Case: Reverse a consumed credit

    Business Rules:
    1. A consume entry for (business_id, order_id) must exist (NO_CONSUME_TO_REVERSE)
    2. Reversals per order never exceed consumes per order (ALREADY_REVERSED)
    3. credits_used must be > 0 (NO_USAGE_TO_REVERSE)
    4. credits_used -= 1 and a reversal entry (delta +1) tagged with order_id
    """

    async def execute(self, command: ReverseCommandDTO) -> Result[LedgerEntryResponseDTO]:
        """
        Execute consume reversal

        Args:
            command: ReverseCommandDTO with business_id, order_id, reason

        Returns:
            Result[LedgerEntryResponseDTO]: Reversal entry or error
        """
        try:
            async def plan(business: Business) -> PlanResult:
                consumes = await self.ledger_repo.count_for_order(
                    business.id, command.order_id, LedgerEntryType.CONSUME
                )
                if consumes == 0:
                    raise ReversalPreconditionError(
                        f"No consume recorded for order {command.order_id}",
                        code=ErrorCode.NO_CONSUME_TO_REVERSE,
                    )

                reversals = await self.ledger_repo.count_for_order(
                    business.id, command.order_id, LedgerEntryType.REVERSAL
                )
                if reversals >= consumes:
                    raise ReversalPreconditionError(
                        f"Consume for order {command.order_id} already reversed",
                        code=ErrorCode.ALREADY_REVERSED,
                        reason=f"consumes={consumes}, reversals={reversals}",
                    )

                if business.credits_used <= 0:
                    raise ReversalPreconditionError(
                        f"Business {business.id} has no usage to reverse",
                        code=ErrorCode.NO_USAGE_TO_REVERSE,
                    )

                new_used = business.credits_used - 1
                entry = CreditLedgerEntry(
                    business_id=business.id,
                    entry_type=LedgerEntryType.REVERSAL,
                    credits_delta=1,
                    balance_after=business.credits_total - new_used,
                    order_id=command.order_id,
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
                    code="REVERSE_CONSUME_FAILED",
                    message="Failed to reverse consumed credit",
                    reason=str(e),
                )
            )
