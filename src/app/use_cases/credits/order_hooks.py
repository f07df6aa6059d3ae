"""Order lifecycle hooks

Charges one credit when an order completes and returns it when the order
is cancelled within the grace period.
"""

from libs.result import Result
from .consume_credit import ConsumeCredit
from .reverse_consume import ReverseConsume
from .dtos import ConsumeCommandDTO, ReverseCommandDTO, LedgerEntryResponseDTO

ORDER_COMPLETED_REASON = "order_completed"
CANCEL_WITHIN_GRACE_REASON = "cancel_within_grace"


class OrderCreditsHook:
    def __init__(self, consume_credit: ConsumeCredit, reverse_consume: ReverseConsume):
        self.consume_credit = consume_credit
        self.reverse_consume = reverse_consume

    async def on_order_completed(self, business_id: str, order_id: str) -> Result[LedgerEntryResponseDTO]:
        return await self.consume_credit.execute(
            ConsumeCommandDTO(
                business_id=business_id,
                order_id=order_id,
                reason=ORDER_COMPLETED_REASON,
            )
        )

    async def on_order_cancelled_within_grace(
        self, business_id: str, order_id: str
    ) -> Result[LedgerEntryResponseDTO]:
        return await self.reverse_consume.execute(
            ReverseCommandDTO(
                business_id=business_id,
                order_id=order_id,
                reason=CANCEL_WITHIN_GRACE_REASON,
            )
        )
