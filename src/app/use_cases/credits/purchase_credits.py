"""PurchaseCredits Use Case

Grants the credits of a pack to a business after a confirmed payment.
Idempotent on idempotency_key: a replay returns the original entry.
"""

import json
import logging
from libs.result import Result, Return, Error
from src.app.errors import BillingError, ErrorCode
from src.app.repositories.business_repository import BusinessRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.credit_pack_repository import CreditPackRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.business import Business
from src.domain.credit_ledger import CreditLedgerEntry, LedgerEntryType
from .balance_transaction import BalanceChange, BalanceTransaction, PlanResult, DEFAULT_MAX_RETRIES
from .dtos import PurchaseCommandDTO, LedgerEntryResponseDTO

logger = logging.getLogger(__name__)


class PurchaseCredits(BalanceTransaction):
    """
    Use Case: Purchase a credit pack for a business

    Business Rules:
    1. Only active packs can be purchased (PACK_NOT_FOUND otherwise)
    2. Credits granted = credits + floor(bonus_percent * credits / 100)
    3. credits_total grows, credits_used is untouched
    4. Idempotency: an existing entry with the same key is returned as-is
    5. Balance update and ledger entry are committed together

    Flow:
    1. Resolve active pack
    2. Read business, check idempotency key
    3. Compare-and-set credits_total, append purchase entry, commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        business_repo: BusinessRepository,
        ledger_repo: CreditLedgerRepository,
        pack_repo: CreditPackRepository,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        super().__init__(uow, business_repo, ledger_repo, max_retries)
        self.pack_repo = pack_repo

    async def execute(self, command: PurchaseCommandDTO) -> Result[LedgerEntryResponseDTO]:
        """
        Execute credit purchase

        Args:
            command: PurchaseCommandDTO with business_id, pack_code, payment_info, idempotency_key

        Returns:
            Result[LedgerEntryResponseDTO]: Purchase entry (replayed=True on idempotent replay) or error
        """
        try:
            pack = await self.pack_repo.get_active_by_code(command.pack_code)
            if not pack:
                return Return.err(
                    Error(
                        code=ErrorCode.PACK_NOT_FOUND,
                        message=f"Active credit pack {command.pack_code} not found",
                    )
                )

            pack_code = pack.code
            credits_to_add = pack.effective_credits()
            payment = command.payment_info

            async def plan(business: Business) -> PlanResult:
                existing = await self.ledger_repo.get_by_idempotency_key(command.idempotency_key)
                if existing:
                    if existing.business_id != business.id or existing.entry_type != LedgerEntryType.PURCHASE:
                        raise BillingError(
                            f"Idempotency key {command.idempotency_key} already used by another mutation",
                            code=ErrorCode.IDEMPOTENCY_KEY_REUSED,
                            reason=f"entry_id={existing.id}",
                        )
                    return existing

                new_total = business.credits_total + credits_to_add
                entry = CreditLedgerEntry(
                    business_id=business.id,
                    entry_type=LedgerEntryType.PURCHASE,
                    credits_delta=credits_to_add,
                    balance_after=new_total - business.credits_used,
                    pack_code=pack_code,
                    amount_currency=payment.amount.currency,
                    amount_value=payment.amount.value,
                    idempotency_key=command.idempotency_key,
                    source=command.source,
                    metadata_json=json.dumps(
                        {"provider": payment.provider, "deposit_id": payment.deposit_id}
                    ),
                )
                return BalanceChange(
                    credits_total=new_total,
                    credits_used=business.credits_used,
                    entry=entry,
                )

            entry, applied = await self.run(command.business_id, plan)

            if applied:
                logger.info(
                    f"Credited {credits_to_add} credits ({pack_code}) to business {command.business_id}, "
                    f"balance_after={entry.balance_after}, key={command.idempotency_key}"
                )
            else:
                logger.info(
                    f"Purchase {command.idempotency_key} already applied to business {command.business_id}"
                )

            return Return.ok(LedgerEntryResponseDTO.from_entry(entry, replayed=not applied))

        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"Purchase failed for business {command.business_id}")
            return Return.err(
                Error(
                    code="PURCHASE_CREDITS_FAILED",
                    message="Failed to purchase credits",
                    reason=str(e),
                )
            )
