"""RegisterPendingPayment Use Case

Creates the PENDING payment that a later provider callback reconciles.
Business, pack and expected amount are bound here and nowhere else.
"""

import logging
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.errors import ErrorCode
from src.app.repositories.business_repository import BusinessRepository
from src.app.repositories.credit_pack_repository import CreditPackRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.payment import Payment, PaymentStatus
from .dtos import RegisterPaymentCommandDTO, PaymentResponseDTO

logger = logging.getLogger(__name__)


class RegisterPendingPayment:
    """
    Use Case: Register a pending deposit for a credit pack purchase

    Business Rules:
    1. Business must exist (BUSINESS_NOT_FOUND)
    2. Pack must exist and be active (PACK_NOT_FOUND)
    3. expected amount is the pack price at registration time
    4. deposit_id is unique (DUPLICATE_DEPOSIT)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        business_repo: BusinessRepository,
        pack_repo: CreditPackRepository,
        provider: str = "pawapay",
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.business_repo = business_repo
        self.pack_repo = pack_repo
        self.provider = provider

    async def execute(self, command: RegisterPaymentCommandDTO) -> Result[PaymentResponseDTO]:
        try:
            if not await self.business_repo.exists(command.business_id):
                return Return.err(
                    Error(
                        code=ErrorCode.BUSINESS_NOT_FOUND,
                        message=f"Business {command.business_id} not found",
                    )
                )

            pack = await self.pack_repo.get_active_by_code(command.pack_code)
            if not pack:
                return Return.err(
                    Error(
                        code=ErrorCode.PACK_NOT_FOUND,
                        message=f"Active credit pack {command.pack_code} not found",
                    )
                )

            if await self.payment_repo.get_by_deposit_id(command.deposit_id):
                return Return.err(
                    Error(
                        code=ErrorCode.DUPLICATE_DEPOSIT,
                        message=f"Deposit {command.deposit_id} already registered",
                    )
                )

            payment = Payment(
                provider=self.provider,
                deposit_id=command.deposit_id,
                status=PaymentStatus.PENDING.value,
                business_id=command.business_id,
                pack_code=pack.code,
                expected_currency=pack.price_currency,
                expected_value=pack.price_value,
                idempotency_key=command.idempotency_key or command.deposit_id,
            )
            created = await self.payment_repo.create(payment)
            await self.uow.commit()

            logger.info(
                f"Registered pending {self.provider} deposit {created.deposit_id} "
                f"for business {created.business_id}, pack {created.pack_code}"
            )
            return Return.ok(PaymentResponseDTO.from_payment(created))

        except IntegrityError:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code=ErrorCode.DUPLICATE_DEPOSIT,
                    message=f"Deposit {command.deposit_id} already registered",
                )
            )
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="REGISTER_PAYMENT_FAILED",
                    message="Failed to register pending payment",
                    reason=str(e),
                )
            )
