"""Credit Pack Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.credit_pack import CreditPack


class CreditPackRepository(ABC):
    """Read access to the credit pack catalog, plus seeding"""

    @abstractmethod
    async def get_active_by_code(self, code: str) -> Optional[CreditPack]:
        """
        Retrieve an active pack by code

        Returns:
            CreditPack if it exists and is active, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_code(self, code: str) -> Optional[CreditPack]:
        pass

    @abstractmethod
    async def list_active(self) -> List[CreditPack]:
        pass

    @abstractmethod
    async def create(self, pack: CreditPack) -> CreditPack:
        pass
