"""Repository interface for BehavioralProfile aggregate."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from neuroglia.data.infrastructure.abstractions import Repository

if TYPE_CHECKING:
    from domain.entities import BehavioralProfile


class BehavioralProfileRepository(Repository["BehavioralProfile", str], ABC):
    """Repository interface for BehavioralProfile aggregate.

    Profiles are keyed by user id, so ``get_async(user_id)`` loads a user's profile.
    """

    @abstractmethod
    async def get_by_tenant_async(self, tenant_id: str) -> list["BehavioralProfile"]:
        """Get the profiles belonging to a tenant."""
        pass

    @abstractmethod
    async def get_high_risk_async(self, min_risk_score: float = 50.0) -> list["BehavioralProfile"]:
        """Get profiles whose latest risk score is at least ``min_risk_score``."""
        pass
