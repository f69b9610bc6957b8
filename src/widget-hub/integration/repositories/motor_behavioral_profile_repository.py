"""MongoDB repository implementation for BehavioralProfile aggregate."""

from neuroglia.data.infrastructure.mongo import MotorRepository

from domain.entities import BehavioralProfile
from domain.repositories import BehavioralProfileRepository


class MotorBehavioralProfileRepository(MotorRepository[BehavioralProfile, str], BehavioralProfileRepository):
    """MongoDB-based repository for BehavioralProfile aggregate."""

    async def get_by_tenant_async(self, tenant_id: str) -> list[BehavioralProfile]:
        cursor = self.collection.find({"tenant_id": tenant_id}).sort("last_analyzed_at", -1)
        results = []
        async for doc in cursor:
            entity = self._deserialize_entity(doc)
            if entity:
                results.append(entity)
        return results

    async def get_high_risk_async(self, min_risk_score: float = 50.0) -> list[BehavioralProfile]:
        cursor = self.collection.find({"risk_score": {"$gte": min_risk_score}}).sort("risk_score", -1)
        results = []
        async for doc in cursor:
            entity = self._deserialize_entity(doc)
            if entity:
                results.append(entity)
        return results
