"""MongoDB repository implementations for the communication read models."""

from neuroglia.data.infrastructure.mongo import MotorRepository

from domain.repositories import WidgetConnectionDtoRepository, WidgetMessageDtoRepository
from integration.models import WidgetConnectionDto, WidgetMessageDto


class MotorWidgetConnectionDtoRepository(MotorRepository[WidgetConnectionDto, str], WidgetConnectionDtoRepository):
    """MongoDB-based repository for WidgetConnectionDto read model queries."""

    async def get_by_widget_async(self, widget_id: str) -> list[WidgetConnectionDto]:
        cursor = self.collection.find({"$or": [{"source_widget": widget_id}, {"target_widget": widget_id}]})
        entities = []
        async for doc in cursor:
            entities.append(self._deserialize_entity(doc))
        return entities

    async def remove_by_widget_async(self, widget_id: str) -> int:
        result = await self.collection.delete_many({"$or": [{"source_widget": widget_id}, {"target_widget": widget_id}]})
        return result.deleted_count


class MotorWidgetMessageDtoRepository(MotorRepository[WidgetMessageDto, str], WidgetMessageDtoRepository):
    """MongoDB-based repository for WidgetMessageDto read model queries."""

    async def get_history_async(self, widget_id: str | None = None, message_type: str | None = None, limit: int = 50) -> list[WidgetMessageDto]:
        filter_dict: dict = {}
        if widget_id:
            filter_dict["$or"] = [{"from_widget": widget_id}, {"to_widget": widget_id}]
        if message_type:
            filter_dict["message_type"] = message_type

        cursor = self.collection.find(filter_dict).sort("timestamp", -1).limit(limit)
        entities = []
        async for doc in cursor:
            entities.append(self._deserialize_entity(doc))
        return entities

    async def update_delivery_async(self, message_id: str, attempts: int, delivered: bool, acknowledged: bool, error: str | None) -> None:
        await self.collection.update_one(
            {"id": message_id},
            {"$set": {"attempts": attempts, "delivered": delivered, "acknowledged": acknowledged, "error": error}},
        )
