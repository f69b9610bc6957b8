"""MongoDB repository implementations for the widget registry aggregates."""

import logging
import re

from neuroglia.data.infrastructure.mongo import MotorRepository

from domain.entities import WidgetDefinition, WidgetInstance
from domain.repositories import WidgetDefinitionRepository, WidgetInstanceRepository

log = logging.getLogger(__name__)


class MotorWidgetDefinitionRepository(MotorRepository[WidgetDefinition, str], WidgetDefinitionRepository):
    """MongoDB-based repository for WidgetDefinition aggregate.

    Configured via MotorRepository.configure() in main.py.
    AggregateState fields are stored at the document root level.
    """

    async def search_async(
        self,
        category: str | None = None,
        tags: list[str] | None = None,
        tenant_id: str | None = None,
        is_public: bool | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[WidgetDefinition], int]:
        """Search definitions with native MongoDB filters, newest update first."""
        filter_dict: dict = {}
        if category:
            filter_dict["category"] = category
        if tenant_id:
            filter_dict["tenant_id"] = tenant_id
        if is_public is not None:
            filter_dict["is_public"] = is_public
        if tags:
            filter_dict["tags"] = {"$in": tags}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            filter_dict["$or"] = [{"name": pattern}, {"description": pattern}, {"tags": search}]

        total = await self.collection.count_documents(filter_dict)
        cursor = self.collection.find(filter_dict).sort("updated_at", -1).skip(offset).limit(limit)

        results = []
        async for doc in cursor:
            entity = self._deserialize_entity(doc)
            if entity:
                results.append(entity)
        return results, total


class MotorWidgetInstanceRepository(MotorRepository[WidgetInstance, str], WidgetInstanceRepository):
    """MongoDB-based repository for WidgetInstance aggregate."""

    async def _find(self, filter_dict: dict) -> list[WidgetInstance]:
        cursor = self.collection.find(filter_dict).sort("created_at", 1)
        results = []
        async for doc in cursor:
            entity = self._deserialize_entity(doc)
            if entity:
                results.append(entity)
        return results

    async def get_by_canvas_async(self, canvas_id: str) -> list[WidgetInstance]:
        return await self._find({"canvas_id": canvas_id})

    async def get_by_widget_async(self, widget_id: str) -> list[WidgetInstance]:
        return await self._find({"widget_id": widget_id})

    async def count_async(self) -> int:
        return await self.collection.count_documents({})
