"""Widget definition queries with handlers."""

from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from domain.entities import WidgetDefinition
from domain.repositories import WidgetDefinitionRepository
from integration.models import definition_to_dict


@dataclass
class GetWidgetDefinitionQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to retrieve a widget definition by id.

    With ``version`` the definition is only returned when it is currently at that version.
    """

    widget_id: str
    version: str | None = None
    tenant_id: str | None = None


class GetWidgetDefinitionQueryHandler(QueryHandler[GetWidgetDefinitionQuery, OperationResult[dict[str, Any]]]):
    def __init__(self, definition_repository: WidgetDefinitionRepository):
        super().__init__()
        self.definition_repository = definition_repository

    async def handle_async(self, request: GetWidgetDefinitionQuery) -> OperationResult[dict[str, Any]]:
        query = request
        definition = await self.definition_repository.get_async(query.widget_id)
        if definition is None:
            return self.not_found(WidgetDefinition, query.widget_id)
        if query.tenant_id and not definition.is_available_to(query.tenant_id):
            return self.not_found(WidgetDefinition, query.widget_id)
        if query.version and definition.state.version != query.version:
            return self.not_found(WidgetDefinition, f"{query.widget_id}@{query.version}")
        return self.ok(definition_to_dict(definition))


@dataclass
class SearchWidgetDefinitionsQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to search the widget catalog.

    Supports filtering by:
    - category: exact category
    - tags: any of the tags
    - tenant_id / is_public: ownership
    - search: case-insensitive text on name and description, or exact tag
    """

    category: str | None = None
    tags: list[str] = field(default_factory=list)
    tenant_id: str | None = None
    is_public: bool | None = None
    search: str | None = None
    limit: int = 50
    offset: int = 0


class SearchWidgetDefinitionsQueryHandler(QueryHandler[SearchWidgetDefinitionsQuery, OperationResult[dict[str, Any]]]):
    def __init__(self, definition_repository: WidgetDefinitionRepository):
        super().__init__()
        self.definition_repository = definition_repository

    async def handle_async(self, request: SearchWidgetDefinitionsQuery) -> OperationResult[dict[str, Any]]:
        query = request
        if query.limit <= 0 or query.offset < 0:
            return self.bad_request("limit must be positive and offset non-negative")

        definitions, total = await self.definition_repository.search_async(
            category=query.category,
            tags=query.tags or None,
            tenant_id=query.tenant_id,
            is_public=query.is_public,
            search=query.search,
            limit=query.limit,
            offset=query.offset,
        )
        return self.ok({"widgets": [definition_to_dict(d) for d in definitions], "total": total})
