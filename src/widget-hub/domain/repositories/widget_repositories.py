"""Repository interfaces for the widget registry aggregates.

Standard CRUD operations (get_async, add_async, update_async, remove_async)
are inherited from the base Repository interface and implemented by
MotorRepository. Only registry-specific queries are declared here.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from neuroglia.data.infrastructure.abstractions import Repository

if TYPE_CHECKING:
    from domain.entities import WidgetDefinition, WidgetInstance


class WidgetDefinitionRepository(Repository["WidgetDefinition", str], ABC):
    """Repository interface for WidgetDefinition aggregate."""

    @abstractmethod
    async def search_async(
        self,
        category: str | None = None,
        tags: list[str] | None = None,
        tenant_id: str | None = None,
        is_public: bool | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list["WidgetDefinition"], int]:
        """Search definitions, most recently updated first.

        Args:
            category: Exact category match
            tags: Definitions carrying at least one of these tags
            tenant_id: Owning tenant
            is_public: Public flag
            search: Case-insensitive match on name or description, or exact tag
            limit: Page size
            offset: Page offset

        Returns:
            The page of definitions and the total number of matches
        """
        pass


class WidgetInstanceRepository(Repository["WidgetInstance", str], ABC):
    """Repository interface for WidgetInstance aggregate."""

    @abstractmethod
    async def get_by_canvas_async(self, canvas_id: str) -> list["WidgetInstance"]:
        """Get every instance placed on a canvas."""
        pass

    @abstractmethod
    async def get_by_widget_async(self, widget_id: str) -> list["WidgetInstance"]:
        """Get every instance created from a widget definition."""
        pass

    @abstractmethod
    async def count_async(self) -> int:
        """Count every widget instance."""
        pass
