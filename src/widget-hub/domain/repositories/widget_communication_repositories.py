"""Abstract repositories for the communication read models.

Connections and messages live in memory inside the communication service;
these repositories keep a durable record of them for history queries.
"""

from abc import ABC, abstractmethod

from neuroglia.data.infrastructure.abstractions import Repository

from integration.models.widget_connection_dto import WidgetConnectionDto
from integration.models.widget_message_dto import WidgetMessageDto


class WidgetConnectionDtoRepository(Repository[WidgetConnectionDto, str], ABC):
    """Abstract repository for WidgetConnectionDto read model queries."""

    @abstractmethod
    async def get_by_widget_async(self, widget_id: str) -> list[WidgetConnectionDto]:
        """Retrieve connections where the widget is source or target."""
        pass

    @abstractmethod
    async def remove_by_widget_async(self, widget_id: str) -> int:
        """Delete connections where the widget is source or target.

        Returns:
            Number of deleted connections
        """
        pass


class WidgetMessageDtoRepository(Repository[WidgetMessageDto, str], ABC):
    """Abstract repository for WidgetMessageDto read model queries."""

    @abstractmethod
    async def get_history_async(self, widget_id: str | None = None, message_type: str | None = None, limit: int = 50) -> list[WidgetMessageDto]:
        """Retrieve messages sent from or to a widget, newest first.

        Args:
            widget_id: Sender or recipient filter
            message_type: Exact message type filter
            limit: Maximum number of messages to return
        """
        pass

    @abstractmethod
    async def update_delivery_async(self, message_id: str, attempts: int, delivered: bool, acknowledged: bool, error: str | None) -> None:
        """Overwrite the delivery fields of a stored message, leaving the rest untouched."""
        pass
