"""Test data factories and builders.

Provides reusable factory classes for creating test data with sensible defaults
and easy customization.
"""

from typing import Any
from unittest.mock import MagicMock
from uuid import uuid4

from neuroglia.core import OperationResult

from domain.entities import BehavioralProfile, WidgetDefinition, WidgetInstance
from domain.enums import OperationType, PortType
from domain.models import BehavioralMetrics, CollaborativeOperation, OperationPayload, OperationTransform, WidgetPort

# ============================================================================
# PORT FACTORY
# ============================================================================


class WidgetPortFactory:
    """Factory for creating WidgetPort value objects."""

    @staticmethod
    def create(name: str = "value", type: PortType = PortType.OUTPUT, data_type: str = "number") -> WidgetPort:
        return WidgetPort(id=name, name=name, type=type, data_type=data_type)

    @staticmethod
    def output(name: str = "out", data_type: str = "number") -> WidgetPort:
        return WidgetPortFactory.create(name=name, type=PortType.OUTPUT, data_type=data_type)

    @staticmethod
    def input(name: str = "in", data_type: str = "number") -> WidgetPort:
        return WidgetPortFactory.create(name=name, type=PortType.INPUT, data_type=data_type)

    @staticmethod
    def bidirectional(name: str = "sync", data_type: str = "any") -> WidgetPort:
        return WidgetPortFactory.create(name=name, type=PortType.BIDIRECTIONAL, data_type=data_type)


# ============================================================================
# WIDGET DEFINITION FACTORY
# ============================================================================


class WidgetDefinitionFactory:
    """Factory for creating WidgetDefinition aggregates with sensible defaults."""

    @staticmethod
    def create(
        definition_id: str | None = None,
        name: str = "Revenue",
        version: str = "1.0.0",
        component: str = "metric-card",
        category: str = "analytics",
        default_config: dict[str, Any] | None = None,
        ports: list[WidgetPort] | None = None,
        tenant_id: str = "default",
        is_public: bool = False,
        tags: list[str] | None = None,
    ) -> WidgetDefinition:
        """Create a WidgetDefinition with defaults that can be overridden."""
        return WidgetDefinition.register(
            definition_id=definition_id or f"widget-{uuid4().hex[:8]}",
            name=name,
            version=version,
            component=component,
            category=category,
            description=f"{name} widget",
            default_config={"metric": "revenue"} if default_config is None else default_config,
            ports=[WidgetPortFactory.output("value")] if ports is None else ports,
            tenant_id=tenant_id,
            is_public=is_public,
            tags=tags or ["finance"],
        )

    @staticmethod
    def create_chart(definition_id: str | None = None, **kwargs: Any) -> WidgetDefinition:
        """Create a chart definition consuming numbers on its input port."""
        kwargs.setdefault("default_config", {"data_source": "sales"})
        kwargs.setdefault("ports", [WidgetPortFactory.input("series")])
        return WidgetDefinitionFactory.create(definition_id=definition_id, name="Sales Chart", component="chart", **kwargs)


# ============================================================================
# WIDGET INSTANCE FACTORY
# ============================================================================


class WidgetInstanceFactory:
    """Factory for creating WidgetInstance aggregates."""

    @staticmethod
    def create(
        instance_id: str | None = None,
        widget_id: str = "revenue-card",
        version: str = "1.0.0",
        canvas_id: str = "canvas-1",
        config: dict[str, Any] | None = None,
        position: dict[str, Any] | None = None,
        parent_id: str | None = None,
        tenant_id: str = "default",
        loaded: bool = True,
    ) -> WidgetInstance:
        instance = WidgetInstance.create(
            widget_id=widget_id,
            version=version,
            canvas_id=canvas_id,
            config={"metric": "revenue"} if config is None else config,
            size={"width": 200, "height": 150},
            position=position,
            parent_id=parent_id,
            tenant_id=tenant_id,
            created_by="user123",
            instance_id=instance_id or str(uuid4()),
        )
        if loaded:
            instance.mark_loaded("metric-card")
        return instance


# ============================================================================
# COLLABORATION FACTORY
# ============================================================================


class CollaborativeOperationFactory:
    """Factory for creating CollaborativeOperation models."""

    @staticmethod
    def create(
        widget_id: str = "widget-a",
        session_id: str = "session-1",
        path: str = "state.title",
        new_value: Any = "Quarterly revenue",
        type: OperationType = OperationType.UPDATE,
        user_id: str = "user123",
        base_version: int = 0,
    ) -> CollaborativeOperation:
        return CollaborativeOperation(
            type=type,
            widget_id=widget_id,
            user_id=user_id,
            session_id=session_id,
            operation=OperationPayload(path=path, new_value=new_value),
            transform=OperationTransform(base_version=base_version),
        )


# ============================================================================
# BEHAVIORAL FACTORIES
# ============================================================================


class BehavioralMetricsFactory:
    """Factory for behavioral samples and baselines."""

    @staticmethod
    def create(
        typing_speed: float | None = 60.0,
        movement_speed: list[float] | None = None,
        interaction_rate: float | None = 1.0,
        active_hours: list[int] | None = None,
    ) -> BehavioralMetrics:
        keystroke = {"typing_speed": typing_speed, "dwell_time": [100.0, 110.0]} if typing_speed is not None else {}
        navigation = {"interaction_rate": interaction_rate} if interaction_rate is not None else {}
        return BehavioralMetrics(
            keystroke_dynamics=keystroke,
            mouse_dynamics={"movement_speed": movement_speed} if movement_speed is not None else {},
            navigation_pattern=navigation,
            time_pattern={"active_hours": active_hours} if active_hours is not None else {},
        )

    @staticmethod
    def office_hours() -> list[int]:
        """Twelve active hours, 8h to 19h."""
        return list(range(8, 20))


class BehavioralProfileFactory:
    """Factory for BehavioralProfile aggregates with an established baseline."""

    @staticmethod
    def create(
        user_id: str = "user123",
        baseline: BehavioralMetrics | None = None,
        confidence: float = 0.9,
        learning_phase: bool = False,
    ) -> BehavioralProfile:
        profile = BehavioralProfile.create(user_id)
        profile.record_analysis(
            session_id="previous-session",
            baseline=baseline or BehavioralMetricsFactory.create(),
            confidence=confidence,
            learning_phase=learning_phase,
            risk_score=0.0,
            anomalies=[],
        )
        return profile


# ============================================================================
# API FACTORIES
# ============================================================================


def operation_result(data: Any = None, status: int = 200, detail: str | None = None) -> MagicMock:
    """Mock mediator result as seen by controllers."""
    mock_result = MagicMock(spec=OperationResult)
    mock_result.is_success = 200 <= status < 300
    mock_result.data = data
    mock_result.status = status
    mock_result.detail = detail
    mock_result.title = "Error"
    return mock_result
