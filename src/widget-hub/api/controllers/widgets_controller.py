"""Widgets API controller.

Provides endpoints for:
- Registering and browsing widget definitions
- Placing, configuring, hot swapping and unloading widget instances
- Reporting and aggregating widget performance metrics
"""

from datetime import datetime
from typing import Any

from classy_fastapi.decorators import delete, get, post, put
from fastapi import Query
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, Field

from api.responses import envelope
from application.commands import (
    CreateWidgetInstanceCommand,
    HotSwapWidgetCommand,
    RecordWidgetMetricsCommand,
    RegisterWidgetDefinitionCommand,
    UnloadWidgetInstanceCommand,
    UpdateWidgetInstanceCommand,
)
from application.queries import (
    GetCanvasInstancesQuery,
    GetWidgetAnalyticsQuery,
    GetWidgetDefinitionQuery,
    GetWidgetInstanceQuery,
    SearchWidgetDefinitionsQuery,
)

# ============================================================================
# REQUEST MODELS
# ============================================================================


class RegisterWidgetDefinitionRequest(BaseModel):
    """Request to register (or revise) a widget definition."""

    id: str = Field(..., description="Unique widget id")
    name: str = Field(..., description="Display name")
    version: str = Field(..., description="Definition version")
    component: str = Field(..., description="Component kind: metric-card, chart, data-table, text, form, iframe-embed")
    category: str = Field(default="custom")
    description: str = Field(default="")
    author: str = Field(default="")
    tags: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    config_schema: dict[str, Any] = Field(default_factory=dict, description="JSON schema of the instance configuration")
    default_config: dict[str, Any] = Field(default_factory=dict)
    icon: str | None = None
    dimensions: dict[str, Any] | None = Field(default=None, description="min/max/default width and height, resizable")
    capabilities: list[str] = Field(default_factory=list)
    ports: list[dict[str, Any]] = Field(default_factory=list, description="Communication ports: name, type, data_type")
    security: dict[str, Any] | None = Field(default=None, description="sandboxed, permissions, trusted_origins")
    tenant_id: str = Field(default="default")
    is_public: bool = Field(default=False)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "revenue-card",
                "name": "Revenue",
                "version": "1.0.0",
                "component": "metric-card",
                "category": "analytics",
                "default_config": {"metric": "revenue"},
                "ports": [{"name": "value", "type": "output", "data_type": "number"}],
            }
        }


class CreateWidgetInstanceRequest(BaseModel):
    widget_id: str = Field(..., description="Widget definition id")
    canvas_id: str = Field(default="default")
    config: dict[str, Any] = Field(default_factory=dict, description="Overrides of the default configuration")
    position: dict[str, Any] | None = None
    size: dict[str, Any] | None = None
    parent_id: str | None = None
    tenant_id: str = Field(default="default")
    created_by: str = Field(default="system")


class UpdateWidgetInstanceRequest(BaseModel):
    """All fields are optional - only provided fields are updated."""

    config: dict[str, Any] | None = None
    position: dict[str, Any] | None = None
    size: dict[str, Any] | None = None
    is_visible: bool | None = None
    is_locked: bool | None = None
    parent_id: str | None = None


class HotSwapWidgetRequest(BaseModel):
    new_widget_id: str = Field(..., description="Definition the instance switches to")


class RecordWidgetMetricsRequest(BaseModel):
    render_time: float = 0.0
    memory_usage: float = 0.0
    cpu_usage: float = 0.0
    error_count: int = 0
    interaction_count: int = 0
    performance_score: float = 100.0


# ============================================================================
# CONTROLLER
# ============================================================================


class WidgetsController(ControllerBase):
    """Controller for the widget registry."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    # =========================================================================
    # DEFINITIONS
    # =========================================================================

    @post("/definitions")
    async def register_definition(self, request: RegisterWidgetDefinitionRequest):
        """Register a widget definition; an existing id is revised in place."""
        command = RegisterWidgetDefinitionCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @get("/definitions")
    async def search_definitions(
        self,
        category: str | None = Query(None),
        tags: list[str] | None = Query(None, description="Definitions carrying any of these tags"),
        tenant_id: str | None = Query(None),
        is_public: bool | None = Query(None),
        search: str | None = Query(None, description="Text searched in name, description and tags"),
        limit: int = Query(50, ge=1, le=500),
        offset: int = Query(0, ge=0),
    ):
        query = SearchWidgetDefinitionsQuery(
            category=category,
            tags=tags or [],
            tenant_id=tenant_id,
            is_public=is_public,
            search=search,
            limit=limit,
            offset=offset,
        )
        return envelope(await self.mediator.execute_async(query))

    @get("/definitions/{widget_id}")
    async def get_definition(self, widget_id: str, version: str | None = Query(None)):
        return envelope(await self.mediator.execute_async(GetWidgetDefinitionQuery(widget_id=widget_id, version=version)))

    # =========================================================================
    # INSTANCES
    # =========================================================================

    @post("/instances")
    async def create_instance(self, request: CreateWidgetInstanceRequest):
        command = CreateWidgetInstanceCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @get("/instances/{instance_id}")
    async def get_instance(self, instance_id: str):
        return envelope(await self.mediator.execute_async(GetWidgetInstanceQuery(instance_id=instance_id)))

    @get("/canvases/{canvas_id}/instances")
    async def get_canvas_instances(self, canvas_id: str, include_hidden: bool = Query(True)):
        return envelope(await self.mediator.execute_async(GetCanvasInstancesQuery(canvas_id=canvas_id, include_hidden=include_hidden)))

    @put("/instances/{instance_id}")
    async def update_instance(self, instance_id: str, request: UpdateWidgetInstanceRequest):
        command = UpdateWidgetInstanceCommand(instance_id=instance_id, **request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @post("/instances/{instance_id}/hot-swap")
    async def hot_swap_instance(self, instance_id: str, request: HotSwapWidgetRequest):
        command = HotSwapWidgetCommand(instance_id=instance_id, new_widget_id=request.new_widget_id)
        return envelope(await self.mediator.execute_async(command))

    @delete("/instances/{instance_id}")
    async def unload_instance(self, instance_id: str, remove: bool = Query(False, description="Also delete the instance from its canvas")):
        return envelope(await self.mediator.execute_async(UnloadWidgetInstanceCommand(instance_id=instance_id, remove=remove)))

    # =========================================================================
    # METRICS
    # =========================================================================

    @post("/instances/{instance_id}/metrics")
    async def record_metrics(self, instance_id: str, request: RecordWidgetMetricsRequest):
        command = RecordWidgetMetricsCommand(instance_id=instance_id, **request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @get("/analytics")
    async def get_analytics(
        self,
        widget_id: str | None = Query(None),
        instance_id: str | None = Query(None),
        start: datetime | None = Query(None),
        end: datetime | None = Query(None),
    ):
        query = GetWidgetAnalyticsQuery(widget_id=widget_id, instance_id=instance_id, start=start, end=end)
        return envelope(await self.mediator.execute_async(query))
