"""API views of the widget registry aggregates.

Definitions and instances are stored as aggregates (no separate read model);
these functions shape their state for API responses.
"""

from typing import Any

from domain.entities import WidgetDefinition, WidgetInstance


def definition_to_dict(definition: WidgetDefinition) -> dict[str, Any]:
    state = definition.state
    return {
        "id": state.id,
        "name": state.name,
        "version": state.version,
        "category": state.category,
        "description": state.description,
        "author": state.author,
        "tags": list(state.tags),
        "component": state.component,
        "dependencies": list(state.dependencies),
        "config_schema": state.config_schema,
        "default_config": state.default_config,
        "icon": state.icon,
        "dimensions": state.dimensions,
        "capabilities": list(state.capabilities),
        "ports": list(state.ports),
        "security": state.security,
        "tenant_id": state.tenant_id,
        "is_public": state.is_public,
        "status": state.status,
        "versions": list(state.versions),
        "created_at": state.created_at.isoformat() if state.created_at else None,
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
    }


def instance_to_dict(instance: WidgetInstance) -> dict[str, Any]:
    state = instance.state
    return {
        "id": state.id,
        "widget_id": state.widget_id,
        "version": state.version,
        "canvas_id": state.canvas_id,
        "tenant_id": state.tenant_id,
        "config": state.config,
        "position": state.position,
        "size": state.size,
        "state": state.state,
        "is_loaded": state.is_loaded,
        "is_visible": state.is_visible,
        "is_locked": state.is_locked,
        "parent_id": state.parent_id,
        "children": list(state.children),
        "connections": list(state.connections),
        "state_version": state.state_version,
        "last_metrics": state.last_metrics,
        "created_by": state.created_by,
        "created_at": state.created_at.isoformat() if state.created_at else None,
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
    }
