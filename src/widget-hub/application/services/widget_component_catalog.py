"""Widget Component Catalog.

Widget definitions reference their implementation by a component name.
The catalog maps each WidgetComponentKind to a built-in component class:
components are never loaded from arbitrary bundles at runtime.

Loaded components are cached per definition id and version.
"""

import logging
from abc import ABC
from typing import TYPE_CHECKING, Any

from domain.entities import WidgetDefinition
from domain.enums import WidgetComponentKind
from domain.exceptions import WidgetComponentNotFoundError
from observability import widget_component_load_failures

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

log = logging.getLogger(__name__)


class WidgetComponent(ABC):
    """Server-side contract of a widget component.

    Subclasses declare their defaults and the config keys an instance must set.
    """

    kind: WidgetComponentKind
    defaults: dict[str, Any] = {}
    required_config: tuple[str, ...] = ()

    def default_config(self) -> dict[str, Any]:
        return dict(self.defaults)

    def validate_config(self, config: dict[str, Any]) -> list[str]:
        """Return the validation errors of an instance configuration."""
        return [f"Missing required config: {key}" for key in self.required_config if config.get(key) in (None, "")]


class MetricCardComponent(WidgetComponent):
    kind = WidgetComponentKind.METRIC_CARD
    defaults = {"format": "number", "precision": 0, "show_trend": True}
    required_config = ("metric",)


class ChartComponent(WidgetComponent):
    kind = WidgetComponentKind.CHART
    defaults = {"chart_type": "line", "show_legend": True, "stacked": False}
    required_config = ("data_source",)

    def validate_config(self, config: dict[str, Any]) -> list[str]:
        errors = super().validate_config(config)
        chart_type = config.get("chart_type", self.defaults["chart_type"])
        if chart_type not in ("line", "bar", "area", "pie", "scatter"):
            errors.append(f"Unsupported chart type: {chart_type}")
        return errors


class DataTableComponent(WidgetComponent):
    kind = WidgetComponentKind.DATA_TABLE
    defaults = {"page_size": 25, "sortable": True, "filterable": True}
    required_config = ("data_source",)

    def validate_config(self, config: dict[str, Any]) -> list[str]:
        errors = super().validate_config(config)
        page_size = config.get("page_size", self.defaults["page_size"])
        if not isinstance(page_size, int) or page_size <= 0:
            errors.append("page_size must be a positive integer")
        return errors


class TextComponent(WidgetComponent):
    kind = WidgetComponentKind.TEXT
    defaults = {"content": "", "markdown": True}


class FormComponent(WidgetComponent):
    kind = WidgetComponentKind.FORM
    defaults = {"fields": [], "submit_label": "Submit"}

    def validate_config(self, config: dict[str, Any]) -> list[str]:
        fields = config.get("fields", [])
        if not isinstance(fields, list):
            return ["fields must be a list"]
        return [f"Form field {i} has no name" for i, f in enumerate(fields) if not isinstance(f, dict) or not f.get("name")]


class IframeEmbedComponent(WidgetComponent):
    kind = WidgetComponentKind.IFRAME_EMBED
    defaults = {"allow_fullscreen": False}
    required_config = ("url",)

    def validate_config(self, config: dict[str, Any]) -> list[str]:
        errors = super().validate_config(config)
        url = config.get("url")
        if url and not str(url).startswith("https://"):
            errors.append("Embedded URLs must use https")
        return errors


BUILTIN_COMPONENTS: dict[WidgetComponentKind, type[WidgetComponent]] = {
    WidgetComponentKind.METRIC_CARD: MetricCardComponent,
    WidgetComponentKind.CHART: ChartComponent,
    WidgetComponentKind.DATA_TABLE: DataTableComponent,
    WidgetComponentKind.TEXT: TextComponent,
    WidgetComponentKind.FORM: FormComponent,
    WidgetComponentKind.IFRAME_EMBED: IframeEmbedComponent,
}


class WidgetComponentCatalog:
    """Resolves widget definitions to their component implementation."""

    def __init__(self, components: dict[WidgetComponentKind, type[WidgetComponent]] | None = None) -> None:
        self._components = dict(components or BUILTIN_COMPONENTS)
        self._loaded: dict[str, WidgetComponent] = {}

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        builder.services.add_singleton(WidgetComponentCatalog, singleton=WidgetComponentCatalog())

    def is_known(self, component: str) -> bool:
        try:
            return WidgetComponentKind(component) in self._components
        except ValueError:
            return False

    def available(self) -> list[str]:
        return [kind.value for kind in self._components]

    def resolve(self, component: str) -> type[WidgetComponent]:
        """Find the component class registered under a component name.

        Raises:
            WidgetComponentNotFoundError: No component is registered under that name
        """
        if not self.is_known(component):
            raise WidgetComponentNotFoundError(component)
        return self._components[WidgetComponentKind(component)]

    def load(self, definition: WidgetDefinition) -> WidgetComponent:
        """Load the component of a definition, cached by ``id:version``."""
        cache_key = f"{definition.id()}:{definition.state.version}"
        cached = self._loaded.get(cache_key)
        if cached is not None:
            return cached
        try:
            component = self.resolve(definition.state.component)()
        except WidgetComponentNotFoundError:
            widget_component_load_failures.add(1, {"component": definition.state.component})
            log.error(f"Failed to load component '{definition.state.component}' for widget {cache_key}")
            raise
        self._loaded[cache_key] = component
        log.debug(f"Component {component.kind.value} loaded for widget {cache_key}")
        return component

    def unload(self, definition_id: str) -> int:
        """Drop every cached version of a definition's component."""
        keys = [key for key in self._loaded if key.split(":", 1)[0] == definition_id]
        for key in keys:
            del self._loaded[key]
        return len(keys)

    def is_loaded(self, definition_id: str, version: str) -> bool:
        return f"{definition_id}:{version}" in self._loaded
