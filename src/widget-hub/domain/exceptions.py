"""Domain exceptions for widget-hub.

This module contains domain-specific exceptions raised by the widget
communication system and the widget registry when invariants are violated.
"""


class DomainError(Exception):
    """Base exception for domain rule violations.

    Attributes:
        message: Human-readable description of the violation.
        code: Optional error code for programmatic handling.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class WidgetNotRegisteredError(DomainError):
    """Raised when a widget id is not known to the communication system."""

    def __init__(self, widget_id: str) -> None:
        super().__init__(f"Widget is not registered: {widget_id}", code="WIDGET_NOT_REGISTERED")
        self.widget_id = widget_id


class InvalidPortError(DomainError):
    """Raised when a connection references a port the widget does not declare."""

    def __init__(self, widget_id: str, port_name: str) -> None:
        super().__init__(f"Invalid port specified: {widget_id}.{port_name}", code="INVALID_PORT")
        self.widget_id = widget_id
        self.port_name = port_name


class InvalidDirectionError(DomainError):
    """Raised when an input port is wired as a source or an output port as a target."""

    def __init__(self, source: str, target: str) -> None:
        super().__init__(f"Invalid connection direction: {source} -> {target}", code="INVALID_DIRECTION")
        self.source = source
        self.target = target


class MissingTargetError(DomainError):
    """Raised when a direct message has no target widget."""

    def __init__(self, from_widget: str) -> None:
        super().__init__(f"Direct message from {from_widget} requires a target widget", code="MISSING_TARGET")
        self.from_widget = from_widget


class WidgetDefinitionValidationError(DomainError):
    """Raised when a widget definition fails validation."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_WIDGET_DEFINITION")


class WidgetComponentNotFoundError(DomainError):
    """Raised when a definition references a component the catalog does not provide."""

    def __init__(self, component: str) -> None:
        super().__init__(f"Unknown widget component: {component}", code="COMPONENT_NOT_FOUND")
        self.component = component


class InvalidPatternError(DomainError):
    """Raised when a routing pattern or a message filter carries an invalid regular expression."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern '{pattern}': {reason}", code="INVALID_PATTERN")
        self.pattern = pattern
