"""Widget registry and communication enumerations."""

from enum import Enum


class PortType(str, Enum):
    """Direction of a widget port."""

    INPUT = "input"  # Receives data only
    OUTPUT = "output"  # Emits data only
    BIDIRECTIONAL = "bidirectional"


class ConnectionType(str, Enum):
    """Kind of payload flowing over a widget connection."""

    DATA = "data"
    EVENT = "event"
    STATE = "state"
    STREAM = "stream"


class MessagePriority(str, Enum):
    """Priority recorded on a widget message."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class RoutingStrategy(str, Enum):
    """How a widget message is fanned out to recipients."""

    DIRECT = "direct"  # Single target widget
    BROADCAST = "broadcast"  # Every registered widget except the sender
    TOPIC = "topic"  # Widgets that joined the message topic
    PATTERN = "pattern"  # Widgets whose id matches a glob/regex pattern


class ConflictResolution(str, Enum):
    """Strategy used when collaborative operations collide."""

    LAST_WRITE_WINS = "last-write-wins"
    OPERATIONAL_TRANSFORM = "operational-transform"
    MERGE = "merge"


class OperationType(str, Enum):
    """Kind of collaborative edit applied to a widget instance."""

    INSERT = "insert"
    DELETE = "delete"
    UPDATE = "update"
    MOVE = "move"
    RESIZE = "resize"


class FilterType(str, Enum):
    """What a message filter inspects."""

    WIDGET = "widget"
    USER = "user"
    TENANT = "tenant"
    MESSAGE_TYPE = "messageType"
    CUSTOM = "custom"


class FilterOperator(str, Enum):
    """Comparison applied by a message filter."""

    EQUALS = "equals"
    CONTAINS = "contains"
    MATCHES = "matches"
    IN = "in"
    NOT_IN = "not_in"


class WidgetCategory(str, Enum):
    """Catalog category of a widget definition."""

    ANALYTICS = "analytics"
    DATA = "data"
    VISUALIZATION = "visualization"
    CONTENT = "content"
    INPUT = "input"
    INTEGRATION = "integration"
    CUSTOM = "custom"


class WidgetStatus(str, Enum):
    """Lifecycle status of a widget definition."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"


class WidgetComponentKind(str, Enum):
    """Named component implementations available to widget definitions."""

    METRIC_CARD = "metric-card"
    CHART = "chart"
    DATA_TABLE = "data-table"
    TEXT = "text"
    FORM = "form"
    IFRAME_EMBED = "iframe-embed"
