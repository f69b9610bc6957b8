"""MessageFilter value object.

Predicate evaluated against widget messages by subscriptions and routing.
"""

import re
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from domain.enums import FilterOperator, FilterType
from domain.exceptions import InvalidPatternError

_SOURCE_PROPERTIES = {"from_widget", "fromWidget", "from", "source"}


@dataclass(frozen=True)
class MessageFilter:
    """Single predicate over a widget message.

    Operators:
    - equals: exact equality
    - contains: substring of the stringified value
    - matches: regular expression search
    - in / not_in: membership in a list value

    Unknown operators let the message through. A `matches` value that is not
    a valid regular expression is rejected at construction.
    """

    type: FilterType
    operator: FilterOperator | str
    value: Any = None
    property: str | None = None
    id: str = ""

    def __post_init__(self) -> None:
        if self.operator == FilterOperator.MATCHES:
            try:
                re.compile(str(self.value))
            except re.error as e:
                raise InvalidPatternError(str(self.value), str(e)) from e

    def matches(self, message: Any) -> bool:
        """Check whether the message satisfies this filter."""
        actual = self._resolve(message)

        if self.operator == FilterOperator.EQUALS:
            return bool(actual == self.value)
        if self.operator == FilterOperator.CONTAINS:
            return actual is not None and str(self.value) in str(actual)
        if self.operator == FilterOperator.MATCHES:
            return actual is not None and re.search(str(self.value), str(actual)) is not None
        if self.operator == FilterOperator.IN:
            return isinstance(self.value, (list, tuple, set)) and actual in self.value
        if self.operator == FilterOperator.NOT_IN:
            return isinstance(self.value, (list, tuple, set)) and actual not in self.value
        return True

    def _resolve(self, message: Any) -> Any:
        """Pick the message attribute this filter inspects."""
        if self.type == FilterType.MESSAGE_TYPE:
            return message.message_type
        if self.type == FilterType.WIDGET:
            if self.property in _SOURCE_PROPERTIES:
                return message.from_widget
            return message.to_widget
        if self.type == FilterType.USER:
            return message.user_id
        if self.type == FilterType.TENANT:
            return message.tenant_id

        # Custom: message attribute first, then dotted path into the payload
        if not self.property:
            return None
        path = self.property[len("payload.") :] if self.property.startswith("payload.") else self.property
        if path == self.property and hasattr(message, path):
            return getattr(message, path)
        current: Any = message.payload
        for key in path.split("."):
            if not isinstance(current, dict) or key not in current:
                return None
            current = current[key]
        return current

    def to_dict(self) -> dict:
        """Serialize to dictionary for storage."""
        return {
            "id": self.id,
            "type": self.type.value,
            "property": self.property,
            "operator": self.operator.value if isinstance(self.operator, FilterOperator) else self.operator,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MessageFilter":
        """Deserialize from dictionary.

        Operators outside FilterOperator are kept as plain strings so they pass.
        """
        operator = data.get("operator", FilterOperator.EQUALS.value)
        try:
            operator = FilterOperator(operator)
        except ValueError:
            pass
        return cls(
            id=data.get("id") or str(uuid4()),
            type=FilterType(data.get("type", FilterType.CUSTOM.value)),
            property=data.get("property"),
            operator=operator,
            value=data.get("value"),
        )
