"""Edge transforms: how an event's shape changes across one hop.

The set of transforms is closed. Consumers that interpret edge semantics
match on the :data:`Transform` union::

    match edge.transform:
        case NoTransform():
            ...
        case AttributesFilterTransform(filter=f):
            ...

Each variant also knows how to ``apply`` itself to what is known about an
event arriving at the edge, expressed as a mapping from CloudEvent attribute
name to :class:`EventAttributeDefinition`. ``apply`` returns the attributes
observable after the hop, or ``None`` when no such event can cross it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import ClassVar

from eventgraph.models.resources import (
    CloudEventOverrides,
    EventAttributeDefinition,
    EventType,
    TriggerFilter,
)

Attributes = Mapping[str, EventAttributeDefinition]


def _is_template(value: str) -> bool:
    return len(value) >= 2 and value.startswith("{") and value.endswith("}")


def _merge_value(current: str, incoming: str) -> str | None:
    """Intersect two attribute values; ``None`` if they cannot both hold."""
    if not current or _is_template(current):
        return incoming or current
    if not incoming or _is_template(incoming):
        return current
    return current if current == incoming else None


@dataclass(frozen=True)
class NoTransform:
    """Identity passthrough."""

    name: ClassVar[str] = "no_transform"

    def apply(self, attributes: Attributes) -> dict[str, EventAttributeDefinition] | None:
        return dict(attributes)


@dataclass(frozen=True, eq=False)
class EventTypeTransform:
    """Asserts that events on this hop match ``event_type``.

    Compared and hashed by identity because the wrapped EventType is mutable;
    the same holds for the other variants that carry a payload.
    """

    event_type: EventType
    name: ClassVar[str] = "event_type"

    def apply(self, attributes: Attributes) -> dict[str, EventAttributeDefinition] | None:
        result = dict(attributes)
        for declared in self.event_type.attributes:
            existing = result.get(declared.name)
            if existing is None:
                result[declared.name] = declared
                continue
            value = _merge_value(existing.value, declared.value)
            if value is None:
                return None
            result[declared.name] = replace(existing, value=value, required=existing.required or declared.required)
        return result


@dataclass(frozen=True, eq=False)
class AttributesFilterTransform:
    """A Trigger's legacy exact-match filter; only matching events cross."""

    filter: TriggerFilter
    name: ClassVar[str] = "attributes_filter"

    def apply(self, attributes: Attributes) -> dict[str, EventAttributeDefinition] | None:
        result = dict(attributes)
        for key, wanted in self.filter.attributes.items():
            existing = result.get(key)
            if existing is None:
                result[key] = EventAttributeDefinition(name=key, required=True, value=wanted)
                continue
            value = _merge_value(existing.value, wanted)
            if value is None:
                return None
            result[key] = replace(existing, value=value, required=True)
        return result


@dataclass(frozen=True, eq=False)
class CloudEventOverridesTransform:
    """Extension attributes a Source sets on every event it emits."""

    overrides: CloudEventOverrides | None = None
    name: ClassVar[str] = "cloudevent_overrides"

    def apply(self, attributes: Attributes) -> dict[str, EventAttributeDefinition] | None:
        result = dict(attributes)
        if self.overrides is None:
            return result
        for key, value in self.overrides.extensions.items():
            result[key] = EventAttributeDefinition(name=key, required=True, value=value)
        return result


Transform = NoTransform | EventTypeTransform | AttributesFilterTransform | CloudEventOverridesTransform

__all__ = [
    "AttributesFilterTransform",
    "CloudEventOverridesTransform",
    "EventTypeTransform",
    "NoTransform",
    "Transform",
]
