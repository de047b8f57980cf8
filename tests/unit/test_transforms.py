"""Tests for edge transform application."""

from __future__ import annotations

import pytest

from eventgraph.graph.transforms import (
    AttributesFilterTransform,
    CloudEventOverridesTransform,
    EventTypeTransform,
    NoTransform,
    Transform,
)
from eventgraph.models.resources import (
    CloudEventOverrides,
    EventAttributeDefinition,
    EventType,
    TriggerFilter,
)


def _attrs(**values: str) -> dict[str, EventAttributeDefinition]:
    return {k: EventAttributeDefinition(name=k, required=False, value=v) for k, v in values.items()}


def _event_type(**values: str) -> EventType:
    return EventType(
        name="et",
        namespace="default",
        attributes=[EventAttributeDefinition(name=k, required=True, value=v) for k, v in values.items()],
    )


class TestNoTransform:
    def test_returns_copy(self) -> None:
        attrs = _attrs(type="a")
        result = NoTransform().apply(attrs)
        assert result == attrs
        assert result is not attrs


class TestEventTypeTransform:
    def test_adds_declared_attributes(self) -> None:
        result = EventTypeTransform(_event_type(type="dev.example")).apply({})
        assert result == {"type": EventAttributeDefinition(name="type", required=True, value="dev.example")}

    def test_matching_value_keeps_attribute_and_marks_required(self) -> None:
        result = EventTypeTransform(_event_type(type="dev.example")).apply(_attrs(type="dev.example"))
        assert result is not None
        assert result["type"].value == "dev.example"
        assert result["type"].required is True

    def test_conflicting_value_blocks(self) -> None:
        assert EventTypeTransform(_event_type(type="dev.example")).apply(_attrs(type="dev.other")) is None

    def test_template_resolves_to_concrete_value(self) -> None:
        result = EventTypeTransform(_event_type(subject="{subject}")).apply(_attrs(subject="orders/1"))
        assert result is not None
        assert result["subject"].value == "orders/1"

    def test_unknown_incoming_value_takes_declared(self) -> None:
        result = EventTypeTransform(_event_type(source="/ping")).apply(_attrs(source=""))
        assert result is not None
        assert result["source"].value == "/ping"


class TestAttributesFilterTransform:
    def test_unknown_attribute_becomes_required_filter_value(self) -> None:
        result = AttributesFilterTransform(TriggerFilter({"type": "dev.example"})).apply({})
        assert result == {"type": EventAttributeDefinition(name="type", required=True, value="dev.example")}

    def test_mismatch_blocks(self) -> None:
        transform = AttributesFilterTransform(TriggerFilter({"type": "dev.example"}))
        assert transform.apply(_attrs(type="dev.other")) is None

    def test_empty_filter_value_matches_anything(self) -> None:
        result = AttributesFilterTransform(TriggerFilter({"type": ""})).apply(_attrs(type="dev.other"))
        assert result is not None
        assert result["type"].value == "dev.other"
        assert result["type"].required is True

    def test_empty_filter_passes_everything(self) -> None:
        attrs = _attrs(type="a", source="b")
        assert AttributesFilterTransform(TriggerFilter()).apply(attrs) == attrs


class TestCloudEventOverridesTransform:
    def test_sets_extensions(self) -> None:
        transform = CloudEventOverridesTransform(CloudEventOverrides({"team": "payments"}))
        result = transform.apply(_attrs(team="search", type="a"))
        assert result is not None
        assert result["team"] == EventAttributeDefinition(name="team", required=True, value="payments")
        assert result["type"].value == "a"

    def test_without_overrides_is_passthrough(self) -> None:
        attrs = _attrs(type="a")
        assert CloudEventOverridesTransform().apply(attrs) == attrs


@pytest.mark.parametrize(
    ("transform", "name"),
    [
        (NoTransform(), "no_transform"),
        (EventTypeTransform(_event_type()), "event_type"),
        (AttributesFilterTransform(TriggerFilter()), "attributes_filter"),
        (CloudEventOverridesTransform(), "cloudevent_overrides"),
    ],
)
def test_every_variant_is_matchable(transform: Transform, name: str) -> None:
    match transform:
        case NoTransform():
            matched = "no_transform"
        case EventTypeTransform():
            matched = "event_type"
        case AttributesFilterTransform():
            matched = "attributes_filter"
        case CloudEventOverridesTransform():
            matched = "cloudevent_overrides"
    assert matched == name == transform.name


def test_transforms_with_mutable_payloads_are_hashable() -> None:
    transforms = {
        NoTransform(),
        EventTypeTransform(_event_type(type="a")),
        AttributesFilterTransform(TriggerFilter(attributes={"type": "a"})),
        CloudEventOverridesTransform(CloudEventOverrides(extensions={"team": "a"})),
    }
    assert len(transforms) == 4
    assert NoTransform() in transforms
