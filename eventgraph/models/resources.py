"""Typed shapes for the event-routing resource kinds.

The custom-objects API returns plain JSON dictionaries. Each kind has a
``from_dict`` constructor that pulls out the fields the graph builder needs
and raises :class:`ResourceDecodeError` when a required field is missing or
has the wrong shape. Unknown fields are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class ResourceDecodeError(ValueError):
    """Raised when a raw Kubernetes object cannot be decoded."""


def _mapping(raw: Any, path: str) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ResourceDecodeError(f"{path}: expected an object, got {type(raw).__name__}")
    return raw


def _str(raw: Mapping[str, Any], key: str, path: str, *, required: bool = False) -> str:
    value = raw.get(key)
    if value is None or value == "":
        if required:
            raise ResourceDecodeError(f"{path}.{key}: required field is missing")
        return ""
    if not isinstance(value, str):
        raise ResourceDecodeError(f"{path}.{key}: expected a string, got {type(value).__name__}")
    return value


def _str_map(raw: Any, path: str) -> dict[str, str]:
    result: dict[str, str] = {}
    for key, value in _mapping(raw, path).items():
        if not isinstance(value, str):
            raise ResourceDecodeError(f"{path}.{key}: expected a string, got {type(value).__name__}")
        result[str(key)] = value
    return result


def _metadata(raw: Mapping[str, Any]) -> tuple[str, str]:
    metadata = _mapping(raw.get("metadata"), "metadata")
    return _str(metadata, "name", "metadata", required=True), _str(metadata, "namespace", "metadata")


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


@dataclass
class KReference:
    """Reference to a Kubernetes object by apiVersion, kind, namespace and name."""

    api_version: str
    kind: str
    namespace: str
    name: str

    @classmethod
    def from_dict(cls, raw: Any, path: str = "ref", default_namespace: str = "") -> KReference:
        data = _mapping(raw, path)
        return cls(
            api_version=_str(data, "apiVersion", path, required=True),
            kind=_str(data, "kind", path, required=True),
            namespace=_str(data, "namespace", path) or default_namespace,
            name=_str(data, "name", path, required=True),
        )


@dataclass
class Destination:
    """An event sink: a typed reference, an absolute URI, or both.

    When both are set the URI is resolved relative to the referenced object
    (for example a path on a Service), which is a distinct sink.
    """

    ref: KReference | None = None
    uri: str | None = None

    def __post_init__(self) -> None:
        if self.ref is None and self.uri is None:
            raise ValueError("Destination must set ref, uri, or both")

    @classmethod
    def for_ref(cls, api_version: str, kind: str, namespace: str, name: str) -> Destination:
        return cls(ref=KReference(api_version=api_version, kind=kind, namespace=namespace, name=name))

    @classmethod
    def for_uri(cls, uri: str) -> Destination:
        return cls(uri=uri)

    @classmethod
    def from_dict(cls, raw: Any, path: str = "destination", default_namespace: str = "") -> Destination:
        """Decode a destination with a ``ref``, a ``uri``, or a ``ref`` plus a relative ``uri``.

        A ref without a namespace inherits ``default_namespace`` (the namespace
        of the object that declared it).
        """
        data = _mapping(raw, path)
        has_ref = data.get("ref") is not None
        uri = _str(data, "uri", path)
        if has_ref:
            ref = KReference.from_dict(data["ref"], f"{path}.ref", default_namespace)
            return cls(ref=ref, uri=uri or None)
        if uri:
            return cls(uri=uri)
        raise ResourceDecodeError(f"{path}: one of ref or uri is required")


@dataclass
class DeliverySpec:
    """Delivery options; only the dead-letter sink matters for topology."""

    dead_letter_sink: Destination | None = None

    @classmethod
    def from_dict(cls, raw: Any, path: str = "spec.delivery", default_namespace: str = "") -> DeliverySpec:
        data = _mapping(raw, path)
        dls = data.get("deadLetterSink")
        if dls is None:
            return cls()
        return cls(dead_letter_sink=Destination.from_dict(dls, f"{path}.deadLetterSink", default_namespace))


def _delivery(spec: Mapping[str, Any], namespace: str) -> DeliverySpec | None:
    if spec.get("delivery") is None:
        return None
    return DeliverySpec.from_dict(spec["delivery"], default_namespace=namespace)


def _dead_letter_sink(delivery: DeliverySpec | None) -> Destination | None:
    return delivery.dead_letter_sink if delivery is not None else None


# ---------------------------------------------------------------------------
# Broker / Channel
# ---------------------------------------------------------------------------


@dataclass
class Broker:
    name: str
    namespace: str
    delivery: DeliverySpec | None = None

    @property
    def dead_letter_sink(self) -> Destination | None:
        return _dead_letter_sink(self.delivery)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Broker:
        name, namespace = _metadata(raw)
        spec = _mapping(raw.get("spec"), "spec")
        return cls(name=name, namespace=namespace, delivery=_delivery(spec, namespace))


@dataclass
class Channel:
    name: str
    namespace: str
    kind: str = "Channel"
    delivery: DeliverySpec | None = None

    def __post_init__(self) -> None:
        if not self.kind:
            self.kind = "Channel"

    @property
    def dead_letter_sink(self) -> Destination | None:
        return _dead_letter_sink(self.delivery)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Channel:
        name, namespace = _metadata(raw)
        spec = _mapping(raw.get("spec"), "spec")
        return cls(
            name=name,
            namespace=namespace,
            kind=_str(raw, "kind", "channel"),
            delivery=_delivery(spec, namespace),
        )


# ---------------------------------------------------------------------------
# Trigger / Subscription
# ---------------------------------------------------------------------------


@dataclass
class TriggerFilter:
    """Legacy exact-match attribute filter of a Trigger."""

    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class Trigger:
    name: str
    namespace: str
    broker: str
    subscriber: Destination
    filter: TriggerFilter | None = None
    # New-style SubscriptionsAPI filters. Kept opaque: their presence disables
    # the legacy filter but they are not modelled as a transform.
    filters: list[dict[str, Any]] = field(default_factory=list)
    delivery: DeliverySpec | None = None

    @property
    def dead_letter_sink(self) -> Destination | None:
        return _dead_letter_sink(self.delivery)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Trigger:
        name, namespace = _metadata(raw)
        spec = _mapping(raw.get("spec"), "spec")
        trigger_filter = None
        if spec.get("filter") is not None:
            filter_spec = _mapping(spec["filter"], "spec.filter")
            trigger_filter = TriggerFilter(attributes=_str_map(filter_spec.get("attributes"), "spec.filter.attributes"))
        filters = spec.get("filters") or []
        if not isinstance(filters, list):
            raise ResourceDecodeError("spec.filters: expected a list")
        if "subscriber" not in spec:
            raise ResourceDecodeError("spec.subscriber: required field is missing")
        return cls(
            name=name,
            namespace=namespace,
            broker=_str(spec, "broker", "spec", required=True),
            subscriber=Destination.from_dict(spec["subscriber"], "spec.subscriber", namespace),
            filter=trigger_filter,
            filters=[dict(_mapping(f, "spec.filters[]")) for f in filters],
            delivery=_delivery(spec, namespace),
        )


@dataclass
class ChannelReference:
    """The channel a Subscription is attached to; always in the subscription's namespace."""

    api_version: str
    kind: str
    name: str


@dataclass
class Subscription:
    name: str
    namespace: str
    channel: ChannelReference
    subscriber: Destination | None = None
    reply: Destination | None = None
    delivery: DeliverySpec | None = None

    @property
    def dead_letter_sink(self) -> Destination | None:
        return _dead_letter_sink(self.delivery)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Subscription:
        name, namespace = _metadata(raw)
        spec = _mapping(raw.get("spec"), "spec")
        channel = _mapping(spec.get("channel"), "spec.channel")
        subscriber = spec.get("subscriber")
        reply = spec.get("reply")
        return cls(
            name=name,
            namespace=namespace,
            channel=ChannelReference(
                api_version=_str(channel, "apiVersion", "spec.channel", required=True),
                kind=_str(channel, "kind", "spec.channel", required=True),
                name=_str(channel, "name", "spec.channel", required=True),
            ),
            subscriber=Destination.from_dict(subscriber, "spec.subscriber", namespace) if subscriber is not None else None,
            reply=Destination.from_dict(reply, "spec.reply", namespace) if reply is not None else None,
            delivery=_delivery(spec, namespace),
        )


# ---------------------------------------------------------------------------
# Source (duck type)
# ---------------------------------------------------------------------------


@dataclass
class CloudEventOverrides:
    """Extension attributes a Source stamps onto every event it emits."""

    extensions: dict[str, str] = field(default_factory=dict)


@dataclass
class Source:
    """Normalized shape shared by every Source kind (the Source duck type)."""

    name: str
    namespace: str
    api_version: str
    kind: str
    sink: Destination
    ce_overrides: CloudEventOverrides | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Source:
        raw = _mapping(raw, "source")
        name, namespace = _metadata(raw)
        spec = _mapping(raw.get("spec"), "spec")
        if spec.get("sink") is None:
            raise ResourceDecodeError("spec.sink: required field is missing")
        overrides = None
        if spec.get("ceOverrides") is not None:
            ce = _mapping(spec["ceOverrides"], "spec.ceOverrides")
            overrides = CloudEventOverrides(extensions=_str_map(ce.get("extensions"), "spec.ceOverrides.extensions"))
        return cls(
            name=name,
            namespace=namespace,
            api_version=_str(raw, "apiVersion", "source", required=True),
            kind=_str(raw, "kind", "source", required=True),
            sink=Destination.from_dict(spec["sink"], "spec.sink", namespace),
            ce_overrides=overrides,
        )


# ---------------------------------------------------------------------------
# EventType
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EventAttributeDefinition:
    """What is known about one CloudEvent attribute.

    ``value`` may be empty (unknown) or a template such as ``{subject}``
    standing for any value.
    """

    name: str
    required: bool = False
    value: str = ""


@dataclass
class EventType:
    name: str
    namespace: str
    reference: KReference | None = None
    attributes: list[EventAttributeDefinition] = field(default_factory=list)
    description: str = ""

    @property
    def type(self) -> str:
        """The CloudEvents ``type`` attribute value, if declared."""
        for attr in self.attributes:
            if attr.name == "type":
                return attr.value
        return ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> EventType:
        name, namespace = _metadata(raw)
        spec = _mapping(raw.get("spec"), "spec")
        reference = None
        if spec.get("reference") is not None:
            reference = KReference.from_dict(spec["reference"], "spec.reference", default_namespace=namespace)
        raw_attrs = spec.get("attributes") or []
        if not isinstance(raw_attrs, list):
            raise ResourceDecodeError("spec.attributes: expected a list")
        attributes = []
        for i, item in enumerate(raw_attrs):
            path = f"spec.attributes[{i}]"
            data = _mapping(item, path)
            attributes.append(
                EventAttributeDefinition(
                    name=_str(data, "name", path, required=True),
                    required=bool(data.get("required", False)),
                    value=_str(data, "value", path),
                )
            )
        return cls(
            name=name,
            namespace=namespace,
            reference=reference,
            attributes=attributes,
            description=_str(spec, "description", "spec"),
        )
