"""The event topology graph and its per-kind ingestion rules.

A :class:`Graph` is populated once, in dependency order (Brokers and Channels,
then Sources, Triggers and Subscriptions, then EventTypes), and is treated as
read-only afterwards. Every ``add_*`` method checks its preconditions before
creating anything, so a failed call leaves the graph untouched.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from eventgraph.graph.destination import ComparableDestination, canonicalize, canonicalize_ref
from eventgraph.graph.errors import DanglingReferenceError
from eventgraph.graph.models import Edge, Vertex
from eventgraph.graph.transforms import (
    AttributesFilterTransform,
    CloudEventOverridesTransform,
    EventTypeTransform,
    NoTransform,
    Transform,
)
from eventgraph.models.resources import (
    Broker,
    Channel,
    Destination,
    EventType,
    KReference,
    Source,
    Subscription,
    Trigger,
)

EVENTING_V1 = "eventing.knative.dev/v1"
EVENTING_V1BETA3 = "eventing.knative.dev/v1beta3"
MESSAGING_V1 = "messaging.knative.dev/v1"

# EventTypes referencing these kinds attach to the referenced resource's
# primary edge instead of getting a vertex of their own.
_EDGE_DECLARING_KINDS = frozenset({"Trigger", "Subscription"})


class Graph:
    """Directed multigraph of event routes keyed by canonical destination."""

    def __init__(self) -> None:
        self._vertices: dict[ComparableDestination, Vertex] = {}
        self._edges: list[Edge] = []

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def vertices(self) -> tuple[Vertex, ...]:
        return tuple(self._vertices.values())

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def get_vertex(self, dest: Destination) -> Vertex | None:
        return self._vertices.get(canonicalize(dest))

    def get_primary_out_edge_with_ref(self, ref: KReference) -> Edge | None:
        """Return the primary edge declared by the resource ``ref`` points at.

        Only edges flagged ``is_primary`` qualify, so a Trigger or
        Subscription is found here only when it configures a dead-letter sink.
        """
        wanted = canonicalize_ref(ref)
        for vertex in self._vertices.values():
            for edge in vertex._out_edges:
                if edge.is_primary and edge.comparable_reference == wanted:
                    return edge
        return None

    def summary(self) -> dict[str, Any]:
        """Counts for logging: vertices, edges, and edges per transform."""
        transforms = Counter(edge.transform.name for edge in self._edges)
        return {
            "vertices": self.vertex_count,
            "edges": self.edge_count,
            "primary_edges": sum(1 for edge in self._edges if edge.is_primary),
            "transforms": dict(sorted(transforms.items())),
        }

    # ------------------------------------------------------------------
    # Construction primitives
    # ------------------------------------------------------------------

    def get_or_create_vertex(self, dest: Destination) -> Vertex:
        key = canonicalize(dest)
        vertex = self._vertices.get(key)
        if vertex is None:
            vertex = Vertex(destination=dest, graph=self)
            self._vertices[key] = vertex
        return vertex

    def _register_edge(self, edge: Edge) -> None:
        self._edges.append(edge)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add_broker(self, broker: Broker) -> None:
        dest = Destination.for_ref(EVENTING_V1, "Broker", broker.namespace, broker.name)
        vertex = self.get_or_create_vertex(dest)

        dls = broker.dead_letter_sink
        if dls is None:
            return
        vertex.add_edge(self.get_or_create_vertex(dls), dest, NoTransform(), True)

    def add_channel(self, channel: Channel) -> None:
        dest = Destination.for_ref(MESSAGING_V1, channel.kind or "Channel", channel.namespace, channel.name)
        vertex = self.get_or_create_vertex(dest)

        dls = channel.dead_letter_sink
        if dls is None:
            return
        vertex.add_edge(self.get_or_create_vertex(dls), dest, NoTransform(), True)

    def add_source(self, source: Source) -> None:
        dest = Destination.for_ref(source.api_version, source.kind, source.namespace, source.name)
        vertex = self.get_or_create_vertex(dest)
        sink = self.get_or_create_vertex(source.sink)
        vertex.add_edge(sink, dest, CloudEventOverridesTransform(overrides=source.ce_overrides), True)

    def add_trigger(self, trigger: Trigger) -> None:
        trigger_dest = Destination.for_ref(EVENTING_V1, "Trigger", trigger.namespace, trigger.name)
        broker_dest = Destination.for_ref(EVENTING_V1, "Broker", trigger.namespace, trigger.broker)
        broker = self.get_vertex(broker_dest)
        if broker is None:
            raise DanglingReferenceError(
                "trigger refers to a non-existent broker",
                resource=canonicalize(trigger_dest),
                kind="Trigger",
                namespace=trigger.namespace,
            )

        subscriber = self.get_or_create_vertex(trigger.subscriber)
        broker.add_edge(subscriber, trigger_dest, _transform_for_trigger(trigger), False)

        dls = trigger.dead_letter_sink
        if dls is None:
            return
        broker.add_edge(self.get_or_create_vertex(dls), trigger_dest, NoTransform(), True)

    def add_subscription(self, subscription: Subscription) -> None:
        sub_dest = Destination.for_ref(MESSAGING_V1, "Subscription", subscription.namespace, subscription.name)
        channel_dest = Destination.for_ref(
            subscription.channel.api_version,
            subscription.channel.kind,
            subscription.namespace,
            subscription.channel.name,
        )
        channel = self.get_vertex(channel_dest)
        if channel is None:
            raise DanglingReferenceError(
                "subscription refers to a non-existent channel",
                resource=canonicalize(sub_dest),
                kind="Subscription",
                namespace=subscription.namespace,
            )

        if subscription.subscriber is not None:
            subscriber = self.get_or_create_vertex(subscription.subscriber)
            channel.add_edge(subscriber, sub_dest, NoTransform(), False)
            if subscription.reply is not None:
                subscriber.add_edge(self.get_or_create_vertex(subscription.reply), sub_dest, NoTransform(), False)

        dls = subscription.dead_letter_sink
        if dls is None:
            return
        channel.add_edge(self.get_or_create_vertex(dls), sub_dest, NoTransform(), True)

    def add_event_type(self, event_type: EventType) -> None:
        dest = Destination.for_ref(EVENTING_V1BETA3, "EventType", event_type.namespace, event_type.name)
        transform = EventTypeTransform(event_type=event_type)
        ref = event_type.reference

        if ref is not None and ref.kind in _EDGE_DECLARING_KINDS:
            out_edge = self.get_primary_out_edge_with_ref(ref)
            if out_edge is None:
                raise DanglingReferenceError(
                    f"referenced {ref.kind} {canonicalize_ref(ref)} has no primary outward edge",
                    resource=canonicalize(dest),
                    kind="EventType",
                    namespace=event_type.namespace,
                )
            out_edge.to_vertex.add_edge(out_edge.from_vertex, dest, transform, False)
            return

        vertex = self.get_or_create_vertex(dest)
        if ref is None:
            return
        vertex.add_edge(self.get_or_create_vertex(Destination(ref=ref)), dest, transform, False)


def _transform_for_trigger(trigger: Trigger) -> Transform:
    # New-style filters take precedence over the legacy one and are not modelled.
    if not trigger.filters and trigger.filter is not None:
        return AttributesFilterTransform(filter=trigger.filter)
    return NoTransform()
