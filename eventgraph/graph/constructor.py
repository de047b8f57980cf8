"""Build an event topology graph from live cluster state.

Resources are listed through the ``kubernetes_asyncio`` custom-objects API,
one namespace at a time and one kind at a time, in the order the ingestion
rules depend on: Brokers, Channels, Sources, Triggers, Subscriptions,
EventTypes.

Source kinds are not known in advance. Any CRD labelled
``duck.knative.dev/source=true`` is treated as a Source kind and its instances
are decoded into the normalized :class:`Source` shape.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

from eventgraph.graph.errors import GraphConstructionError
from eventgraph.graph.graph import Graph
from eventgraph.models.resources import (
    Broker,
    Channel,
    EventType,
    ResourceDecodeError,
    Source,
    Subscription,
    Trigger,
)
from eventgraph.observability.logging import get_logger
from eventgraph.observability.metrics import (
    build_duration_seconds,
    graph_builds_total,
    list_errors_tolerated_total,
    source_items_skipped_total,
)

_log = get_logger("graph.constructor")

# not-found, unauthorized, forbidden: the kind is absent or hidden from us
_TOLERATED_STATUSES = frozenset({401, 403, 404})

SOURCE_CRD_LABEL_SELECTOR = "duck.knative.dev/source=true"

_R = TypeVar("_R")


class CustomObjectsLister(Protocol):
    """The subset of ``kubernetes_asyncio.client.CustomObjectsApi`` we use."""

    def list_namespaced_custom_object(
        self, group: str, version: str, namespace: str, plural: str, **kwargs: Any
    ) -> Awaitable[Mapping[str, Any]]: ...

    def list_cluster_custom_object(
        self, group: str, version: str, plural: str, **kwargs: Any
    ) -> Awaitable[Mapping[str, Any]]: ...


@dataclass(frozen=True)
class ResourceKind:
    """Group/version/plural coordinates of a listable kind."""

    kind: str
    group: str
    version: str
    plural: str

    def __str__(self) -> str:
        return f"{self.plural}.{self.group}/{self.version}"


BROKERS = ResourceKind("Broker", "eventing.knative.dev", "v1", "brokers")
CHANNELS = ResourceKind("Channel", "messaging.knative.dev", "v1", "channels")
TRIGGERS = ResourceKind("Trigger", "eventing.knative.dev", "v1", "triggers")
SUBSCRIPTIONS = ResourceKind("Subscription", "messaging.knative.dev", "v1", "subscriptions")
EVENT_TYPES = ResourceKind("EventType", "eventing.knative.dev", "v1beta3", "eventtypes")
CRDS = ResourceKind("CustomResourceDefinition", "apiextensions.k8s.io", "v1", "customresourcedefinitions")


def _accept_all(_resource: Any) -> bool:
    return True


@dataclass
class ConstructorConfig:
    """Which namespaces to scan and which resources to keep.

    Every predicate is evaluated on the decoded resource before ingestion and
    defaults to accepting everything.
    """

    namespaces: list[str] = field(default_factory=list)
    should_add_broker: Callable[[Broker], bool] = _accept_all
    should_add_channel: Callable[[Channel], bool] = _accept_all
    should_add_source: Callable[[Source], bool] = _accept_all
    should_add_trigger: Callable[[Trigger], bool] = _accept_all
    should_add_subscription: Callable[[Subscription], bool] = _accept_all
    should_add_event_type: Callable[[EventType], bool] = _accept_all


async def construct_graph(config: ConstructorConfig, api: CustomObjectsLister) -> Graph:
    """List every configured namespace and return the assembled graph.

    Raises GraphConstructionError (or its DanglingReferenceError subclass) on
    the first fatal error; no partial graph is returned.
    """
    t_start = time.monotonic()
    try:
        graph = await _construct(config, api)
    except GraphConstructionError as exc:
        graph_builds_total.labels(outcome="failed").inc()
        _log.error("graph construction failed", error=str(exc), kind=exc.kind, namespace=exc.namespace)
        raise
    finally:
        build_duration_seconds.observe(time.monotonic() - t_start)

    graph_builds_total.labels(outcome="succeeded").inc()
    _log.info("graph constructed", namespaces=len(config.namespaces), **graph.summary())
    return graph


async def _construct(config: ConstructorConfig, api: CustomObjectsLister) -> Graph:
    graph = Graph()
    if not config.namespaces:
        return graph
    source_kinds = await discover_source_kinds(api)

    for ns in config.namespaces:
        for broker in await _list_decoded(api, BROKERS, ns, Broker.from_dict):
            if config.should_add_broker(broker):
                graph.add_broker(broker)

        for channel in await _list_decoded(api, CHANNELS, ns, Channel.from_dict):
            if config.should_add_channel(channel):
                graph.add_channel(channel)

        for source in await list_sources(api, source_kinds, ns):
            if config.should_add_source(source):
                graph.add_source(source)

        for trigger in await _list_decoded(api, TRIGGERS, ns, Trigger.from_dict):
            if config.should_add_trigger(trigger):
                graph.add_trigger(trigger)

        for subscription in await _list_decoded(api, SUBSCRIPTIONS, ns, Subscription.from_dict):
            if config.should_add_subscription(subscription):
                graph.add_subscription(subscription)

        for event_type in await _list_decoded(api, EVENT_TYPES, ns, EventType.from_dict):
            if config.should_add_event_type(event_type):
                graph.add_event_type(event_type)

        _log.debug("namespace ingested", namespace=ns, vertices=graph.vertex_count, edges=graph.edge_count)

    return graph


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def _tolerated(exc: ApiException, kind: ResourceKind, namespace: str) -> bool:
    if exc.status not in _TOLERATED_STATUSES:
        return False
    list_errors_tolerated_total.labels(kind=kind.kind, status=str(exc.status)).inc()
    _log.debug("list tolerated as empty", kind=str(kind), namespace=namespace, status=exc.status)
    return True


async def _list_items(api: CustomObjectsLister, kind: ResourceKind, namespace: str) -> list[Mapping[str, Any]]:
    try:
        response = await api.list_namespaced_custom_object(
            group=kind.group,
            version=kind.version,
            namespace=namespace,
            plural=kind.plural,
        )
    except ApiException as exc:
        if _tolerated(exc, kind, namespace):
            return []
        raise GraphConstructionError(
            f"listing {kind} in namespace {namespace!r} failed: {exc.status} {exc.reason}",
            kind=kind.kind,
            namespace=namespace,
        ) from exc
    except Exception as exc:
        raise GraphConstructionError(
            f"listing {kind} in namespace {namespace!r} failed: {exc}",
            kind=kind.kind,
            namespace=namespace,
        ) from exc
    return list(response.get("items") or [])


async def _list_decoded(
    api: CustomObjectsLister,
    kind: ResourceKind,
    namespace: str,
    decode: Callable[[Mapping[str, Any]], _R],
) -> list[_R]:
    decoded = []
    for raw in await _list_items(api, kind, namespace):
        try:
            decoded.append(decode(raw))
        except ResourceDecodeError as exc:
            raise GraphConstructionError(
                f"cannot decode {kind.kind} in namespace {namespace!r}: {exc}",
                kind=kind.kind,
                namespace=namespace,
            ) from exc
    _log.debug("listed", kind=str(kind), namespace=namespace, count=len(decoded))
    return decoded


# ---------------------------------------------------------------------------
# Dynamic Source discovery
# ---------------------------------------------------------------------------


def _object_name(raw: Any) -> str:
    metadata = raw.get("metadata") if isinstance(raw, Mapping) else None
    name = metadata.get("name") if isinstance(metadata, Mapping) else None
    return name if isinstance(name, str) else ""


def source_kind_from_crd(crd: Mapping[str, Any]) -> ResourceKind:
    """Derive the group, served version and plural of a Source CRD.

    The first version marked ``served`` wins; CRDs written against the
    pre-``versions`` schema fall back to ``spec.version``.
    """
    if not isinstance(crd, Mapping):
        raise ResourceDecodeError(f"expected an object, got {type(crd).__name__}")
    spec = crd.get("spec")
    if not isinstance(spec, Mapping):
        raise ResourceDecodeError("spec: required field is missing")

    group = spec.get("group")
    if not isinstance(group, str) or not group:
        raise ResourceDecodeError("can't find source group from source CRD")

    version = ""
    versions = spec.get("versions")
    if isinstance(versions, list) and versions:
        for entry in versions:
            if isinstance(entry, Mapping) and entry.get("served") is True and isinstance(entry.get("name"), str):
                version = entry["name"]
                break
    else:
        legacy = spec.get("version")
        version = legacy if isinstance(legacy, str) else ""
    if not version:
        raise ResourceDecodeError("can't find source version from source CRD")

    names = spec.get("names")
    plural = names.get("plural") if isinstance(names, Mapping) else None
    if not isinstance(plural, str) or not plural:
        raise ResourceDecodeError("can't find source resource from source CRD")

    kind = names.get("kind") if isinstance(names, Mapping) else None
    return ResourceKind(kind=kind if isinstance(kind, str) and kind else plural, group=group, version=version, plural=plural)


async def discover_source_kinds(api: CustomObjectsLister) -> list[ResourceKind]:
    """List CRDs carrying the Source label; malformed ones are skipped."""
    try:
        response = await api.list_cluster_custom_object(
            group=CRDS.group,
            version=CRDS.version,
            plural=CRDS.plural,
            label_selector=SOURCE_CRD_LABEL_SELECTOR,
        )
    except ApiException as exc:
        if _tolerated(exc, CRDS, ""):
            return []
        raise GraphConstructionError(
            f"unable to list source CRDs: {exc.status} {exc.reason}", kind=CRDS.kind
        ) from exc
    except Exception as exc:
        raise GraphConstructionError(f"unable to list source CRDs: {exc}", kind=CRDS.kind) from exc

    kinds = []
    for crd in response.get("items") or []:
        crd_name = _object_name(crd)
        try:
            kinds.append(source_kind_from_crd(crd))
        except ResourceDecodeError as exc:
            source_items_skipped_total.labels(stage="crd").inc()
            _log.warning("skipping source CRD", crd=crd_name, error=str(exc))
    _log.debug("source kinds discovered", kinds=[str(k) for k in kinds])
    return kinds


async def list_sources(api: CustomObjectsLister, source_kinds: list[ResourceKind], namespace: str) -> list[Source]:
    """List and decode instances of every Source kind in ``namespace``.

    A kind whose listing fails, or an instance that does not decode, is
    skipped; one foreign CRD carrying the label must not break the scan.
    """
    sources = []
    for kind in source_kinds:
        try:
            response = await api.list_namespaced_custom_object(
                group=kind.group,
                version=kind.version,
                namespace=namespace,
                plural=kind.plural,
            )
        except Exception as exc:
            source_items_skipped_total.labels(stage="list").inc()
            _log.warning("skipping source kind", kind=str(kind), namespace=namespace, error=str(exc))
            continue

        for raw in response.get("items") or []:
            try:
                sources.append(Source.from_dict(raw))
            except ResourceDecodeError as exc:
                source_items_skipped_total.labels(stage="instance").inc()
                _log.warning(
                    "skipping source instance",
                    kind=str(kind),
                    namespace=namespace,
                    name=_object_name(raw),
                    error=str(exc),
                )
    return sources
