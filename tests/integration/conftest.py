"""Shared fixtures for constructor tests.

Provides an in-memory stand-in for ``kubernetes_asyncio``'s CustomObjectsApi
and factories for raw Kubernetes objects, so construction can be exercised
end to end without a cluster.
"""

from __future__ import annotations

from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Fake custom-objects API
# ---------------------------------------------------------------------------

_Key = tuple[str, str, str, str]  # (group, version, plural, namespace)


class FakeCustomObjectsApi:
    """Serves canned list responses and records every call in order."""

    def __init__(self) -> None:
        self.objects: dict[_Key, list[dict[str, Any]]] = {}
        self.errors: dict[_Key, Exception] = {}
        self.crds: list[dict[str, Any]] = []
        self.crd_error: Exception | None = None
        self.calls: list[tuple[str, str]] = []
        self.label_selectors: list[str | None] = []

    def add(self, group: str, version: str, plural: str, namespace: str, *items: dict[str, Any]) -> None:
        self.objects.setdefault((group, version, plural, namespace), []).extend(items)

    def fail(self, group: str, version: str, plural: str, namespace: str, exc: Exception) -> None:
        self.errors[(group, version, plural, namespace)] = exc

    async def list_namespaced_custom_object(
        self, group: str, version: str, namespace: str, plural: str, **kwargs: Any
    ) -> dict[str, Any]:
        self.calls.append((plural, namespace))
        key = (group, version, plural, namespace)
        if key in self.errors:
            raise self.errors[key]
        return {"apiVersion": f"{group}/{version}", "items": list(self.objects.get(key, []))}

    async def list_cluster_custom_object(self, group: str, version: str, plural: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append((plural, ""))
        self.label_selectors.append(kwargs.get("label_selector"))
        if self.crd_error is not None:
            raise self.crd_error
        return {"items": list(self.crds)}

    # Convenience adders for the built-in kinds

    def add_brokers(self, namespace: str, *items: dict[str, Any]) -> None:
        self.add("eventing.knative.dev", "v1", "brokers", namespace, *items)

    def add_channels(self, namespace: str, *items: dict[str, Any]) -> None:
        self.add("messaging.knative.dev", "v1", "channels", namespace, *items)

    def add_triggers(self, namespace: str, *items: dict[str, Any]) -> None:
        self.add("eventing.knative.dev", "v1", "triggers", namespace, *items)

    def add_subscriptions(self, namespace: str, *items: dict[str, Any]) -> None:
        self.add("messaging.knative.dev", "v1", "subscriptions", namespace, *items)

    def add_event_types(self, namespace: str, *items: dict[str, Any]) -> None:
        self.add("eventing.knative.dev", "v1beta3", "eventtypes", namespace, *items)


@pytest.fixture
def api() -> FakeCustomObjectsApi:
    return FakeCustomObjectsApi()


# ---------------------------------------------------------------------------
# Raw object factories
# ---------------------------------------------------------------------------


def _delivery(dls_uri: str | None) -> dict[str, Any]:
    return {"delivery": {"deadLetterSink": {"uri": dls_uri}}} if dls_uri else {}


def service_ref(name: str) -> dict[str, Any]:
    return {"ref": {"apiVersion": "serving.knative.dev/v1", "kind": "Service", "name": name}}


def make_broker(name: str = "my-broker", namespace: str = "default", dls_uri: str | None = None) -> dict[str, Any]:
    return {
        "apiVersion": "eventing.knative.dev/v1",
        "kind": "Broker",
        "metadata": {"name": name, "namespace": namespace},
        "spec": _delivery(dls_uri),
    }


def make_channel(name: str = "my-channel", namespace: str = "default", dls_uri: str | None = None) -> dict[str, Any]:
    return {
        "apiVersion": "messaging.knative.dev/v1",
        "kind": "Channel",
        "metadata": {"name": name, "namespace": namespace},
        "spec": _delivery(dls_uri),
    }


def make_trigger(
    name: str = "my-trigger",
    namespace: str = "default",
    broker: str = "my-broker",
    subscriber: str = "my-service",
    filter_attributes: dict[str, str] | None = None,
    dls_uri: str | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {"broker": broker, "subscriber": service_ref(subscriber), **_delivery(dls_uri)}
    if filter_attributes is not None:
        spec["filter"] = {"attributes": filter_attributes}
    return {
        "apiVersion": "eventing.knative.dev/v1",
        "kind": "Trigger",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


def make_subscription(
    name: str = "my-subscription",
    namespace: str = "default",
    channel: str = "my-channel",
    subscriber: str = "my-service",
    reply: str | None = None,
    dls_uri: str | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "channel": {"apiVersion": "messaging.knative.dev/v1", "kind": "Channel", "name": channel},
        "subscriber": service_ref(subscriber),
        **_delivery(dls_uri),
    }
    if reply is not None:
        spec["reply"] = service_ref(reply)
    return {
        "apiVersion": "messaging.knative.dev/v1",
        "kind": "Subscription",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


def make_event_type(
    name: str = "my-event-type",
    namespace: str = "default",
    reference_kind: str = "Broker",
    reference_name: str = "my-broker",
    event_type: str = "dev.knative.example",
) -> dict[str, Any]:
    api_versions = {
        "Broker": "eventing.knative.dev/v1",
        "Trigger": "eventing.knative.dev/v1",
        "Subscription": "messaging.knative.dev/v1",
        "Channel": "messaging.knative.dev/v1",
    }
    return {
        "apiVersion": "eventing.knative.dev/v1beta3",
        "kind": "EventType",
        "metadata": {"name": name, "namespace": namespace},
        "spec": {
            "reference": {
                "apiVersion": api_versions.get(reference_kind, "sources.knative.dev/v1"),
                "kind": reference_kind,
                "name": reference_name,
            },
            "attributes": [{"name": "type", "required": True, "value": event_type}],
        },
    }


def make_source_crd(
    kind: str = "PingSource",
    group: str = "sources.knative.dev",
    plural: str = "pingsources",
    versions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{plural}.{group}", "labels": {"duck.knative.dev/source": "true"}},
        "spec": {
            "group": group,
            "names": {"kind": kind, "plural": plural},
            "versions": versions if versions is not None else [{"name": "v1", "served": True, "storage": True}],
        },
    }


def make_source(
    name: str = "my-ping",
    namespace: str = "default",
    kind: str = "PingSource",
    api_version: str = "sources.knative.dev/v1",
    sink: dict[str, Any] | None = None,
    extensions: dict[str, str] | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {
        "sink": sink
        if sink is not None
        else {"ref": {"apiVersion": "eventing.knative.dev/v1", "kind": "Broker", "name": "my-broker"}},
    }
    if extensions is not None:
        spec["ceOverrides"] = {"extensions": extensions}
    return {
        "apiVersion": api_version,
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }
