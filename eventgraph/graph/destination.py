"""Canonical, hashable identity for graph vertices."""

from __future__ import annotations

from dataclasses import dataclass

from eventgraph.models.resources import Destination, KReference


@dataclass(frozen=True)
class ComparableDestination:
    """Value copy of a :class:`Destination`, safe to use as a dict key.

    A reference form has ``uri=None`` and a URI form has only ``uri`` set, so
    the two never compare equal. A reference with a relative URI keeps both
    and is a vertex of its own.
    """

    api_version: str = ""
    kind: str = ""
    namespace: str = ""
    name: str = ""
    uri: str | None = None

    @property
    def is_uri(self) -> bool:
        return self.uri is not None and not (self.api_version or self.kind or self.namespace or self.name)

    def __str__(self) -> str:
        if self.is_uri:
            return str(self.uri)
        ref = f"{self.api_version}/{self.kind}/{self.namespace}/{self.name}"
        return ref if self.uri is None else f"{ref} {self.uri}"


def canonicalize(dest: Destination) -> ComparableDestination:
    """Copy the identity fields of ``dest`` verbatim; no defaulting."""
    if dest.ref is not None:
        return ComparableDestination(
            api_version=dest.ref.api_version,
            kind=dest.ref.kind,
            namespace=dest.ref.namespace,
            name=dest.ref.name,
            uri=dest.uri,
        )
    return ComparableDestination(uri=dest.uri)


def canonicalize_ref(ref: KReference) -> ComparableDestination:
    return canonicalize(Destination(ref=ref))
