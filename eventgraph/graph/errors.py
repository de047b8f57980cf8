"""Exceptions raised while building an event topology graph."""

from __future__ import annotations


class GraphError(Exception):
    """Base class for graph errors."""


class GraphConstructionError(GraphError):
    """Construction aborted; any partially built graph must be discarded."""

    def __init__(self, message: str, *, kind: str = "", namespace: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.namespace = namespace


class DanglingReferenceError(GraphConstructionError):
    """A resource refers to a Broker, Channel or edge that is not in the graph.

    ``resource`` is the identity of the resource that could not be added.
    """

    def __init__(self, message: str, *, resource: object = None, kind: str = "", namespace: str = "") -> None:
        super().__init__(f"{message}: {resource}" if resource is not None else message, kind=kind, namespace=namespace)
        self.resource = resource
