"""Vertices and edges of the event topology graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from eventgraph.graph.destination import ComparableDestination, canonicalize
from eventgraph.graph.errors import GraphError
from eventgraph.models.resources import Destination

if TYPE_CHECKING:
    from eventgraph.graph.graph import Graph
    from eventgraph.graph.transforms import Transform


@dataclass(eq=False)
class Edge:
    """A directed hop from ``from_vertex`` to ``to_vertex``.

    ``reference`` is the resource that declared the hop (a Trigger, not the
    Broker it hangs off). Edges compare by identity: the graph is a
    multigraph and parallel edges are kept.
    """

    from_vertex: Vertex
    to_vertex: Vertex
    reference: Destination
    transform: Transform
    is_primary: bool
    comparable_reference: ComparableDestination = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.comparable_reference = canonicalize(self.reference)

    def __repr__(self) -> str:
        return (
            f"Edge({self.from_vertex.key} -> {self.to_vertex.key}, "
            f"by={self.comparable_reference}, transform={self.transform.name}, primary={self.is_primary})"
        )


@dataclass(eq=False)
class Vertex:
    """One canonical destination and the edges touching it."""

    destination: Destination
    graph: Graph = field(repr=False)
    _in_edges: list[Edge] = field(default_factory=list, init=False, repr=False)
    _out_edges: list[Edge] = field(default_factory=list, init=False, repr=False)
    key: ComparableDestination = field(init=False)

    def __post_init__(self) -> None:
        self.key = canonicalize(self.destination)

    @property
    def in_edges(self) -> tuple[Edge, ...]:
        return tuple(self._in_edges)

    @property
    def out_edges(self) -> tuple[Edge, ...]:
        return tuple(self._out_edges)

    def add_edge(self, to: Vertex, reference: Destination, transform: Transform, is_primary: bool) -> Edge:
        """Connect this vertex to ``to``; always adds a new edge."""
        if to.graph is not self.graph:
            raise GraphError(f"cannot connect {self.key} to {to.key}: vertices belong to different graphs")
        edge = Edge(
            from_vertex=self,
            to_vertex=to,
            reference=reference,
            transform=transform,
            is_primary=is_primary,
        )
        self._out_edges.append(edge)
        to._in_edges.append(edge)
        self.graph._register_edge(edge)
        return edge
