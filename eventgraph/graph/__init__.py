"""Event topology graph.

Models every path an event may travel between Brokers, Channels, Sources,
Triggers, Subscriptions and EventTypes as a directed multigraph whose edges
carry the transform each hop applies. Built from scratch on every call to
:func:`construct_graph`; read-only once returned.
"""

from eventgraph.graph.constructor import ConstructorConfig, construct_graph
from eventgraph.graph.destination import ComparableDestination, canonicalize
from eventgraph.graph.errors import DanglingReferenceError, GraphConstructionError, GraphError
from eventgraph.graph.graph import Graph
from eventgraph.graph.models import Edge, Vertex
from eventgraph.graph.transforms import (
    AttributesFilterTransform,
    CloudEventOverridesTransform,
    EventTypeTransform,
    NoTransform,
    Transform,
)

__all__ = [
    "AttributesFilterTransform",
    "CloudEventOverridesTransform",
    "ComparableDestination",
    "ConstructorConfig",
    "DanglingReferenceError",
    "Edge",
    "EventTypeTransform",
    "Graph",
    "GraphConstructionError",
    "GraphError",
    "NoTransform",
    "Transform",
    "Vertex",
    "canonicalize",
    "construct_graph",
]
