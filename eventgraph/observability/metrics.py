"""Prometheus metrics for graph construction."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

graph_builds_total = Counter(
    "eventgraph_builds_total",
    "Graph constructions by outcome",
    ["outcome"],
)

list_errors_tolerated_total = Counter(
    "eventgraph_list_errors_tolerated_total",
    "List calls that failed with not-found/unauthorized/forbidden and were treated as empty",
    ["kind", "status"],
)

source_items_skipped_total = Counter(
    "eventgraph_source_items_skipped_total",
    "Source CRDs or instances skipped during dynamic discovery",
    ["stage"],
)

build_duration_seconds = Histogram(
    "eventgraph_build_duration_seconds",
    "Wall-clock time spent constructing a graph",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
