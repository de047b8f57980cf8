"""Application bootstrap for eventgraph.

Startup order: config -> logging -> K8s client -> graph construction.
The graph is built once, summarised in the log, and the process exits.
"""

from __future__ import annotations

import asyncio
import sys

from eventgraph import __version__
from eventgraph.config import load_config
from eventgraph.graph import ConstructorConfig, Graph, GraphConstructionError, construct_graph
from eventgraph.models.config import EventGraphConfig, KubeConfig
from eventgraph.observability.logging import get_logger, setup_logging


async def load_kube_client_config(kube: KubeConfig) -> str:
    """Configure kubernetes-asyncio from in-cluster config or kubeconfig.

    Returns where the configuration came from, for logging.
    """
    # Imported lazily so that importing eventgraph never touches cluster config.
    import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

    if kube.in_cluster:
        try:
            # load_incluster_config() is synchronous in kubernetes-asyncio
            k8s_config.load_incluster_config()
            return "in-cluster"
        except k8s_config.ConfigException:
            pass
    # load_kube_config() is async in kubernetes-asyncio
    await k8s_config.load_kube_config(context=kube.context or None)
    return "kubeconfig"


async def build_graph(config: EventGraphConfig) -> Graph:
    """Build a graph for ``config.namespaces`` using the configured cluster."""
    from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

    async with k8s_client.ApiClient() as api_client:
        api = k8s_client.CustomObjectsApi(api_client)
        return await construct_graph(ConstructorConfig(namespaces=list(config.namespaces)), api)


async def main() -> int:
    """Run one construction pass; the exit status reflects the outcome."""
    config = load_config()
    setup_logging(config.log.level, config.log.format)
    log = get_logger("app")
    log.info("eventgraph starting", version=__version__, namespaces=config.namespaces)

    try:
        origin = await load_kube_client_config(config.kube)
    except Exception as exc:
        log.error("k8s client configuration failed", error=str(exc))
        return 2
    log.info("k8s client configured", origin=origin)

    try:
        graph = await build_graph(config)
    except GraphConstructionError as exc:
        log.error("eventgraph failed", error=str(exc), kind=exc.kind, namespace=exc.namespace)
        return 1

    for vertex in graph.vertices:
        log.debug(
            "vertex",
            destination=str(vertex.key),
            out_edges=[str(edge.to_vertex.key) for edge in vertex.out_edges],
        )
    log.info("eventgraph finished", **graph.summary())
    return 0


def run() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))
