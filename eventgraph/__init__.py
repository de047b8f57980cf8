"""eventgraph: event topology graph builder for Knative-style eventing resources."""

__version__ = "0.1.0"
