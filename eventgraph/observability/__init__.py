"""Logging and metrics for eventgraph."""
