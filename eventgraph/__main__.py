"""Entry point for `python -m eventgraph`.

Usage:
    EVENTGRAPH_NAMESPACES=default,team-a python -m eventgraph
"""

from __future__ import annotations

from eventgraph.app import run

run()
