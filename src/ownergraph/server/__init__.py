"""ownergraph.server - Flask REST API server for the diagram editor.

Provides a thin REST wrapper over DiagramStore, exposing the ownership
graph and its mutation operations via HTTP endpoints for the
interactive editor UI.
"""

from ownergraph.server.app import create_app

__all__ = ["create_app"]
