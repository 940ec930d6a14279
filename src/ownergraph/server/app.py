"""ownergraph.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: all graph logic lives in DiagramStore. Routes
translate JSON to store calls and store results to JSON envelopes of the
form ``{"success": bool, ...}``.

State pattern:
    _state = {"store": store, "config": config, "started": time.time()}
"""

from __future__ import annotations

import time
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from ownergraph.graph.EntityNode import EntityNode
from ownergraph.graph.mutations import MutationOutcome, MutationResult
from ownergraph.graph.relations import OwnershipEdge
from ownergraph.graph.serialize import (
    serialize_diagram,
    serialize_edge,
    serialize_mutation_entry,
    serialize_node,
)
from ownergraph.graph.store import DiagramStore, LoadResult
from ownergraph.graph.validator import validate_edge_fields, validate_node_fields
from ownergraph.graph.views import ActiveFilters, ColoringMode, DataOverlay, ViewMode

_STATUS_CODES = {
    MutationOutcome.APPLIED: 200,
    MutationOutcome.NOOP: 200,
    MutationOutcome.NOT_FOUND: 404,
    MutationOutcome.DUPLICATE: 409,
    MutationOutcome.INVALID: 400,
}


def _mutation_response(result: MutationResult):
    body: dict[str, Any] = {
        "success": result.applied,
        "outcome": result.outcome.value,
        "message": result.message,
    }
    if result.entry is not None:
        body["mutation"] = serialize_mutation_entry(result.entry)
    if not result.applied and result.outcome is not MutationOutcome.NOOP:
        body["error"] = result.message
    return jsonify(body), _STATUS_CODES[result.outcome]


def _load_response(result: LoadResult):
    if result.success:
        return jsonify({"success": True, "message": result.message})
    return (
        jsonify(
            {
                "success": False,
                "error": result.message,
                "violations": [{"path": v.path, "message": v.message} for v in result.violations],
            }
        ),
        400,
    )


def _invalid(violations) -> tuple[Any, int]:
    return (
        jsonify(
            {
                "success": False,
                "error": "; ".join(str(v) for v in violations),
                "violations": [{"path": v.path, "message": v.message} for v in violations],
            }
        ),
        400,
    )


def _filters_to_json(filters: ActiveFilters) -> dict[str, str | None]:
    return {
        "region": filters.region,
        "type": filters.entity_type,
        "pillarTwoStatus": filters.pillar_two_status,
    }


def create_app(store: DiagramStore, config: dict[str, Any] | None = None) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        store: The DiagramStore to serve.
        config: ownergraph configuration dict.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    CORS(app)

    _state: dict[str, Any] = {
        "store": store,
        "config": config or {},
        "started": time.time(),
    }

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Counts, selection, view flags and sandbox state."""
        s: DiagramStore = _state["store"]
        last = s.mutation_log.last()
        return jsonify(
            {
                "node_count": s.node_count(),
                "edge_count": s.edge_count(),
                "selected_id": s.selected_id,
                "sandbox_active": s.sandbox_active,
                "revision": s.revision,
                "view_mode": s.view_mode.value,
                "coloring_mode": s.coloring_mode.value,
                "data_overlay": s.data_overlay.value,
                "mutation_count": len(s.mutation_log),
                "last_mutation": str(last) if last else None,
                "dangling_edges": [str(d) for d in s.dangling_edges()],
                "uptime": time.time() - _state["started"],
            }
        )

    @app.route("/api/diagram")
    def api_diagram():
        """GET /api/diagram - Canonical export (?filtered=true for the filtered view)."""
        s: DiagramStore = _state["store"]
        if request.args.get("filtered", "false").lower() == "true":
            return jsonify(serialize_diagram(s.filtered_nodes(), s.filtered_edges()))
        return jsonify(serialize_diagram(s.nodes, s.edges))

    @app.route("/api/nodes")
    def api_nodes():
        """GET /api/nodes - Node list.

        Query parameters:
            filtered: true to apply the active filters
            q: Case-insensitive search on label, id, jurisdiction
        """
        s: DiagramStore = _state["store"]
        filtered = request.args.get("filtered", "false").lower() == "true"
        nodes = s.filtered_nodes() if filtered else list(s.nodes)
        term = request.args.get("q", "")
        if term:
            matched = {n.id for n in s.search(term)}
            nodes = [n for n in nodes if n.id in matched]
        return jsonify([serialize_node(n) for n in nodes])

    @app.route("/api/edges")
    def api_edges():
        """GET /api/edges - Edge list (?filtered=true for the filtered view)."""
        s: DiagramStore = _state["store"]
        filtered = request.args.get("filtered", "false").lower() == "true"
        edges = s.filtered_edges() if filtered else s.edges
        return jsonify([serialize_edge(e) for e in edges])

    @app.route("/api/selection")
    def api_selection():
        """GET /api/selection - Selected node and highlighted path."""
        s: DiagramStore = _state["store"]
        node = s.selected_node()
        return jsonify(
            {
                "selected_id": s.selected_id,
                "node": serialize_node(node) if node else None,
                "highlighted": sorted(s.highlighted_path),
            }
        )

    @app.route("/api/legend")
    def api_legend():
        """GET /api/legend?mode=type|jurisdiction|status - Coloring legend."""
        s: DiagramStore = _state["store"]
        mode_name = request.args.get("mode")
        try:
            mode = ColoringMode(mode_name) if mode_name else None
        except ValueError:
            return jsonify({"success": False, "error": f"Unknown coloring mode: {mode_name}"}), 400
        return jsonify([{"label": e.label, "color": e.color} for e in s.legend(mode)])

    @app.route("/api/filters", methods=["GET"])
    def api_filters_get():
        """GET /api/filters - Active filter criteria."""
        return jsonify(_filters_to_json(_state["store"].filters))

    # ─────────────────────────────────────────────────────────────────
    # Load / mutation endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/load", methods=["POST"])
    def api_load():
        """POST /api/load - Replace the graph ({nodes, edges} or a flat list)."""
        data = request.get_json(force=True, silent=True)
        if data is None:
            return jsonify({"success": False, "error": "request body must be JSON"}), 400
        return _load_response(_state["store"].load(data))

    @app.route("/api/filters", methods=["PUT"])
    def api_filters_put():
        """PUT /api/filters - Replace the filter criteria."""
        data = request.get_json(force=True, silent=True) or {}
        filters = ActiveFilters(
            region=data.get("region") or None,
            entity_type=data.get("type") or None,
            pillar_two_status=data.get("pillarTwoStatus") or None,
        )
        _state["store"].set_filters(filters)
        return jsonify({"success": True, "filters": _filters_to_json(filters)})

    @app.route("/api/view", methods=["PUT"])
    def api_view_put():
        """PUT /api/view - Set any of view_mode, coloring_mode, data_overlay."""
        data = request.get_json(force=True, silent=True) or {}
        changes: dict[str, Any] = {}
        for key, enum_cls in (
            ("view_mode", ViewMode),
            ("coloring_mode", ColoringMode),
            ("data_overlay", DataOverlay),
        ):
            if data.get(key) is None:
                continue
            try:
                changes[key] = enum_cls(data[key])
            except ValueError:
                return jsonify({"success": False, "error": f"Unknown {key}: {data[key]}"}), 400
        s: DiagramStore = _state["store"]
        s.set_view(**changes)
        return jsonify(
            {
                "success": True,
                "view_mode": s.view_mode.value,
                "coloring_mode": s.coloring_mode.value,
                "data_overlay": s.data_overlay.value,
            }
        )

    @app.route("/api/nodes", methods=["POST"])
    def api_add_node():
        """POST /api/nodes - Add an entity."""
        values, violations = validate_node_fields(request.get_json(force=True, silent=True))
        if violations:
            return _invalid(violations)
        return _mutation_response(_state["store"].add_node(EntityNode(**values)))

    @app.route("/api/nodes/<node_id>", methods=["PATCH"])
    def api_update_node(node_id: str):
        """PATCH /api/nodes/<id> - Merge fields into an entity.

        Fields absent from the body are left alone; an explicit null clears
        an optional field (label and id cannot be cleared).
        """
        values, violations = validate_node_fields(
            request.get_json(force=True, silent=True), partial=True
        )
        if violations:
            return _invalid(violations)
        return _mutation_response(_state["store"].update_node(node_id, values))

    @app.route("/api/nodes/<node_id>", methods=["DELETE"])
    def api_remove_node(node_id: str):
        """DELETE /api/nodes/<id> - Remove an entity and its edges."""
        return _mutation_response(_state["store"].remove_node(node_id))

    @app.route("/api/edges", methods=["POST"])
    def api_add_edge():
        """POST /api/edges - Add an ownership edge."""
        values, violations = validate_edge_fields(request.get_json(force=True, silent=True))
        if violations:
            return _invalid(violations)
        return _mutation_response(_state["store"].add_edge(OwnershipEdge(**values)))

    @app.route("/api/edges/<edge_id>", methods=["DELETE"])
    def api_remove_edge(edge_id: str):
        """DELETE /api/edges/<id> - Remove an ownership edge."""
        return _mutation_response(_state["store"].remove_edge(edge_id))

    @app.route("/api/select", methods=["POST"])
    def api_select():
        """POST /api/select - {"node_id": "..."} or {"node_id": null} to clear."""
        data = request.get_json(force=True, silent=True) or {}
        node_id = data.get("node_id")
        if node_id is not None and not isinstance(node_id, str):
            return jsonify({"success": False, "error": "node_id must be a string or null"}), 400
        result = _state["store"].select_node(node_id)
        response, status = _mutation_response(result)
        if result.applied:
            body = response.get_json()
            body["highlighted"] = sorted(_state["store"].highlighted_path)
            return jsonify(body), status
        return response, status

    @app.route("/api/ownership/propagate", methods=["POST"])
    def api_propagate():
        """POST /api/ownership/propagate - Recompute effective ownership."""
        return _mutation_response(_state["store"].propagate_ownership())

    @app.route("/api/sandbox/<action>", methods=["POST"])
    def api_sandbox(action: str):
        """POST /api/sandbox/<start|commit|discard> - Sandbox transitions."""
        s: DiagramStore = _state["store"]
        handlers = {
            "start": s.start_sandbox,
            "commit": s.commit_sandbox,
            "discard": s.discard_sandbox,
        }
        if action not in handlers:
            return jsonify({"success": False, "error": f"Unknown action: {action}"}), 400
        response, status = _mutation_response(handlers[action]())
        body = response.get_json()
        body["sandbox_active"] = s.sandbox_active
        return jsonify(body), status

    @app.route("/api/mutate/undo", methods=["POST"])
    def api_mutate_undo():
        """POST /api/mutate/undo - Undo the most recent mutation."""
        return _mutation_response(_state["store"].undo_last())

    return app
