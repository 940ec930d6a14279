"""
ownergraph.cli - Command-line interface.

Thin wrapper over DiagramStore for validating, inspecting and serving
ownership diagrams.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ownergraph import __version__
from ownergraph.config import load_config
from ownergraph.errors import OwnergraphError
from ownergraph.graph.factory import build_store, read_payload
from ownergraph.graph.store import DiagramStore
from ownergraph.graph.validator import validate_diagram, validate_entity_list
from ownergraph.logging_utils import configure_logging, get_user_message

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ownergraph",
        description="Entity-ownership diagram engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ownergraph validate group.json         # Check a diagram or entity list
  ownergraph export group.json -o out.json
  ownergraph ownership entities.json     # Effective ownership per entity
  ownergraph trace group.json 7          # Ancestor path of entity 7
  ownergraph serve --port 5050           # REST API for the editor UI

Configuration:
  .ownergraph.toml in the working directory or any parent
  OWNERGRAPH_<SECTION>_<KEY> environment variables override file values
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ownergraph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (debug logging, tracebacks)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate_parser = subparsers.add_parser("validate", help="Validate a diagram JSON file")
    validate_parser.add_argument("file", type=Path, help="Diagram or flat entity list (JSON)")

    export_parser = subparsers.add_parser(
        "export", help="Print the canonical JSON form (sample data if no file)"
    )
    export_parser.add_argument("file", type=Path, nargs="?", help="Diagram or entity list")
    export_parser.add_argument("-o", "--output", type=Path, help="Write to file instead of stdout")

    trace_parser = subparsers.add_parser("trace", help="Show the ancestor path of an entity")
    trace_parser.add_argument("file", type=Path, help="Diagram or flat entity list (JSON)")
    trace_parser.add_argument("node_id", help="Entity id to trace from")

    ownership_parser = subparsers.add_parser(
        "ownership", help="Compute effective ownership for every entity"
    )
    ownership_parser.add_argument("file", type=Path, help="Diagram or flat entity list (JSON)")

    serve_parser = subparsers.add_parser("serve", help="Start the REST API server")
    serve_parser.add_argument("file", type=Path, nargs="?", help="Initial diagram to load")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    subparsers.add_parser("version", help="Show version")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install ownergraph[completion]
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.command == "version":
            print(f"ownergraph {__version__}")
            return 0

        config = load_config(args.config)

        if args.command == "validate":
            return validate_command(args)
        elif args.command == "export":
            return export_command(args, config)
        elif args.command == "trace":
            return trace_command(args, config)
        elif args.command == "ownership":
            return ownership_command(args, config)
        elif args.command == "serve":
            return serve_command(args, config)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except OwnergraphError as e:
        logger.debug(e.log_message())
        if args.verbose:
            raise
        print(f"Error: {get_user_message(e)}", file=sys.stderr)
        return 1


def validate_command(args: argparse.Namespace) -> int:
    """Validate a file without loading it into a store."""
    payload = read_payload(args.file)
    if isinstance(payload, list):
        result = validate_entity_list(payload)
        kind = "entity list"
        count = len(result.entities)
    else:
        result = validate_diagram(payload)
        kind = "diagram"
        count = len(result.nodes)

    if not result.ok:
        print(result.summary(), file=sys.stderr)
        return 1
    print(f"{args.file}: valid {kind} ({count} entities)")
    return 0


def export_command(args: argparse.Namespace, config: dict) -> int:
    if args.file is None:
        config = {**config, "diagram": {**config.get("diagram", {}), "load_sample": True}}
    store = build_store(config, source=args.file)
    text = store.export_diagram()
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {store.node_count()} entities to {args.output}")
    else:
        print(text)
    return 0


def trace_command(args: argparse.Namespace, config: dict) -> int:
    store = build_store(config, source=args.file)
    if not store.select_node(args.node_id):
        print(f"Error: entity '{args.node_id}' not found", file=sys.stderr)
        return 1

    for node in store.nodes:
        if node.id in store.highlighted_path:
            print(f"node  {node.id}  {node.label}")
    for edge in store.edges:
        if edge.id in store.highlighted_path:
            print(f"edge  {edge.id}  {edge.source} -> {edge.target}  {edge.label or ''}".rstrip())
    return 0


def ownership_command(args: argparse.Namespace, config: dict) -> int:
    store = build_store(config, source=args.file)
    result = store.propagate_ownership()
    if not result:
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    width = max((len(n.id) for n in store.nodes), default=2)
    for node in store.nodes:
        pct = "-" if node.effective_ownership is None else f"{node.effective_ownership:g}%"
        print(f"{node.id:<{width}}  {pct:>8}  {node.label}")
    return 0


def serve_command(args: argparse.Namespace, config: dict) -> int:
    from ownergraph.server import create_app

    store: DiagramStore = build_store(config, source=args.file)
    server_cfg = config.get("server", {})
    host = args.host or server_cfg.get("host", "127.0.0.1")
    port = args.port or int(server_cfg.get("port", 5050))

    app = create_app(store, config)
    print(f"Serving {store.node_count()} entities on http://{host}:{port}", file=sys.stderr)
    app.run(host=host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
