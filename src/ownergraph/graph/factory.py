"""Store factory - Build a DiagramStore from configuration.

Every entry point (CLI commands, the REST server) constructs its store
here so that config handling stays in one place.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ownergraph.errors import ConfigError, DiagramValidationError
from ownergraph.graph.ownership import CYCLE_POLICIES
from ownergraph.graph.sample import SAMPLE_DIAGRAM
from ownergraph.graph.store import DiagramStore


def read_payload(path: Path) -> Any:
    """Read a JSON diagram or flat entity list from disk.

    Raises:
        ConfigError: If the file cannot be read or is not valid JSON.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", context={"path": str(path)}) from e
    except json.JSONDecodeError as e:
        raise ConfigError(
            f"{path} is not valid JSON (line {e.lineno}, column {e.colno}): {e.msg}",
            context={"path": str(path)},
        ) from e


def build_store(
    config: dict[str, Any] | None = None,
    source: Path | None = None,
) -> DiagramStore:
    """Create a store and populate it.

    Args:
        config: Configuration dict (see ownergraph.config.DEFAULT_CONFIG).
        source: JSON file to load. Overrides ``diagram.source``.

    Returns:
        A DiagramStore holding the file's graph, the sample graph when
        ``diagram.load_sample`` is set, or nothing.

    Raises:
        ConfigError: For an unknown cycle policy or an unreadable file.
        DiagramValidationError: If the file's payload is rejected.
    """
    config = config or {}
    diagram_cfg = config.get("diagram", {})
    on_cycle = config.get("ownership", {}).get("on_cycle", "skip")
    if on_cycle not in CYCLE_POLICIES:
        raise ConfigError(
            f"ownership.on_cycle must be one of {', '.join(CYCLE_POLICIES)}, got {on_cycle!r}"
        )

    store = DiagramStore(
        on_cycle=on_cycle,
        due_soon_days=int(config.get("compliance", {}).get("due_soon_days", 30)),
    )

    if source is None and diagram_cfg.get("source"):
        source = Path(diagram_cfg["source"])

    if source is not None:
        result = store.load(read_payload(source))
        if not result.success:
            if result.violations:
                raise DiagramValidationError(result.violations, source=str(source))
            raise ConfigError(result.message, context={"path": str(source)})
    elif diagram_cfg.get("load_sample", True):
        store.load_diagram(SAMPLE_DIAGRAM)

    return store


__all__ = ["read_payload", "build_store"]
