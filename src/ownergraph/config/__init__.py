"""
ownergraph.config - Configuration loading and defaults

Configuration lives in ``.ownergraph.toml``, found by walking up from the
working directory. File values are deep-merged over DEFAULT_CONFIG, then
``OWNERGRAPH_<SECTION>_<KEY>`` environment variables are applied on top.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from ownergraph.errors import ConfigError

CONFIG_FILENAME = ".ownergraph.toml"
ENV_PREFIX = "OWNERGRAPH_"

DEFAULT_CONFIG: dict[str, Any] = {
    "diagram": {
        "load_sample": True,
        "source": "",
    },
    "ownership": {
        "on_cycle": "skip",
    },
    "compliance": {
        "due_soon_days": 30,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
    },
}


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML preserving formatting, for round-trip edits."""
    return tomlkit.parse(content)


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML into plain Python dicts, lists and scalars."""
    return parse_toml_document(content).unwrap()


def find_config_file(start: Path) -> Path | None:
    """Find .ownergraph.toml in ``start`` or any parent directory.

    Args:
        start: Directory to begin searching from.

    Returns:
        Path to the config file, or None if none exists up to the root.
    """
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value in override replaces
    the base value.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_env_value(raw: str) -> Any:
    """Interpret an environment value: JSON arrays/objects, booleans, ints.

    Anything that does not parse is returned unchanged as a string.
    """
    lowered = raw.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if raw[:1] in ("[", "{"):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    try:
        return int(raw)
    except ValueError:
        return raw


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply OWNERGRAPH_SECTION_KEY=value environment overrides.

    The first underscore-separated part after the prefix names the
    section; the rest, lowercased, is the key (OWNERGRAPH_SERVER_PORT ->
    server.port, OWNERGRAPH_COMPLIANCE_DUE_SOON_DAYS -> compliance.due_soon_days).
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not parts[1]:
            continue
        section, key = parts
        table = config.setdefault(section, {})
        if isinstance(table, dict):
            table[key] = _try_parse_env_value(raw)
    return config


def load_config(path: Path | None = None, start: Path | None = None) -> dict[str, Any]:
    """Load configuration.

    Args:
        path: Explicit config file. If None, search upward from ``start``
            (default: current directory); missing file means defaults.
        start: Directory to begin the search from.

    Returns:
        Merged configuration dict.

    Raises:
        ConfigError: If an explicit path is missing or any file fails to parse.
    """
    if path is None:
        path = find_config_file(start or Path.cwd())
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    user: dict[str, Any] = {}
    if path is not None:
        try:
            user = parse_toml(path.read_text(encoding="utf-8"))
        except ParseError as e:
            raise ConfigError(f"Cannot parse {path}: {e}", context={"path": str(path)}) from e

    return _apply_env_overrides(merge_configs(DEFAULT_CONFIG, user))


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "parse_toml",
    "parse_toml_document",
    "find_config_file",
    "merge_configs",
    "load_config",
]
