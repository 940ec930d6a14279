"""Shared pytest fixtures."""

import pytest


@pytest.fixture(autouse=True)
def _clear_env_overrides(monkeypatch):
    """Keep OWNERGRAPH_* variables from the host out of every test."""
    import os

    for name in list(os.environ):
        if name.startswith("OWNERGRAPH_"):
            monkeypatch.delenv(name)


@pytest.fixture
def chain_store():
    """Store holding A -> B (80%) -> C (50%) and an isolated D."""
    from tests.graph.store_test_helpers import chain_diagram, load_store

    return load_store(chain_diagram())


@pytest.fixture
def sample_store():
    """Store holding the built-in sample group."""
    from ownergraph.graph.sample import SAMPLE_DIAGRAM
    from tests.graph.store_test_helpers import load_store

    return load_store(SAMPLE_DIAGRAM)


@pytest.fixture
def empty_store():
    """Fresh store with no graph loaded."""
    from ownergraph.graph.store import DiagramStore

    return DiagramStore()
