"""Tests for sandbox start / commit / discard."""

from ownergraph.graph import EntityNode, MutationOutcome, OwnershipEdge
from ownergraph.graph.sandbox import SandboxSession, SandboxState


class TestSandboxSession:
    """Tests for the SandboxSession state machine."""

    def test_starts_live(self):
        session = SandboxSession()

        assert session.state is SandboxState.LIVE
        assert session.snapshot is None

    def test_snapshot_is_independent(self):
        nodes = [EntityNode(id="A")]
        session = SandboxSession()

        assert session.start(nodes, [])
        nodes[0].label = "Changed"

        assert session.snapshot.nodes[0].label == "A"

    def test_misuse_returns_false(self):
        session = SandboxSession()

        assert not session.commit([], [])
        assert session.discard() is None
        assert session.start([], [])
        assert not session.start([], [])


class TestStoreSandbox:
    """Sandbox transitions through DiagramStore."""

    def test_discard_restores_exact_state(self, chain_store):
        chain_store.select_node("C")
        before = chain_store.export_diagram()
        chain_store.start_sandbox()

        chain_store.add_node(EntityNode(id="N", label="Draft Co"))
        chain_store.add_edge(OwnershipEdge(id="A-N", source="A", target="N", ownership_percentage=20))
        chain_store.update_node("A", label="Renamed")
        chain_store.remove_node("B")
        chain_store.propagate_ownership()
        result = chain_store.discard_sandbox()

        assert result.applied
        assert not chain_store.sandbox_active
        assert chain_store.export_diagram() == before
        assert chain_store.selected_id == "C"
        assert chain_store.highlighted_path == frozenset({"C", "B-C", "B", "A-B", "A"})
        assert len(chain_store.mutation_log) == 0

    def test_discard_clears_selection_of_draft_node(self, chain_store):
        chain_store.start_sandbox()
        chain_store.add_node(EntityNode(id="N"))
        chain_store.select_node("N")

        chain_store.discard_sandbox()

        assert chain_store.selected_id is None
        assert chain_store.highlighted_path == frozenset()

    def test_edits_in_sandbox_are_drafts(self, chain_store):
        chain_store.start_sandbox()

        chain_store.add_node(EntityNode(id="N"))
        chain_store.add_edge(OwnershipEdge(id="A-N", source="A", target="N"))

        assert chain_store.find_node("N").is_draft is True
        assert chain_store.find_edge("A-N").is_draft is True

    def test_commit_keeps_edits_and_clears_drafts(self, chain_store):
        chain_store.start_sandbox()
        chain_store.add_node(EntityNode(id="N"))
        chain_store.add_edge(OwnershipEdge(id="A-N", source="A", target="N"))

        result = chain_store.commit_sandbox()

        assert result.applied
        assert not chain_store.sandbox_active
        assert chain_store.find_node("N") is not None
        assert all(n.is_draft is False for n in chain_store.nodes)
        assert all(e.is_draft is False for e in chain_store.edges)

    def test_commit_then_discard_is_noop(self, chain_store):
        chain_store.start_sandbox()
        chain_store.add_node(EntityNode(id="N"))
        chain_store.commit_sandbox()

        result = chain_store.discard_sandbox()

        assert result.outcome is MutationOutcome.NOOP
        assert chain_store.find_node("N") is not None

    def test_double_start_keeps_first_snapshot(self, chain_store):
        before = chain_store.export_diagram()
        chain_store.start_sandbox()
        chain_store.remove_node("D")

        assert chain_store.start_sandbox().outcome is MutationOutcome.NOOP

        chain_store.discard_sandbox()
        assert chain_store.export_diagram() == before

    def test_commit_while_live_is_noop(self, chain_store):
        before = chain_store.export_diagram()

        assert chain_store.commit_sandbox().outcome is MutationOutcome.NOOP
        assert chain_store.export_diagram() == before

    def test_undo_stops_at_sandbox_start(self, chain_store):
        chain_store.update_node("A", label="Live edit")
        chain_store.start_sandbox()
        chain_store.update_node("A", label="Sandbox edit")

        assert chain_store.undo_last().applied
        assert chain_store.find_node("A").label == "Live edit"
        assert chain_store.undo_last().outcome is MutationOutcome.NOOP
        assert chain_store.find_node("A").label == "Live edit"
