"""Tests for payload validation (diagram form and flat entity list form)."""

from datetime import date

import pytest

from ownergraph.errors import DiagramValidationError
from ownergraph.graph.EntityNode import NODE_FIELDS, EntityNode, EntityStatus
from ownergraph.graph.relations import EDGE_FIELDS, OwnershipEdge
from ownergraph.graph.validator import (
    check_record,
    validate_attributes,
    validate_diagram,
    validate_edge_fields,
    validate_entity_list,
    validate_node_fields,
)
from tests.graph.store_test_helpers import chain_diagram, diagram, edge, node


def _paths(result):
    return [v.path for v in result.violations]


class TestValidateDiagram:
    """Tests for validate_diagram()."""

    def test_valid_payload_yields_typed_records(self):
        result = validate_diagram(chain_diagram())

        assert result.ok
        assert [n.id for n in result.nodes] == ["A", "B", "C", "D"]
        assert [e.id for e in result.edges] == ["A-B", "B-C"]
        assert result.edges[0].ownership_percentage == 80.0

    def test_non_object_payload(self):
        result = validate_diagram([1, 2])

        assert not result.ok
        assert _paths(result) == ["$"]

    def test_missing_sections(self):
        result = validate_diagram({"nodes": "nope"})

        assert _paths(result) == ["nodes", "edges"]

    def test_every_violation_is_reported(self):
        """Two bad nodes and one bad edge are all named."""
        payload = diagram(
            [
                {"id": "A"},
                {"id": "B", "label": "B", "citRate": "high"},
                node("C"),
            ],
            [{"id": "e1", "source": "C"}],
        )

        result = validate_diagram(payload)

        assert _paths(result) == [
            "nodes[0].label",
            "nodes[1].citRate",
            "edges[0].target",
        ]
        assert result.nodes == []
        assert result.edges == []

    def test_wrong_types_are_rejected(self):
        payload = diagram(
            [
                node("A", officers=["x", 3]),
                node("B", isDraft="yes"),
                node("C", filingDueDate="31/12/2026"),
                node("D", status="Dormant"),
                node("E", citRate=True),
            ]
        )

        result = validate_diagram(payload)

        assert _paths(result) == [
            "nodes[0].officers",
            "nodes[1].isDraft",
            "nodes[2].filingDueDate",
            "nodes[3].status",
            "nodes[4].citRate",
        ]

    def test_duplicate_ids(self):
        payload = diagram(
            [node("A"), node("B"), node("A")],
            [edge("A", "B", edge_id="e1"), edge("B", "A", edge_id="e1")],
        )

        result = validate_diagram(payload)

        assert "nodes[2].id" in _paths(result)
        assert "edges[1].id" in _paths(result)

    def test_unknown_edge_endpoint(self):
        result = validate_diagram(diagram([node("A")], [edge("A", "Z")]))

        assert _paths(result) == ["edges[0].target"]
        assert "unknown node 'Z'" in result.violations[0].message

    def test_values_are_normalized(self):
        payload = diagram(
            [
                node(
                    "A",
                    filingDueDate="2026-12-31",
                    status="Liquidation",
                    citRate=25,
                    officers=["Board"],
                )
            ]
        )

        result = validate_diagram(payload)

        a = result.nodes[0]
        assert a.filing_due_date == date(2026, 12, 31)
        assert a.status is EntityStatus.LIQUIDATION
        assert a.cit_rate == 25.0
        assert a.officers == ["Board"]

    def test_datetime_string_is_accepted_as_date(self):
        result = validate_diagram(diagram([node("A", filingDueDate="2026-12-31T00:00:00")]))

        assert result.nodes[0].filing_due_date == date(2026, 12, 31)

    def test_unknown_keys_are_dropped(self):
        result = validate_diagram(diagram([node("A", position={"x": 1})]))

        assert result.ok
        assert not hasattr(result.nodes[0], "position")

    def test_null_optional_field_is_absent(self):
        result = validate_diagram(diagram([node("A", jurisdiction=None)]))

        assert result.ok
        assert result.nodes[0].jurisdiction is None

    def test_empty_diagram_is_valid(self):
        assert validate_diagram(diagram([])).ok

    def test_summary_lists_each_problem(self):
        result = validate_diagram(diagram([{"id": "A"}]))

        lines = result.summary().splitlines()
        assert lines[0] == "Invalid diagram: 1 problem(s)"
        assert lines[1] == "  nodes[0].label: is required"

    def test_raise_for_violations(self):
        result = validate_diagram(diagram([{"id": "A"}]))

        with pytest.raises(DiagramValidationError) as exc_info:
            result.raise_for_violations(source="group.json")

        assert "group.json" in str(exc_info.value)
        assert exc_info.value.violations == result.violations


class TestValidateEntityList:
    """Tests for validate_entity_list()."""

    def test_flat_records(self):
        records = [
            {"id": "P"},
            {"id": "C", "label": "Child", "parentId": "P", "ownershipPercentage": 60},
        ]

        result = validate_entity_list(records)

        assert result.ok
        parent, child = result.entities
        assert parent.node.label == "P"
        assert parent.parent_id is None
        assert child.parent_id == "P"
        assert child.ownership_percentage == 60.0

    def test_not_a_list(self):
        result = validate_entity_list({"nodes": []})

        assert _paths(result) == ["$"]

    def test_non_object_record(self):
        result = validate_entity_list([{"id": "A"}, "B"])

        assert _paths(result) == ["[1]"]

    def test_unknown_parent(self):
        result = validate_entity_list([{"id": "A"}, {"id": "B", "parentId": "Z"}])

        assert _paths(result) == ["[1].parentId"]

    def test_bad_percentage_type(self):
        result = validate_entity_list([{"id": "A"}, {"id": "B", "parentId": "A", "ownershipPercentage": "50"}])

        assert _paths(result) == ["[1].ownershipPercentage"]

    def test_duplicate_ids(self):
        result = validate_entity_list([{"id": "A"}, {"id": "A"}])

        assert _paths(result) == ["[1].id"]


class TestFieldValidators:
    """Tests for the single-record validators used by the REST layer."""

    def test_partial_node_patch_skips_required(self):
        values, violations = validate_node_fields({"jurisdiction": "France"}, partial=True)

        assert violations == []
        assert values == {"jurisdiction": "France"}

    def test_partial_null_clears_optional_field(self):
        values, violations = validate_node_fields({"jurisdiction": None, "officers": None}, partial=True)

        assert violations == []
        assert values == {"jurisdiction": None, "officers": []}

    def test_partial_null_label_is_rejected(self):
        _, violations = validate_node_fields({"label": None}, partial=True)

        assert [v.path for v in violations] == ["node.label"]

    def test_full_node_requires_id_and_label(self):
        _, violations = validate_node_fields({})

        assert [v.path for v in violations] == ["node.id", "node.label"]

    def test_node_not_an_object(self):
        _, violations = validate_node_fields(None)

        assert violations[0].path == "node"

    def test_edge_fields(self):
        values, violations = validate_edge_fields(edge("A", "B", 25))

        assert violations == []
        assert values["ownership_percentage"] == 25.0
        assert values["label"] == "25%"


class TestAttributeValidators:
    """Tests for the attribute-keyed checks used by DiagramStore mutators."""

    def test_values_are_coerced(self):
        values, violations = validate_attributes(
            {"cit_rate": 12, "filing_due_date": "2025-06-30", "status": "Liquidation"},
            NODE_FIELDS,
            "node",
        )

        assert violations == []
        assert values == {
            "cit_rate": 12.0,
            "filing_due_date": date(2025, 6, 30),
            "status": EntityStatus.LIQUIDATION,
        }

    def test_paths_use_wire_names(self):
        _, violations = validate_attributes(
            {"cit_rate": "abc", "tax_id": 7, "colour": "red"}, NODE_FIELDS, "nodes[C]"
        )

        assert [str(v) for v in violations] == [
            "nodes[C].citRate: expected a number, got 'abc'",
            "nodes[C].taxId: expected a string, got 7",
            "nodes[C].colour: unknown field",
        ]

    def test_check_record_normalizes_in_place(self):
        node = EntityNode(id="X", cit_rate=10, filing_due_date="2026-01-15")

        assert check_record(node, NODE_FIELDS, "node") == []
        assert node.cit_rate == 10.0
        assert node.filing_due_date == date(2026, 1, 15)

    def test_check_record_leaves_bad_record_alone(self):
        record = OwnershipEdge(id="e", source="A", target="B", ownership_percentage="50", is_draft="yes")

        violations = check_record(record, EDGE_FIELDS, "edge")

        assert [v.path for v in violations] == ["edge.ownershipPercentage", "edge.isDraft"]
        assert record.ownership_percentage == "50"
