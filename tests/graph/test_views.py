"""Tests for derived views: compliance status, colors and legend."""

from datetime import date

import pytest

from ownergraph.graph.EntityNode import EntityNode
from ownergraph.graph.views import (
    ActiveFilters,
    ColoringMode,
    ComplianceStatus,
    compliance_status,
    jurisdiction_color,
    legend,
    type_color,
)

TODAY = date(2026, 5, 1)


class TestComplianceStatus:
    @pytest.mark.parametrize(
        "due, expected",
        [
            (None, ComplianceStatus.NOT_APPLICABLE),
            (date(2026, 4, 30), ComplianceStatus.OVERDUE),
            (date(2026, 5, 1), ComplianceStatus.DUE_SOON),
            (date(2026, 5, 31), ComplianceStatus.DUE_SOON),
            (date(2026, 6, 1), ComplianceStatus.GOOD_STANDING),
        ],
    )
    def test_thresholds(self, due, expected):
        node = EntityNode(id="X", filing_due_date=due)

        assert compliance_status(node, today=TODAY) is expected

    def test_custom_window(self):
        node = EntityNode(id="X", filing_due_date=date(2026, 5, 20))

        assert compliance_status(node, today=TODAY, due_soon_days=7) is ComplianceStatus.GOOD_STANDING

    def test_labels_and_colors(self):
        assert ComplianceStatus.OVERDUE.label == "Overdue"
        assert ComplianceStatus.GOOD_STANDING.color == "#10b981"


class TestColors:
    @pytest.mark.parametrize(
        "entity_type, color",
        [
            ("Group", "#1e40af"),
            ("Holding Company", "#1e40af"),
            ("Subsidiary", "#059669"),
            ("Family Trust", "#7c3aed"),
            ("Limited", "#be185d"),
            ("Branch", "#d97706"),
            ("Shell", "#4b5563"),
        ],
    )
    def test_type_color(self, entity_type, color):
        assert type_color(EntityNode(id="X", entity_type=entity_type)) == color

    def test_type_color_falls_back_to_node_color(self):
        assert type_color(EntityNode(id="X", entity_type="LLP", color="#123456")) == "#123456"
        assert type_color(EntityNode(id="X")) == "#94a3b8"

    def test_jurisdiction_color(self):
        assert jurisdiction_color(EntityNode(id="X", jurisdiction="France")) == "#bfdbfe"
        assert jurisdiction_color(EntityNode(id="X", jurisdiction="Malta")) == "#e2e8f0"


class TestLegend:
    def test_unique_labels_first_color_wins(self):
        nodes = [
            EntityNode(id="1", entity_type="Shell Co", color="#000000"),
            EntityNode(id="2", entity_type="Shell Co"),
            EntityNode(id="3"),
        ]

        entries = legend(nodes, ColoringMode.TYPE)

        assert [(e.label, e.color) for e in entries] == [
            ("Shell Co", "#4b5563"),
            ("Unknown", "#94a3b8"),
        ]

    def test_jurisdiction_legend(self, sample_store):
        entries = legend(list(sample_store.nodes), ColoringMode.JURISDICTION)

        assert [e.label for e in entries] == ["United Kingdom", "France", "Ireland"]


class TestActiveFilters:
    def test_matches_every_set_criterion(self):
        node = EntityNode(id="X", region="EMEA", entity_type="Limited", pillar_two_status="In Scope")

        assert ActiveFilters().matches(node)
        assert ActiveFilters(region="EMEA", pillar_two_status="In Scope").matches(node)
        assert not ActiveFilters(region="EMEA", entity_type="Trust").matches(node)
