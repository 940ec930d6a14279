"""Built-in sample dataset: a small UK-headed corporate group."""

from __future__ import annotations

from typing import Any

LIMITED = {"type": "Limited", "color": "#fbcfe8"}
SUBSIDIARY = {"type": "Subsidiary", "color": "#bfdbfe"}


def _stake(edge_id: str, target: str, pct: int) -> dict[str, Any]:
    return {
        "id": edge_id,
        "source": "1",
        "target": target,
        "label": f"{pct}%",
        "ownershipPercentage": pct,
    }


SAMPLE_DIAGRAM: dict[str, Any] = {
    "nodes": [
        {
            "id": "1",
            "label": "ICSA Software Group Limited",
            "type": "Group",
            "color": "#e2e8f0",
            "jurisdiction": "United Kingdom",
            "officers": ["Board of Directors"],
            "filingDueDate": "2026-12-31",
        },
        {
            "id": "2",
            "label": "ICSA Euro Ventures (Clone)",
            **SUBSIDIARY,
            "jurisdiction": "France",
            "officers": ["Jean Pierre"],
            "filingDueDate": "2026-06-30",
        },
        {
            "id": "3",
            "label": "ICSA Euro Ventures SA",
            **SUBSIDIARY,
            "jurisdiction": "France",
            "officers": ["Marie Curie"],
            "filingDueDate": "2026-06-30",
        },
        {
            "id": "4",
            "label": "ICSA Software (Northern Ireland) Limited",
            **LIMITED,
            "jurisdiction": "United Kingdom",
            "filingDueDate": "2026-09-30",
        },
        {
            "id": "5",
            "label": "ICSA Software Nominees Limited",
            **LIMITED,
            "jurisdiction": "United Kingdom",
            "filingDueDate": "2026-09-30",
        },
        {"id": "6", "label": "ICSA Land Limited", **LIMITED, "jurisdiction": "Ireland"},
        {
            "id": "7",
            "label": "ICSA Properties (Cheshire) Limited",
            **LIMITED,
            "jurisdiction": "United Kingdom",
        },
        {
            "id": "8",
            "label": "ICSA Properties (Halifax) Limited",
            **LIMITED,
            "jurisdiction": "United Kingdom",
        },
        {
            "id": "9",
            "label": "ICSA Properties (Hull) Limited",
            **LIMITED,
            "jurisdiction": "United Kingdom",
        },
    ],
    "edges": [
        _stake("e1", "2", 100),
        _stake("e2", "3", 100),
        _stake("e3", "4", 100),
        _stake("e4", "5", 100),
        _stake("e5", "6", 1),
        _stake("e6", "7", 50),
        _stake("e7", "8", 0),
        _stake("e8", "9", 0),
    ],
}


__all__ = ["SAMPLE_DIAGRAM"]
