"""Tests for the ownergraph command-line interface."""

import json

import pytest

from ownergraph.cli import create_parser, main
from tests.graph.store_test_helpers import chain_diagram


@pytest.fixture
def chain_file(tmp_path):
    path = tmp_path / "chain.json"
    path.write_text(json.dumps(chain_diagram()))
    return path


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    """Run each command where no .ownergraph.toml can be found."""
    monkeypatch.chdir(tmp_path)


class TestParser:
    def test_subcommands(self):
        parser = create_parser()

        args = parser.parse_args(["trace", "d.json", "7"])

        assert args.command == "trace"
        assert args.node_id == "7"

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage: ownergraph" in capsys.readouterr().out


class TestValidateCommand:
    def test_valid_diagram(self, chain_file, capsys):
        assert main(["validate", str(chain_file)]) == 0
        assert "valid diagram (4 entities)" in capsys.readouterr().out

    def test_valid_entity_list(self, tmp_path, capsys):
        path = tmp_path / "flat.json"
        path.write_text(json.dumps([{"id": "H"}, {"id": "S", "parentId": "H"}]))

        assert main(["validate", str(path)]) == 0
        assert "valid entity list (2 entities)" in capsys.readouterr().out

    def test_invalid_diagram(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"nodes": [{"id": "A"}], "edges": []}))

        assert main(["validate", str(path)]) == 1
        assert "nodes[0].label: is required" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["validate", str(tmp_path / "nope.json")]) == 1
        assert capsys.readouterr().err.startswith("Error: Cannot read")


class TestExportCommand:
    def test_export_sample(self, capsys):
        assert main(["export"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert len(data["nodes"]) == 9

    def test_export_to_file(self, chain_file, tmp_path):
        out = tmp_path / "out.json"

        assert main(["export", str(chain_file), "-o", str(out)]) == 0
        assert json.loads(out.read_text()) == json.loads(json.dumps(chain_diagram()))


class TestTraceCommand:
    def test_trace(self, chain_file, capsys):
        assert main(["trace", str(chain_file), "C"]) == 0

        out = capsys.readouterr().out
        assert "node  A  Holdco" in out
        assert "edge  B-C  B -> C  50%" in out
        assert "Standalone" not in out

    def test_trace_unknown(self, chain_file, capsys):
        assert main(["trace", str(chain_file), "ghost"]) == 1
        assert "ghost" in capsys.readouterr().err


class TestOwnershipCommand:
    def test_ownership_table(self, chain_file, capsys):
        assert main(["ownership", str(chain_file)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[2].split() == ["C", "40%", "Opco"]

    def test_reject_policy_from_config(self, tmp_path, capsys):
        config = tmp_path / "cfg.toml"
        config.write_text('[ownership]\non_cycle = "reject"\n')
        path = tmp_path / "cycle.json"
        path.write_text(
            json.dumps(
                {
                    "nodes": [{"id": "A", "label": "A"}, {"id": "B", "label": "B"}],
                    "edges": [
                        {"id": "ab", "source": "A", "target": "B", "ownershipPercentage": 50},
                        {"id": "ba", "source": "B", "target": "A", "ownershipPercentage": 50},
                    ],
                }
            )
        )

        assert main(["--config", str(config), "ownership", str(path)]) == 1
        assert "Ownership cycle detected" in capsys.readouterr().err


class TestVersionCommand:
    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert capsys.readouterr().out.startswith("ownergraph ")
