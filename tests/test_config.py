"""Tests for configuration loading: TOML files, defaults and env overrides."""

from __future__ import annotations

import pytest

from ownergraph.config import (
    CONFIG_FILENAME,
    DEFAULT_CONFIG,
    _try_parse_env_value,
    find_config_file,
    load_config,
    merge_configs,
    parse_toml,
    parse_toml_document,
)
from ownergraph.errors import ConfigError


class TestParseToml:
    def test_unwraps_to_plain_types(self):
        data = parse_toml('[server]\nport = 8080\nhost = "0.0.0.0"\n')

        assert data == {"server": {"port": 8080, "host": "0.0.0.0"}}
        assert type(data["server"]) is dict

    def test_document_preserves_comments(self):
        doc = parse_toml_document("# keep me\n[ownership]\non_cycle = \"reject\"\n")

        doc["ownership"]["on_cycle"] = "skip"

        assert "# keep me" in doc.as_string()


class TestMergeConfigs:
    def test_nested_tables_merge_key_by_key(self):
        merged = merge_configs(DEFAULT_CONFIG, {"server": {"port": 9000}})

        assert merged["server"] == {"host": "127.0.0.1", "port": 9000}
        assert DEFAULT_CONFIG["server"]["port"] == 5050

    def test_scalar_replaces_table(self):
        assert merge_configs({"a": {"b": 1}}, {"a": 2}) == {"a": 2}


class TestFindConfigFile:
    def test_walks_up_to_parent(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_none_when_absent(self, tmp_path):
        nested = tmp_path / "empty"
        nested.mkdir()

        found = find_config_file(nested)

        assert found is None or not str(found).startswith(str(tmp_path))


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path):
        config = load_config(start=tmp_path)

        assert config["ownership"]["on_cycle"] == "skip"
        assert config["compliance"]["due_soon_days"] == 30

    def test_file_values_override_defaults(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text('[ownership]\non_cycle = "reject"\n\n[compliance]\ndue_soon_days = 14\n')

        config = load_config(path)

        assert config["ownership"]["on_cycle"] == "reject"
        assert config["compliance"]["due_soon_days"] == 14
        assert config["server"]["port"] == 5050

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.toml")

    def test_parse_error_is_config_error(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[server\nport = \n")

        with pytest.raises(ConfigError, match="Cannot parse"):
            load_config(path)

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OWNERGRAPH_SERVER_PORT", "6060")
        monkeypatch.setenv("OWNERGRAPH_COMPLIANCE_DUE_SOON_DAYS", "10")
        monkeypatch.setenv("OWNERGRAPH_DIAGRAM_LOAD_SAMPLE", "false")

        config = load_config(start=tmp_path)

        assert config["server"]["port"] == 6060
        assert config["compliance"]["due_soon_days"] == 10
        assert config["diagram"]["load_sample"] is False


class TestTryParseEnvValue:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("TRUE", True),
            ("false", False),
            ("42", 42),
            ('["a", "b"]', ["a", "b"]),
            ('{"k": 1}', {"k": 1}),
            ("[broken", "[broken"),
            ("reject", "reject"),
        ],
    )
    def test_values(self, raw, expected):
        assert _try_parse_env_value(raw) == expected
