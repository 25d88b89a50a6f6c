"""Tests for UserConfig loading and precedence."""

import logging
from pathlib import Path

import pytest

from crashsync.config import UserConfig, create_user_config
from crashsync.core.errors import ConfigError


class TestUserConfigDefaults:
    """Test defaults when no config file exists."""

    def test_defaults(self):
        config = UserConfig()

        assert config.symbol_cache.enabled is False
        assert config.symbol_cache.cache_root_path is None
        assert config.symbol_cache.max_age_days == 14
        assert config.symbol_cache.max_cache_size_gb == 128
        assert config.symbol_cache.min_free_space_gb == 64
        assert config.source_control.provider == "perforce"
        assert config.source_control.depot_root is None
        assert config.get_source("symbol_cache.max_age_days") == "default"
        assert config.get_log_level_int() == logging.WARNING

    def test_default_layouts(self):
        layouts = UserConfig().source_control.distribution_layouts

        assert [layout.name for layout in layouts] == ["primary", "installed", "launcher"]
        assert layouts[1].symbol_dir == "Rocket/Symbols"


class TestUserConfigFile:
    """Test loading YAML config files."""

    def test_loads_cli_config_file(self, write_config, tmp_path):
        path = write_config(
            {
                "log_level": "info",
                "symbol_cache": {
                    "enabled": True,
                    "cache_root_path": str(tmp_path / "cache"),
                    "max_age_days": 7,
                },
                "source_control": {
                    "branch_name": "UE4-Releases/4.2",
                    "label_pattern": "Rocket-CL-%CHANGELISTNUMBER%",
                    "changelist_labels": {2082666: "Rocket-CL-2082666"},
                },
            }
        )

        config = create_user_config(cli_config_path=path)

        assert config.config_path == path.resolve()
        assert config.symbol_cache.enabled is True
        assert config.symbol_cache.cache_root_path == (tmp_path / "cache").resolve()
        assert config.symbol_cache.max_age_days == 7
        assert config.source_control.depot_root == "//depot/UE4-Releases/4.2"
        assert config.source_control.changelist_labels == {2082666: "Rocket-CL-2082666"}
        assert config.get("source_control.label_pattern") == "Rocket-CL-%CHANGELISTNUMBER%"
        assert config.get("symbol_cache.missing", "fallback") == "fallback"
        assert config.get_source("symbol_cache.max_age_days") == path.name
        assert config.get_log_level_int() == logging.INFO

    def test_finds_config_in_current_directory(self, tmp_path):
        (tmp_path / "crashsync.yaml").write_text("symbol_cache:\n  max_age_days: 3\n")

        config = UserConfig()

        assert config.symbol_cache.max_age_days == 3
        assert config.config_path.resolve() == (tmp_path / "crashsync.yaml").resolve()

    def test_finds_config_in_xdg_directory(self, tmp_path):
        xdg_dir = tmp_path / "xdg_config" / "crashsync"
        xdg_dir.mkdir(parents=True)
        (xdg_dir / "config.yaml").write_text("symbol_cache:\n  max_age_days: 5\n")

        assert UserConfig().symbol_cache.max_age_days == 5

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert UserConfig(cli_config_path=path).symbol_cache.max_age_days == 14

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("symbol_cache: [unclosed\n")

        with pytest.raises(ConfigError, match="Failed to read"):
            UserConfig(cli_config_path=path)

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            UserConfig(cli_config_path=path)

    def test_invalid_value_raises(self, write_config):
        path = write_config({"symbol_cache": {"max_age_days": -1}})

        with pytest.raises(ConfigError, match="Invalid configuration"):
            UserConfig(cli_config_path=path)

    def test_invalid_log_level_raises(self, write_config):
        path = write_config({"log_level": "LOUD"})

        with pytest.raises(ConfigError):
            UserConfig(cli_config_path=path)


class TestEnvironmentOverrides:
    """Test CRASHSYNC_ environment variables."""

    def test_env_overrides_file(self, write_config, monkeypatch):
        path = write_config({"symbol_cache": {"max_age_days": 7, "min_free_space_gb": 20}})
        monkeypatch.setenv("CRASHSYNC_SYMBOL_CACHE__MAX_AGE_DAYS", "3")

        config = UserConfig(cli_config_path=path)

        assert config.symbol_cache.max_age_days == 3
        # Other values from the file are kept
        assert config.symbol_cache.min_free_space_gb == 20
        assert config.get_source("symbol_cache.max_age_days") == (
            "environment (CRASHSYNC_SYMBOL_CACHE__MAX_AGE_DAYS)"
        )

    def test_env_without_file(self, monkeypatch):
        monkeypatch.setenv("CRASHSYNC_LOG_LEVEL", "debug")

        config = UserConfig()

        assert config.get_log_level_int() == logging.DEBUG


class TestSourceControlConfig:
    """Test source control path normalization."""

    def test_backslash_depot_root_is_normalized(self, write_config):
        path = write_config({"source_control": {"depot_root": "\\\\depot\\UE4\\"}})

        assert UserConfig(cli_config_path=path).source_control.depot_root == "//depot/UE4"

    def test_explicit_depot_root_wins_over_branch(self, write_config):
        path = write_config(
            {"source_control": {"depot_root": "//stream/Main", "branch_name": "UE4"}}
        )

        assert UserConfig(cli_config_path=path).source_control.depot_root == "//stream/Main"

    def test_paths_are_expanded(self, write_config, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        path = write_config({"source_control": {"local_symbol_store_path": "~/symbols"}})

        config = UserConfig(cli_config_path=path)

        assert config.source_control.local_symbol_store_path == Path(tmp_path / "symbols").resolve()
