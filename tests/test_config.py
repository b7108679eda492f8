"""
Tests for gridview/config.py configuration management.

Tests the hierarchical configuration system with sensible defaults,
including file loading, environment variables and validation.
"""
from pathlib import Path

import pytest

from gridview import config as config_module
from gridview.config import GridviewConfig, get_config, init_config
from gridview.views.core import ConfigurationError


class TestGridviewConfigDefaults:
    """Test default configuration values."""

    def test_default_page_size_is_10(self):
        """Default page size should be 10."""
        assert GridviewConfig().page_size == 10

    def test_default_group_order_is_caller(self):
        """Sort/group coupling is left to the caller by default."""
        assert GridviewConfig().group_order == "caller"

    def test_default_output_format_is_table(self):
        assert GridviewConfig().output_format == "table"

    def test_default_export_format_is_csv(self):
        assert GridviewConfig().export_format == "csv"

    def test_default_null_label(self):
        assert GridviewConfig().null_group_label == "(empty)"

    def test_page_size_options_are_not_shared(self):
        """Each instance gets its own options list."""
        a, b = GridviewConfig(), GridviewConfig()
        a.page_size_options.append(99)
        assert 99 not in b.page_size_options


class TestConfigLoading:
    """Test configuration loading from files."""

    def test_load_defaults_when_no_files_exist(self, isolated_config):
        config = GridviewConfig.load()
        assert config.page_size == 10
        assert config.output_format == "table"

    def test_load_from_local_toml(self, isolated_config):
        """Should load config from ./gridview.toml."""
        Path("gridview.toml").write_text('page_size = 25\ngroup_order = "auto"\n')

        config = GridviewConfig.load()
        assert config.page_size == 25
        assert config.group_order == "auto"

    def test_load_from_rc_file(self, isolated_config):
        """Should load config from ./.gridviewrc."""
        Path(".gridviewrc").write_text('null_group_label = "none"\n')
        assert GridviewConfig.load().null_group_label == "none"

    def test_local_config_overrides_user_config(self, isolated_config):
        user_dir = isolated_config / "home" / ".config" / "gridview"
        user_dir.mkdir(parents=True)
        (user_dir / "config.toml").write_text('page_size = 50\nexport_format = "json"\n')
        Path("gridview.toml").write_text("page_size = 5\n")

        config = GridviewConfig.load()
        assert config.page_size == 5
        assert config.export_format == "json"

    def test_explicit_config_file_overrides_all(self, isolated_config):
        Path("gridview.toml").write_text("page_size = 5\n")
        explicit = isolated_config / "explicit.toml"
        explicit.write_text("page_size = 7\n")

        assert GridviewConfig.load(config_file=explicit).page_size == 7

    def test_unknown_keys_are_ignored(self, isolated_config):
        Path("gridview.toml").write_text('colour = "blue"\n')
        assert not hasattr(GridviewConfig.load(), "colour")

    def test_invalid_toml(self, isolated_config):
        Path("gridview.toml").write_text("page_size = = 3\n")
        with pytest.raises(ConfigurationError, match="Invalid config file"):
            GridviewConfig.load()

    def test_invalid_group_order(self, isolated_config):
        Path("gridview.toml").write_text('group_order = "sometimes"\n')
        with pytest.raises(ConfigurationError):
            GridviewConfig.load()


class TestEnvironmentVariables:
    """Test environment variable overrides."""

    def test_env_var_overrides_file(self, isolated_config, monkeypatch):
        Path("gridview.toml").write_text("page_size = 5\n")
        monkeypatch.setenv("GRIDVIEW_PAGE_SIZE", "30")
        assert GridviewConfig.load().page_size == 30

    def test_env_var_bool(self, isolated_config, monkeypatch):
        monkeypatch.setenv("GRIDVIEW_COLOR_OUTPUT", "false")
        assert GridviewConfig.load().color_output is False

    def test_env_var_list(self, isolated_config, monkeypatch):
        monkeypatch.setenv("GRIDVIEW_PAGE_SIZE_OPTIONS", "10, 100")
        assert GridviewConfig.load().page_size_options == [10, 100]

    def test_env_var_bad_int(self, isolated_config, monkeypatch):
        monkeypatch.setenv("GRIDVIEW_PAGE_SIZE", "lots")
        with pytest.raises(ConfigurationError):
            GridviewConfig.load()


class TestSetAndSave:
    """Test setting keys and saving."""

    def test_set_converts_text(self):
        config = GridviewConfig()
        config.set("page_size", "15")
        config.set("export_pretty", "no")
        assert config.page_size == 15
        assert config.export_pretty is False

    def test_set_unknown_key(self):
        with pytest.raises(ConfigurationError, match="Unknown config key"):
            GridviewConfig().set("colour", "blue")

    def test_save_and_reload(self, isolated_config):
        config = GridviewConfig(page_size=42, group_order="warn")
        path = isolated_config / "saved" / "config.toml"
        config.save(path)

        loaded = GridviewConfig.load(config_file=path)
        assert loaded.page_size == 42
        assert loaded.group_order == "warn"
        assert loaded.to_dict() == config.to_dict()

    def test_save_defaults_to_user_config(self, isolated_config):
        GridviewConfig(page_size=3).save()
        assert (isolated_config / "home" / ".config" / "gridview" / "config.toml").exists()
        assert GridviewConfig.load().page_size == 3


class TestGlobalConfig:
    """Test the shared config instance."""

    def test_get_config_is_cached(self, isolated_config):
        assert get_config() is get_config()

    def test_reload(self, isolated_config):
        first = get_config()
        Path("gridview.toml").write_text("page_size = 8\n")
        assert get_config().page_size == first.page_size
        assert get_config(reload=True).page_size == 8

    def test_init_config_overrides(self, isolated_config):
        config = init_config(page_size=12, output_format=None)
        assert config.page_size == 12
        assert config.output_format == "table"
        assert config_module._config is config

    def test_init_config_validates(self, isolated_config):
        with pytest.raises(ConfigurationError):
            init_config(page_size=0)
