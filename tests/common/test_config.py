"""Tests for the configuration loader."""

import pytest
import toml
from pydantic import ValidationError

from mediafold.common import ConfigLoader, expand_path_variables
from mediafold.media_index.config import MediaIndexConfig


@pytest.fixture
def isolated_loader(tmp_path, monkeypatch):
    """Loader that sees no system or user config files."""
    monkeypatch.setattr(ConfigLoader, "_load_system_config", lambda self: None)
    monkeypatch.setattr(ConfigLoader, "_load_user_config", lambda self: None)
    monkeypatch.chdir(tmp_path)
    return ConfigLoader(app_name="mediafold", config_class=MediaIndexConfig)


class TestConfigLoader:
    """Test multi-source configuration loading."""

    def test_model_defaults(self, isolated_loader):
        """Test that defaults come from the config models."""
        config = isolated_loader.load()

        assert config.index.timeout == 0
        assert config.media.auto_metadata_exif is False
        assert config.media.types["jpg"].type == "image"

    def test_defaults_file(self, isolated_loader, tmp_path):
        """Test that a defaults.toml overrides model defaults."""
        defaults = tmp_path / "defaults.toml"
        defaults.write_text(toml.dumps({"index": {"timeout": 300}, "logging": {"level": "debug"}}))

        config = isolated_loader.load(defaults_path=defaults)

        assert config.index.timeout == 300
        assert config.logging.level == "DEBUG"
        assert config.index.file == "media-index.db"

    def test_env_override_nested_key(self, isolated_loader, monkeypatch):
        """Test MEDIAFOLD_<SECTION>_<KEY> overrides."""
        monkeypatch.setenv("MEDIAFOLD_INDEX_TIMEOUT", "60")

        config = isolated_loader.load()

        assert config.index.timeout == 60

    def test_env_override_key_with_underscores(self, isolated_loader, monkeypatch):
        """Test that keys containing underscores resolve to the existing key."""
        monkeypatch.setenv("MEDIAFOLD_MEDIA_AUTO_METADATA_EXIF", "yes")

        config = isolated_loader.load()

        assert config.media.auto_metadata_exif is True

    def test_env_override_list_value(self, isolated_loader, monkeypatch):
        """Test that comma-separated values become lists."""
        monkeypatch.setenv("MEDIAFOLD_MEDIA_STANDARD_EXIF", "FileSize, MimeType")

        config = isolated_loader.load()

        assert config.media.standard_exif == ["FileSize", "MimeType"]

    def test_invalid_value_rejected(self, isolated_loader, monkeypatch):
        """Test that validation errors surface from load()."""
        monkeypatch.setenv("MEDIAFOLD_INDEX_TIMEOUT", "-5")

        with pytest.raises(ValidationError):
            isolated_loader.load()

    def test_config_property_loads_once(self, isolated_loader):
        """Test that the config property caches the loaded config."""
        assert isolated_loader.config is isolated_loader.config


class TestExpandPathVariables:
    """Test path variable expansion."""

    def test_expands_user_home(self, monkeypatch, tmp_path):
        """Test ${USER_HOME} expansion."""
        monkeypatch.setenv("HOME", str(tmp_path))

        assert expand_path_variables("${USER_HOME}/media") == f"{tmp_path}/media"

    def test_environment_variable(self, monkeypatch):
        """Test that other names come from the environment."""
        monkeypatch.setenv("MEDIA_ROOT", "/srv/media")

        assert expand_path_variables("${MEDIA_ROOT}/index") == "/srv/media/index"

    def test_unknown_variable_kept(self, monkeypatch):
        """Test that unset names are left as written."""
        monkeypatch.delenv("MEDIAFOLD_UNSET", raising=False)

        assert expand_path_variables("${MEDIAFOLD_UNSET}/index") == "${MEDIAFOLD_UNSET}/index"

    def test_expands_tilde(self, monkeypatch, tmp_path):
        """Test a leading ~."""
        monkeypatch.setenv("HOME", str(tmp_path))

        assert expand_path_variables("~/index") == f"{tmp_path}/index"

    def test_plain_path_unchanged(self):
        """Test that paths without variables are unchanged."""
        assert expand_path_variables("/var/cache/mediafold") == "/var/cache/mediafold"

    def test_database_path(self, tmp_path):
        """Test that the index database path is expanded."""
        config = MediaIndexConfig(index={"folder": str(tmp_path), "file": "index.db"})

        assert config.index.database_path() == tmp_path / "index.db"

    def test_database_path_disabled(self):
        """Test that an empty folder disables the index database."""
        config = MediaIndexConfig(index={"folder": None})

        assert config.index.database_path() is None
