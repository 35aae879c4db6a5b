"""Tests for the mediafold-index command."""

import json
import logging
from unittest.mock import Mock

import pytest

from mediafold.common import ConfigLoader
from mediafold.media_index import cli
from mediafold.media_index.config import MediaIndexConfig
from mediafold.media_index.errors import IndexStoreError


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep system and user config files out of the tests."""
    monkeypatch.setattr(ConfigLoader, "_load_system_config", lambda self: None)
    monkeypatch.setattr(ConfigLoader, "_load_user_config", lambda self: None)
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


class TestIndexCommand:
    """Tests for index_command and main."""

    def test_lists_items(self, media_dir, make_image, tmp_path, capsys):
        """Test the line-per-item listing."""
        make_image("a@2x.jpg", size=(200, 100))
        (media_dir / "song.mp3").write_bytes(b"data")

        exit_code = cli.main(["--folder", str(media_dir), "--index-path", str(tmp_path / "index.db")])

        assert exit_code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == ["a.jpg\timage\t100x50\t1", "song.mp3\taudio\t-\t0"]

    def test_json_output(self, media_dir, make_image, tmp_path, capsys):
        """Test the JSON document."""
        make_image("a.jpg", size=(20, 10))

        exit_code = cli.main(["--folder", str(media_dir), "--index-path", str(tmp_path / "index.db"), "--json"])

        assert exit_code == 0
        document = json.loads(capsys.readouterr().out)
        assert document['media']['a.jpg']['width'] == 20
        assert document['path'] == str(media_dir)

    def test_writes_index(self, media_dir, make_image, tmp_path):
        """Test that the index database is created."""
        make_image("a.jpg")
        index_path = tmp_path / "index" / "media.db"

        cli.main(["--folder", str(media_dir), "--index-path", str(index_path)])

        assert index_path.exists()

    def test_missing_folder(self, tmp_path):
        """Test that a missing folder fails."""
        assert cli.main(["--folder", str(tmp_path / "missing"), "--index-path", str(tmp_path / "i.db")]) == 1

    def test_exif_flag(self, media_dir, make_image, tmp_path, monkeypatch):
        """Test that --exif enables sidecar generation."""
        make_image("a.jpg")
        monkeypatch.setattr(
            "mediafold.media_index.collection.extract_exif",
            lambda path: {'FileSize': 1, 'camera_make': 'Canon'},
        )

        cli.main(["--folder", str(media_dir), "--index-path", str(tmp_path / "i.db"), "--exif"])

        assert (media_dir / "a.jpg.meta.yaml").exists()

    def test_failure_is_classified(self, media_dir, tmp_path, monkeypatch, caplog):
        """Test that a failed listing logs its error category and exits with 1."""
        monkeypatch.setattr(cli, "MediaCollection", Mock(side_effect=IndexStoreError("database is locked")))

        with caplog.at_level(logging.ERROR):
            exit_code = cli.main(["--folder", str(media_dir), "--index-path", str(tmp_path / "i.db")])

        assert exit_code == 1
        assert "'category': 'index'" in caplog.text
        assert "database is locked" in caplog.text

    def test_overrides(self, media_dir, tmp_path):
        """Test that command-line overrides reach the config."""
        config = MediaIndexConfig()

        exit_code = cli.index_command(
            config, media_dir, index_path_override=tmp_path / "i.db", index_timeout_override=30, exif_override=True
        )

        assert exit_code == 0
        assert config.index.timeout == 30
        assert config.media.auto_metadata_exif is True
