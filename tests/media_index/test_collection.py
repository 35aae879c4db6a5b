"""Tests for MediaCollection."""

import json
import threading
from unittest.mock import Mock

import pytest

from mediafold.media_index.collection import SNAPSHOT_VERSION, MediaCollection
from mediafold.media_index.config import MediaIndexConfig
from mediafold.media_index.errors import SchemaVersionMismatchError
from mediafold.media_index.media_objects import ImageMedium, MediumFactory


def _count_builds(collection):
    """Wrap the collection's builder to count realizations."""
    collection._builder.build = Mock(wraps=collection._builder.build)
    return collection._builder.build


class TestInitialization:
    """Tests for collection construction."""

    def test_single_image(self, media_dir, make_image):
        """Test a folder with one image."""
        make_image("a.jpg", size=(20, 10))

        media = MediaCollection(media_dir)

        assert list(media.all()) == ["a.jpg"]
        assert media["a.jpg"].type == "image"
        assert len(media) == 1

    def test_alternative_only_image(self, media_dir, make_image):
        """Test that a lone @2x file yields the nominal image."""
        make_image("a@2x.jpg", size=(200, 100))

        media = MediaCollection(media_dir)

        medium = media["a.jpg"]
        assert (medium.width, medium.height) == (100, 50)
        assert list(medium.alternatives) == [2.0]

    def test_missing_folder(self, tmp_path):
        """Test that a missing folder yields an empty collection."""
        media = MediaCollection(tmp_path / "missing")

        assert not media.exists()
        assert len(media) == 0
        assert media.all() == {}

    def test_index_is_persisted(self, media_dir, make_image, store):
        """Test that the file index is saved in the store."""
        make_image("a.jpg")

        media = MediaCollection(media_dir, store=store)

        record, timestamp = store.get(media.id)
        assert list(record.files) == ["a.jpg"]
        assert timestamp > 0

    def test_unchanged_folder_not_probed_again(self, media_dir, make_image, store):
        """Test that the second load reuses stored dimensions."""
        make_image("a.jpg")
        MediaCollection(media_dir, store=store)
        probe = Mock(return_value={'width': 1, 'height': 1})

        MediaCollection(media_dir, store=store, read_image_size=probe)

        probe.assert_not_called()

    def test_url_prefix(self, media_dir, make_image):
        """Test that media get urls under the prefix."""
        make_image("a.jpg")

        media = MediaCollection(media_dir, url="/blog")

        assert media["a.jpg"].url == "/blog/a.jpg"

    def test_collection_id(self, media_dir):
        """Test that an explicit identifier changes the id."""
        assert MediaCollection(media_dir).id != MediaCollection(media_dir, collection_id="page-1").id


class TestAccess:
    """Tests for item access and memoization."""

    def test_constructs_once(self, media_dir, make_image):
        """Test that repeated access builds once and returns distinct copies."""
        make_image("a.jpg")
        media = MediaCollection(media_dir)
        builds = _count_builds(media)
        media.set_timestamps("v2")

        first = media.get("a.jpg")
        second = media.get("a.jpg")

        assert builds.call_count == 1
        assert first is not second
        assert first.timestamp == second.timestamp == "v2"

    def test_copies_do_not_leak(self, media_dir, make_image):
        """Test that changes to a returned medium do not reach the collection."""
        make_image("a.jpg")
        media = MediaCollection(media_dir)

        media["a.jpg"].attributes['title'] = 'changed'

        assert 'title' not in media["a.jpg"].attributes

    def test_alternative_copies_do_not_leak(self, media_dir, make_image):
        """Test that returned alternatives are copies stamped with the current tag."""
        make_image("a@2x.jpg", size=(200, 100))
        media = MediaCollection(media_dir)
        media.set_timestamps("v3")

        media["a.jpg"].alternatives[2.0].attributes['title'] = 'changed'
        alternative = media["a.jpg"].alternatives[2.0]

        assert 'title' not in alternative.attributes
        assert alternative.timestamp == "v3"
        assert media["a.jpg"].alternatives[2.0] is not alternative

    def test_concurrent_access_constructs_once(self, media_dir, make_image):
        """Test that concurrent first access builds once."""
        make_image("a.jpg")
        media = MediaCollection(media_dir)
        builds = _count_builds(media)
        results = []

        threads = [threading.Thread(target=lambda: results.append(media.get("a.jpg"))) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert builds.call_count == 1
        assert len(results) == 8
        assert all(result is not None for result in results)

    def test_key_locks_released(self, media_dir, make_image):
        """Test that realized, hidden and dropped items keep no per-key lock."""
        make_image("a.jpg")
        make_image("b.jpg")
        (media_dir / "gone.jpg.meta.yaml").write_text("title: x\n", encoding="utf-8")
        media = MediaCollection(media_dir)

        media.get("a.jpg")
        media.get("gone.jpg")
        media._key_lock("b.jpg")
        media.hide("b.jpg")

        assert media._locks == {}

    def test_failed_item_keeps_key_lock(self, media_dir, make_image):
        """Test that an item left unrealized keeps its lock for the retry."""
        make_image("b.jpg")
        media = MediaCollection(media_dir)
        (media_dir / "b.jpg").unlink()

        assert media.get("b.jpg") is None
        assert list(media._locks) == ["b.jpg"]

    def test_unknown_name(self, media_dir):
        """Test access to an unknown name."""
        media = MediaCollection(media_dir)

        assert media.get("missing.jpg") is None
        with pytest.raises(KeyError):
            media["missing.jpg"]

    def test_failed_realization_is_retried(self, media_dir, make_image):
        """Test that a failed build is attempted again on the next access."""
        path = make_image("a.jpg")
        media = MediaCollection(media_dir)
        path.unlink()

        assert media.get("a.jpg") is None
        assert "a.jpg" in media

        make_image("a.jpg")
        assert media.get("a.jpg") is not None

    def test_exif_error_does_not_fail_listing(self, media_dir, make_image):
        """Test that a failing EXIF reader still lists every item."""
        make_image("a.jpg")
        make_image("b.jpg")
        config = MediaIndexConfig(media={"auto_metadata_exif": True})

        media = MediaCollection(media_dir, config, exif_reader=Mock(side_effect=ValueError("corrupt exif")))

        assert list(media.all()) == ["a.jpg", "b.jpg"]
        assert not (media_dir / "a.jpg.meta.yaml").exists()

    def test_dangling_sidecar_dropped(self, media_dir):
        """Test that a sidecar without media is dropped on access."""
        (media_dir / "gone.jpg.meta.yaml").write_text("title: x\n", encoding="utf-8")
        media = MediaCollection(media_dir)

        assert "gone.jpg" in media
        assert media.all() == {}
        assert "gone.jpg" not in media


class TestIteration:
    """Tests for iteration and ordering."""

    def test_remove_current_during_iteration(self, media_dir, make_image):
        """Test that hiding the current item while iterating visits each item once."""
        for name in ("A.jpg", "B.jpg", "C.jpg"):
            make_image(name)
        media = MediaCollection(media_dir)
        visited = []

        for name, _ in media.items():
            visited.append(name)
            media.hide(name)

        assert visited == ["A.jpg", "B.jpg", "C.jpg"]
        assert len(media) == 0

    def test_remove_later_item_during_iteration(self, media_dir, make_image):
        """Test that items removed ahead of the iterator are skipped."""
        for name in ("A.jpg", "B.jpg", "C.jpg"):
            make_image(name)
        media = MediaCollection(media_dir)
        visited = []

        for name in media:
            visited.append(name)
            if name == "A.jpg":
                del media["B.jpg"]

        assert visited == ["A.jpg", "C.jpg"]

    def test_natural_order(self, media_dir, make_image):
        """Test natural, case-insensitive ordering."""
        for name in ("img10.jpg", "Img2.jpg", "img1.jpg"):
            make_image(name)

        assert list(MediaCollection(media_dir).all()) == ["img1.jpg", "Img2.jpg", "img10.jpg"]

    def test_frontmatter_order(self, media_dir, make_image):
        """Test that media_order from frontmatter.yaml leads the order."""
        for name in ("a.jpg", "b.jpg", "c.jpg"):
            make_image(name)
        (media_dir / "frontmatter.yaml").write_text("media_order: c.jpg, a.jpg\n", encoding="utf-8")

        assert list(MediaCollection(media_dir).all()) == ["c.jpg", "a.jpg", "b.jpg"]

    def test_order_source_resolved_lazily(self, media_dir, make_image):
        """Test that the ordering hint is read on all(), not on construction."""
        make_image("a.jpg")
        make_image("b.jpg")
        order_source = Mock(return_value=["b.jpg"])

        media = MediaCollection(media_dir, order_source=order_source)
        order_source.assert_not_called()

        assert list(media.all()) == ["b.jpg", "a.jpg"]
        media.all()
        order_source.assert_called_once()

    def test_buckets(self, media_dir, make_image):
        """Test the per-type views."""
        make_image("a.jpg")
        (media_dir / "logo.svg").write_text(
            '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"/>', encoding="utf-8"
        )
        (media_dir / "clip.mp4").write_bytes(b"data")
        (media_dir / "song.mp3").write_bytes(b"data")
        (media_dir / "doc.pdf").write_bytes(b"data")

        media = MediaCollection(media_dir)

        assert list(media.images()) == ["a.jpg", "logo.svg"]
        assert list(media.videos()) == ["clip.mp4"]
        assert list(media.audios()) == ["song.mp3"]
        assert list(media.files()) == ["doc.pdf"]


class TestMutation:
    """Tests for add, hide and thumbnails."""

    def test_add(self, media_dir, tmp_path):
        """Test that an added medium is returned stamped."""
        media = MediaCollection(media_dir)
        medium = ImageMedium(filename="x.jpg", path=tmp_path / "x.jpg", width=1, height=1)
        media.set_timestamps("t1")

        media.add("x.jpg", medium)
        media.add("y.jpg", None)

        assert "y.jpg" not in media
        assert media["x.jpg"].timestamp == "t1"
        assert medium.timestamp is None

    def test_delitem_unknown(self, media_dir):
        """Test that deleting an unknown name raises KeyError."""
        with pytest.raises(KeyError):
            del MediaCollection(media_dir)["missing.jpg"]

    def test_thumbnail(self, media_dir, make_image):
        """Test that the thumbnail override is constructed on request."""
        make_image("a.jpg")
        make_image("a.jpg.thumb.png", size=(8, 8))
        media = MediaCollection(media_dir)

        thumbnail = media.thumbnail("a.jpg")

        assert thumbnail.filename == "a.jpg.thumb.png"
        assert (thumbnail.width, thumbnail.height) == (8, 8)
        assert media.thumbnail("missing.jpg") is None


class TestUpdateIndex:
    """Tests for incremental index updates."""

    def test_update_index_forces_rescan(self, media_dir, make_image, store):
        """Test that update_index() without files makes the next load rescan."""
        make_image("a.jpg")
        config = MediaIndexConfig(index={"timeout": 3600})
        MediaCollection(media_dir, config, store=store).update_index()
        make_image("b.jpg")

        media = MediaCollection(media_dir, config, store=store)

        assert list(media.all()) == ["a.jpg", "b.jpg"]

    def test_update_index_removes_file(self, media_dir, make_image, store):
        """Test that a removed file is dropped from the stored index."""
        make_image("a.jpg")
        make_image("b.jpg")
        media = MediaCollection(media_dir, store=store)

        media.update_index({"a.jpg": None})

        record, _ = store.get(media.id)
        assert list(record.files) == ["b.jpg"]


class TestSnapshot:
    """Tests for snapshots."""

    def test_round_trip(self, media_dir, make_image):
        """Test that a restored collection realizes the same media."""
        make_image("a@2x.jpg", size=(200, 100))
        make_image("b.jpg")
        media = MediaCollection(media_dir, url="/blog", media_order="b.jpg")
        media["b.jpg"]

        snapshot = json.loads(json.dumps(media.to_snapshot()))
        restored = MediaCollection.from_snapshot(snapshot)

        assert snapshot['version'] == SNAPSHOT_VERSION
        assert list(restored.all()) == ["b.jpg", "a.jpg"]
        assert restored["a.jpg"].width == 100
        assert restored["b.jpg"].url == "/blog/b.jpg"
        assert restored.exists()

    def test_snapshot_holds_raw_data(self, media_dir, make_image):
        """Test that realized items are stored as grouped records."""
        make_image("a.jpg")
        media = MediaCollection(media_dir)
        media["a.jpg"]

        grouped = media.to_snapshot()['grouped']

        assert grouped["a.jpg"]["base"]["filename"] == "a.jpg"

    def test_snapshot_settings(self, media_dir):
        """Test that index and EXIF settings come from the snapshot."""
        config = MediaIndexConfig(index={"timeout": 90}, media={"standard_exif": ["FileSize"]})
        snapshot = MediaCollection(media_dir, config).to_snapshot()

        restored = MediaCollection.from_snapshot(snapshot)

        assert restored.index_timeout == 90
        assert restored.standard_exif == ["FileSize"]

    @pytest.mark.parametrize("version", [None, "1", 2])
    def test_version_mismatch(self, media_dir, version):
        """Test that another snapshot version is refused before construction."""
        snapshot = MediaCollection(media_dir).to_snapshot()
        snapshot['version'] = version
        factory = Mock(spec=MediumFactory)

        with pytest.raises(SchemaVersionMismatchError):
            MediaCollection.from_snapshot(snapshot, factory=factory)

        factory.create_from_file.assert_not_called()
