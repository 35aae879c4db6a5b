"""Tests for the persisted index store."""

import sqlite3

import pytest

from mediafold.media_index.errors import IndexStoreError
from mediafold.media_index.index_store import INDEX_VERSION, IndexRecord, MediaIndexStore
from mediafold.media_index.records import FileRecord


def _record(**overrides):
    values = dict(
        version=INDEX_VERSION,
        type='local',
        name='blog',
        checksum='abc',
        timestamp=1000,
        folder='/media/blog',
        url='/blog',
        files={'a.jpg': FileRecord(filename='a.jpg', size=10, width=2, height=1, meta={'thumb': 't.png'})},
    )
    values.update(overrides)
    return IndexRecord(**values)


class TestMediaIndexStore:
    """Tests for MediaIndexStore."""

    def test_absent_record(self, store):
        """Test that an unknown id yields an empty record."""
        record, timestamp = store.get('missing')

        assert record.files == {}
        assert record.checksum is None
        assert timestamp == 0

    def test_save_and_get(self, store):
        """Test that a saved record is returned unchanged."""
        store.save('c1', _record())

        record, timestamp = store.get('c1', folder='/media/blog', collection_type='local')

        assert timestamp == 1000
        assert record.checksum == 'abc'
        assert record.files['a.jpg'].width == 2
        assert record.files['a.jpg'].meta == {'thumb': 't.png'}

    def test_save_overwrites(self, store):
        """Test that save replaces the whole record."""
        store.save('c1', _record())
        store.save('c1', _record(checksum='def', files={}))

        record, _ = store.get('c1')

        assert record.checksum == 'def'
        assert record.files == {}

    def test_version_mismatch_is_absent(self, store):
        """Test that records of another version are ignored."""
        store.save('c1', _record(version='1'))

        record, timestamp = store.get('c1')

        assert record.files == {}
        assert timestamp == 0

    def test_folder_mismatch_is_absent(self, store):
        """Test that records of another folder are ignored."""
        store.save('c1', _record())

        assert store.get('c1', folder='/media/other') == (IndexRecord(), 0)

    def test_type_mismatch_is_absent(self, store):
        """Test that records of another collection type are ignored."""
        store.save('c1', _record())

        _, timestamp = store.get('c1', collection_type='remote')
        assert timestamp == 0

    def test_touch_updates_timestamp_only(self, store):
        """Test that touch leaves the record content alone."""
        store.save('c1', _record())

        store.touch('c1', 2000)

        record, timestamp = store.get('c1')
        assert timestamp == 2000
        assert record.checksum == 'abc'

    def test_touch_absent_is_noop(self, store):
        """Test that touching an unknown id stores nothing."""
        store.touch('missing', 2000)

        assert store.get('missing')[1] == 0

    def test_delete(self, store):
        """Test that delete removes the record."""
        store.save('c1', _record())
        store.delete('c1')

        assert store.get('c1')[1] == 0

    def test_unreadable_record_is_absent(self, store):
        """Test that corrupt JSON is discarded."""
        store.save('c1', _record())
        cursor = store.db.execute("UPDATE media_index SET record = ? WHERE id = ?", ('{not json', 'c1'))
        cursor.close()

        assert store.get('c1')[1] == 0

    def test_persists_across_connections(self, tmp_path):
        """Test that a second store sees saved records."""
        db_path = tmp_path / "index.db"
        with MediaIndexStore(db_path) as first:
            first.save('c1', _record())

        with MediaIndexStore(db_path) as second:
            assert second.get('c1')[0].name == 'blog'


class TestLock:
    """Tests for the exclusive lock."""

    def test_commits_on_success(self, store):
        """Test that writes inside the lock are committed."""
        with store.lock():
            store.save('c1', _record())

        assert store.get('c1')[1] == 1000

    def test_rolls_back_on_error(self, store):
        """Test that a failing block leaves the stored record unchanged."""
        store.save('c1', _record())

        with pytest.raises(RuntimeError):
            with store.lock():
                store.save('c1', _record(checksum='changed'))
                raise RuntimeError("merge failed")

        assert store.get('c1')[0].checksum == 'abc'
        assert not store.db.in_transaction

    def test_not_reentrant(self, store):
        """Test that nested locking is refused."""
        with store.lock():
            with pytest.raises(IndexStoreError):
                with store.lock():
                    pass

    def test_excludes_other_connections(self, tmp_path):
        """Test that another process cannot write while the lock is held."""
        db_path = tmp_path / "index.db"
        with MediaIndexStore(db_path) as holder, MediaIndexStore(db_path, timeout=0.1) as other:
            holder.save('c1', _record())
            with holder.lock():
                with pytest.raises(IndexStoreError):
                    other.save('c1', _record(checksum='other'))

            assert other.get('c1')[0].checksum == 'abc'

    def test_released_after_error(self, store):
        """Test that the lock is released when the block raises."""
        with pytest.raises(ValueError):
            with store.lock():
                raise ValueError("boom")

        with store.lock():
            store.save('c1', _record())

        assert store.get('c1')[1] == 1000


def test_sqlite_is_wal(store):
    """Test that the index database uses WAL journaling."""
    store.get('any')
    cursor = store.db.execute("PRAGMA journal_mode")
    mode = cursor.fetchone()[0]
    cursor.close()
    assert mode.lower() == 'wal'
    assert isinstance(store.db.connect(), sqlite3.Connection)
