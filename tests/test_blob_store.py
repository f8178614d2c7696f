from sqlmodel import select

from gallery.db.models import ImageBlob, ImageRecord
from gallery.infrastructure.persistence.sqlalchemy.repositories.blob_store_sql import SqlBlobStore
from gallery.media_utils import checksum


def test_store_deduplicates_identical_bytes(session):
    store = SqlBlobStore(session)
    first = store.store(b"same-bytes", "image/jpeg", owner_id="u1")
    second = store.store(b"same-bytes", "image/jpeg", owner_id="u2")
    assert first == second
    blobs = session.exec(select(ImageBlob)).all()
    assert len(blobs) == 1
    # first uploader is kept
    assert blobs[0].owner_id == "u1"


def test_store_distinct_bytes_get_distinct_ids(session):
    store = SqlBlobStore(session)
    a = store.store(b"aaa", "image/jpeg")
    b = store.store(b"bbb", "image/png")
    assert a != b
    blob = store.get(b)
    assert blob.data == b"bbb"
    assert blob.mime_type == "image/png"
    assert blob.size == 3
    assert blob.checksum == checksum(b"bbb")


def test_get_missing_returns_none(session):
    assert SqlBlobStore(session).get("nope") is None


def test_delete_reports_whether_a_row_was_removed(session):
    store = SqlBlobStore(session)
    blob_id = store.store(b"x", "image/jpeg")
    assert store.delete(blob_id) is True
    assert store.get(blob_id) is None
    assert store.delete(blob_id) is False


def test_store_after_delete_inserts_fresh_blob(session):
    store = SqlBlobStore(session)
    first = store.store(b"x", "image/jpeg")
    store.delete(first)
    second = store.store(b"x", "image/jpeg")
    assert second != first
    assert store.get(second).data == b"x"


def test_dedup_lookup_prefers_oldest_duplicate(session):
    store = SqlBlobStore(session)
    oldest = store.store(b"dup", "image/jpeg")
    # simulate the losing side of a concurrent upload race
    session.add(ImageBlob(data=b"dup", mime_type="image/jpeg", size=3, checksum=checksum(b"dup")))
    session.commit()
    assert store.store(b"dup", "image/jpeg") == oldest


def test_cleanup_orphans_keeps_referenced_blobs(session, user):
    store = SqlBlobStore(session)
    kept = store.store(b"kept", "image/jpeg")
    orphan = store.store(b"orphan", "image/jpeg")
    session.add(ImageRecord(owner_id=user.id, name="n", storage_id=kept, mime_type="image/jpeg", size=4, tags=[]))
    session.commit()

    assert store.cleanup_orphans() == 1
    assert store.get(kept) is not None
    assert store.get(orphan) is None
    assert store.cleanup_orphans() == 0
