from datetime import timedelta

import pytest
from sqlmodel import select

from gallery.application.ports.shared_gallery_repo import SnapshotImage
from gallery.db.models import SharedGallery
from gallery.infrastructure.persistence.sqlalchemy.repositories.shared_gallery_repository_sql import SqlSharedGalleryRepository
from gallery.utils import utcnow


def snap(image_id, name="img"):
    return SnapshotImage(id=image_id, name=name, data_uri="data:image/jpeg;base64,AAAA", tags=["t"])


@pytest.fixture
def repo(session):
    return SqlSharedGalleryRepository(session)


def _expire(session, share_id):
    row = session.exec(select(SharedGallery).where(SharedGallery.share_id == share_id)).one()
    row.expires_at = utcnow() - timedelta(seconds=1)
    session.add(row)
    session.commit()


def test_create_and_get_counts_accesses(repo, user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1"), snap("i2")])
    first = repo.get(share_id)
    assert first.title == "Trip"
    assert [i.id for i in first.images] == ["i1", "i2"]
    assert first.access_count == 1
    assert first.expires_at is None
    assert repo.get(share_id).access_count == 2


def test_peek_does_not_count(repo, user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")])
    assert repo.peek(share_id).access_count == 0
    assert repo.peek("unknown") is None


def test_share_ids_are_unique_and_opaque(repo, user):
    ids = {repo.create_snapshot(user.id, "Trip", [snap("i1")]) for _ in range(5)}
    assert len(ids) == 5
    assert all(user.id not in share_id for share_id in ids)


def test_expiration_is_set_from_days(repo, user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")], expiration_days=7)
    snapshot = repo.peek(share_id)
    assert timedelta(days=6, hours=23) < snapshot.expires_at - snapshot.created_at <= timedelta(days=7)


def test_expired_snapshot_is_deactivated_on_read(repo, session, user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")], expiration_days=1)
    _expire(session, share_id)
    assert repo.get(share_id) is None
    stored = repo.peek(share_id)
    assert stored.is_active is False
    assert stored.access_count == 0
    # stays inactive; never reactivated by further reads
    assert repo.get(share_id) is None


def test_add_images_skips_duplicates(repo, user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")])
    assert repo.add_images(user.id, share_id, [snap("i1"), snap("i2"), snap("i2")]) == 1
    assert [i.id for i in repo.peek(share_id).images] == ["i1", "i2"]
    assert repo.add_images(user.id, share_id, [snap("i1")]) == 0


def test_add_images_requires_owner_and_active(repo, session, user, other_user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")])
    assert repo.add_images(other_user.id, share_id, [snap("i9")]) is None
    _expire(session, share_id)
    repo.get(share_id)
    assert repo.add_images(user.id, share_id, [snap("i9")]) is None


def test_delete_is_owner_scoped(repo, user, other_user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")])
    assert repo.delete(other_user.id, share_id) is False
    assert repo.delete(user.id, share_id) is True
    assert repo.peek(share_id) is None


def test_list_hides_and_deactivates_expired(repo, session, user):
    live = repo.create_snapshot(user.id, "Live", [snap("i1")])
    stale = repo.create_snapshot(user.id, "Stale", [snap("i1")], expiration_days=1)
    _expire(session, stale)
    assert [g.id for g in repo.list_for_owner(user.id)] == [live]
    assert repo.peek(stale).is_active is False


def test_cleanup_expired_sweeps_in_bulk(repo, session, user):
    a = repo.create_snapshot(user.id, "A", [snap("i1")], expiration_days=1)
    b = repo.create_snapshot(user.id, "B", [snap("i1")], expiration_days=1)
    keep = repo.create_snapshot(user.id, "Keep", [snap("i1")])
    _expire(session, a)
    _expire(session, b)
    assert repo.cleanup_expired() == 2
    assert repo.cleanup_expired() == 0
    assert repo.peek(keep).is_active is True


def test_add_images_to_expired_snapshot_deactivates_it(repo, session, user):
    share_id = repo.create_snapshot(user.id, "Trip", [snap("i1")], expiration_days=1)
    _expire(session, share_id)
    # still flagged active until something reads it
    assert repo.peek(share_id).is_active is True

    assert repo.add_images(user.id, share_id, [snap("i2")]) is None
    stored = repo.peek(share_id)
    assert stored.is_active is False
    assert [i.id for i in stored.images] == ["i1"]
