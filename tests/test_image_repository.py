from datetime import timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError

from gallery.application.ports.image_repo import ImagePatch
from gallery.infrastructure.persistence.sqlalchemy.repositories.blob_store_sql import SqlBlobStore
from gallery.infrastructure.persistence.sqlalchemy.repositories.image_repository_sql import SqlImageRecordRepository
from gallery.utils import utcnow


@pytest.fixture
def repo(session):
    return SqlImageRecordRepository(session)


def test_create_links_record_to_blob(repo, user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "holiday", width=4, height=3)
    assert image.owner_id == user.id
    assert image.name == "holiday"
    assert image.size == 5
    assert image.is_defective is False
    assert image.tags == []
    fetched = repo.get_for_owner(user.id, image.id, with_content=True)
    assert fetched.data == b"bytes"
    assert fetched.storage_id == image.storage_id


def test_reads_are_owner_scoped(repo, user, other_user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "mine")
    assert repo.get_for_owner(other_user.id, image.id) is None
    assert repo.list_for_owner(other_user.id) == []
    assert [i.id for i in repo.list_for_owner(user.id)] == [image.id]


def test_list_is_newest_first(repo, user):
    first = repo.create(user.id, b"1", "image/jpeg", "first")
    second = repo.create(user.id, b"2", "image/jpeg", "second")
    assert [i.id for i in repo.list_for_owner(user.id)] == [second.id, first.id]


def test_identical_uploads_share_one_blob(repo, user, other_user):
    a = repo.create(user.id, b"same", "image/jpeg", "a")
    b = repo.create(other_user.id, b"same", "image/jpeg", "b")
    assert a.id != b.id
    assert a.storage_id == b.storage_id
    assert repo.count_references(a.storage_id) == 2


def test_update_writes_only_set_fields(repo, user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "before")
    repo.update(user.id, image.id, ImagePatch(tags=["beach", "sun"], folder_id="folder-1"))
    assert repo.update(user.id, image.id, ImagePatch(name="after")) is True
    updated = repo.get_for_owner(user.id, image.id)
    assert updated.name == "after"
    assert updated.tags == ["beach", "sun"]
    assert updated.folder_id == "folder-1"


def test_update_explicit_none_clears_folder(repo, user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    repo.update(user.id, image.id, ImagePatch(folder_id="folder-1"))
    repo.update(user.id, image.id, ImagePatch(folder_id=None))
    assert repo.get_for_owner(user.id, image.id).folder_id is None


def test_update_of_missing_or_foreign_image_returns_false(repo, user, other_user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    assert repo.update(other_user.id, image.id, ImagePatch(name="stolen")) is False
    assert repo.update(user.id, "missing", ImagePatch()) is False
    assert repo.get_for_owner(user.id, image.id).name == "x"


def test_patch_rejects_unknown_fields_and_blank_names():
    with pytest.raises(PydanticValidationError):
        ImagePatch(owner_id="someone")
    with pytest.raises(PydanticValidationError):
        ImagePatch(name="   ")


def test_patch_rejects_null_for_required_columns():
    for field in ("name", "tags", "is_defective"):
        with pytest.raises(PydanticValidationError):
            ImagePatch(**{field: None})


def test_patch_allows_clearing_optional_columns():
    patch = ImagePatch(folder_id=None, metadata=None, defect_type=None)
    assert patch.changes() == {"folder_id": None, "metadata": None, "defect_type": None}


def test_patch_cleans_tags():
    assert ImagePatch(tags=[" a", "b", "a", ""]).tags == ["a", "b"]


def test_bin_and_restore_transitions(repo, user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    assert repo.move_to_bin(user.id, image.id, "manual") is True
    binned = repo.get_for_owner(user.id, image.id)
    assert binned.is_binned and binned.defect_type == "manual"
    # already binned
    assert repo.move_to_bin(user.id, image.id, "manual") is False

    assert repo.restore(user.id, image.id) is True
    restored = repo.get_for_owner(user.id, image.id)
    assert not restored.is_binned and restored.defect_type is None
    assert repo.restore(user.id, image.id) is False


def test_permanent_delete_removes_last_reference_blob(repo, session, user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    assert repo.permanently_delete(user.id, image.id) is True
    assert repo.get_for_owner(user.id, image.id) is None
    assert SqlBlobStore(session).get(image.storage_id) is None


def test_permanent_delete_keeps_shared_blob(repo, session, user, other_user):
    a = repo.create(user.id, b"same", "image/jpeg", "a")
    b = repo.create(other_user.id, b"same", "image/jpeg", "b")
    assert repo.permanently_delete(user.id, a.id) is True
    assert SqlBlobStore(session).get(a.storage_id) is not None
    assert repo.get_for_owner(other_user.id, b.id, with_content=True).data == b"same"

    assert repo.permanently_delete(other_user.id, b.id) is True
    assert SqlBlobStore(session).get(a.storage_id) is None


def test_permanent_delete_of_missing_image(repo, user, other_user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    assert repo.permanently_delete(user.id, "missing") is False
    assert repo.permanently_delete(other_user.id, image.id) is False
    assert repo.get_for_owner(user.id, image.id) is not None


def test_permanent_delete_rolls_back_when_blob_delete_fails(session, user):
    class FailingBlobStore(SqlBlobStore):
        def delete(self, storage_id, commit=True):
            raise RuntimeError("disk on fire")

    repo = SqlImageRecordRepository(session, blob_store=FailingBlobStore(session))
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    with pytest.raises(RuntimeError):
        repo.permanently_delete(user.id, image.id)
    assert repo.get_for_owner(user.id, image.id) is not None
    assert SqlBlobStore(session).get(image.storage_id) is not None


def test_dangling_storage_reference_surfaces_without_content(repo, session, user):
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    SqlBlobStore(session).delete(image.storage_id)
    fetched = repo.get_for_owner(user.id, image.id, with_content=True)
    assert fetched is not None
    assert fetched.has_content is False
    assert [i.id for i in repo.list_for_owner(user.id)] == [image.id]


def test_timestamps_round_trip_as_naive_utc(repo, user):
    before = utcnow()
    image = repo.create(user.id, b"bytes", "image/jpeg", "x")
    fetched = repo.get_for_owner(user.id, image.id)
    assert fetched.created_at.tzinfo is None
    assert before - timedelta(seconds=1) <= fetched.created_at <= utcnow()
