from gallery.application.ports.image_repo import ImagePatch
from gallery.infrastructure.persistence.sqlalchemy.repositories.folder_repository_sql import SqlFolderRepository
from gallery.infrastructure.persistence.sqlalchemy.repositories.image_repository_sql import SqlImageRecordRepository


def test_create_and_list_folders(session, user, other_user):
    repo = SqlFolderRepository(session)
    folder = repo.create(user.id, "Beach")
    assert folder.id.startswith("folder-")
    assert [f.name for f in repo.list_for_owner(user.id)] == ["Beach"]
    assert repo.list_for_owner(other_user.id) == []
    assert repo.get_for_owner(other_user.id, folder.id) is None


def test_delete_folder_uncategorizes_its_images(session, user):
    folders = SqlFolderRepository(session)
    images = SqlImageRecordRepository(session)
    folder = folders.create(user.id, "Beach")
    image = images.create(user.id, b"bytes", "image/jpeg", "x")
    images.update(user.id, image.id, ImagePatch(folder_id=folder.id))

    assert folders.delete(user.id, folder.id) is True
    assert folders.get_for_owner(user.id, folder.id) is None
    assert images.get_for_owner(user.id, image.id).folder_id is None
    assert folders.delete(user.id, folder.id) is False


def test_delete_foreign_folder_is_a_no_op(session, user, other_user):
    repo = SqlFolderRepository(session)
    folder = repo.create(user.id, "Beach")
    assert repo.delete(other_user.id, folder.id) is False
    assert repo.get_for_owner(user.id, folder.id) is not None
