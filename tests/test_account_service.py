import pytest

from gallery.application.services.account_service import AccountService
from gallery.application.services.folder_service import FolderService
from gallery.application.services.maintenance_service import MaintenanceService
from gallery.exceptions import AccountDeletionFailedError, NotFoundError, ValidationError
from gallery.infrastructure.persistence.sqlalchemy.repositories.account_repository_sql import SqlAccountRepository
from gallery.infrastructure.persistence.sqlalchemy.repositories.blob_store_sql import SqlBlobStore
from gallery.infrastructure.persistence.sqlalchemy.repositories.folder_repository_sql import SqlFolderRepository
from gallery.infrastructure.persistence.sqlalchemy.repositories.shared_gallery_repository_sql import SqlSharedGalleryRepository


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, user_id=None, success=True, details=None):
        self.entries.append((action, user_id, success, details))


class FailingAccounts:
    def delete_account(self, user_id):
        raise AccountDeletionFailedError("Failed to delete account")


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def accounts(session, audit):
    return AccountService(account_repo=SqlAccountRepository(session), audit=audit)


def test_register_normalises_and_rejects_duplicates(accounts):
    user = accounts.register("  Carol@Example.com ", " Carol ")
    assert user.email == "carol@example.com"
    assert user.name == "Carol"
    with pytest.raises(ValidationError) as exc:
        accounts.register("carol@example.com")
    assert exc.value.status_code == 409
    with pytest.raises(ValidationError):
        accounts.register("not-an-email")


def test_settings_are_merged_with_defaults(accounts, user):
    assert accounts.get_settings(user.id) == {
        "cloud_storage": {"provider": "", "enabled": False},
        "auto_sync": False,
        "sync_interval": 30,
    }
    accounts.update_settings(user.id, {"cloud_storage": {"enabled": True}, "sync_interval": 5})
    current = accounts.get_settings(user.id)
    assert current["cloud_storage"] == {"provider": "", "enabled": True}
    assert current["sync_interval"] == 5
    assert current["auto_sync"] is False


def test_delete_account_is_audited(accounts, audit, user):
    report = accounts.delete_account(user.id)
    assert report.user_account_deleted is True
    assert audit.entries[-1][0] == "account.delete"
    assert audit.entries[-1][2] is True
    with pytest.raises(NotFoundError):
        accounts.get(user.id)


def test_failed_delete_is_audited_and_raised(audit):
    svc = AccountService(account_repo=FailingAccounts(), audit=audit)
    with pytest.raises(AccountDeletionFailedError):
        svc.delete_account("u1")
    assert audit.entries == [("account.delete", "u1", False, {"error": "Failed to delete account"})]


def test_folder_service_validation(session, user):
    svc = FolderService(folder_repo=SqlFolderRepository(session))
    folder = svc.create(user.id, "  Pets ")
    assert folder.name == "Pets"
    with pytest.raises(ValidationError):
        svc.create(user.id, "   ")
    with pytest.raises(ValidationError):
        svc.create(user.id, "x" * 101)
    svc.delete(user.id, folder.id)
    with pytest.raises(NotFoundError):
        svc.delete(user.id, folder.id)


def test_maintenance_run_reports_both_sweeps(session, audit):
    blobs = SqlBlobStore(session)
    blobs.store(b"orphan", "image/jpeg")
    svc = MaintenanceService(blob_store=blobs, share_repo=SqlSharedGalleryRepository(session), audit=audit)
    assert svc.run(requested_by="admin") == {"orphaned_blobs_removed": 1, "galleries_expired": 0}
    assert audit.entries[-1][0] == "maintenance.cleanup"
