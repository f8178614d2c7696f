import logging
from typing import Any, Dict, Optional

from sqlmodel import Session, select
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from .....db.models import User, UserSettings, ImageBlob, ImageRecord, Folder, SharedGallery
from .....application.ports.account_repo import AccountRepository, UserDto, DeletionReport
from .....database import storage_errors
from .....exceptions import NotFoundError, AccountDeletionFailedError
from .....utils import utcnow

logger = logging.getLogger(__name__)


class SqlAccountRepository(AccountRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(id=user.id, email=user.email, name=user.name, created_at=user.created_at)

    def create(self, email: str, name: Optional[str]) -> UserDto:
        user = User(email=email, name=name)
        with storage_errors("account create"):
            try:
                self.session.add(user)
                self.session.commit()
                self.session.refresh(user)
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return self._to_dto(user)

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        with storage_errors("account read"):
            user = self.session.exec(select(User).where(User.id == user_id)).first()
        return self._to_dto(user) if user else None

    def get_by_email(self, email: str) -> Optional[UserDto]:
        with storage_errors("account read"):
            user = self.session.exec(select(User).where(User.email == email)).first()
        return self._to_dto(user) if user else None

    def get_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        with storage_errors("settings read"):
            row = self.session.exec(select(UserSettings).where(UserSettings.user_id == user_id)).first()
        return dict(row.settings) if row else None

    def save_settings(self, user_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        with storage_errors("settings update"):
            try:
                row = self.session.exec(select(UserSettings).where(UserSettings.user_id == user_id)).first()
                if row is None:
                    row = UserSettings(user_id=user_id, settings=dict(values))
                else:
                    row.settings = dict(values)
                    row.updated_at = utcnow()
                self.session.add(row)
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return dict(values)

    def _delete_owned_blobs(self, user_id: str, storage_ids: set) -> int:
        # Runs after the user's images are gone. Blobs are shared across users
        # by checksum, so only the candidates nobody else references are removed.
        candidates = set(self.session.exec(select(ImageBlob.id).where(ImageBlob.owner_id == user_id)).all())
        candidates |= storage_ids
        if not candidates:
            return 0
        still_referenced = set(self.session.exec(
            select(ImageRecord.storage_id).where(ImageRecord.storage_id.in_(candidates)).distinct()
        ).all())
        deletable = candidates - still_referenced
        if not deletable:
            return 0
        result = self.session.exec(
            delete(ImageBlob)
            .where(ImageBlob.id.in_(deletable))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def _delete_where(self, model, column, user_id: str) -> int:
        result = self.session.exec(
            delete(model).where(column == user_id).execution_options(synchronize_session=False)
        )
        return result.rowcount

    def _delete_user_row(self, user_id: str) -> int:
        return self._delete_where(User, User.id, user_id)

    def delete_account(self, user_id: str) -> DeletionReport:
        """Delete every row of the account in one transaction.

        The account row goes last; if it matches nothing the whole
        transaction is rolled back and NotFoundError is raised. Any other
        failure rolls back and surfaces as AccountDeletionFailedError.
        """
        try:
            storage_ids = set(self.session.exec(
                select(ImageRecord.storage_id).where(ImageRecord.owner_id == user_id).distinct()
            ).all())
            images = self._delete_where(ImageRecord, ImageRecord.owner_id, user_id)
            blobs = self._delete_owned_blobs(user_id, storage_ids)
            folders = self._delete_where(Folder, Folder.owner_id, user_id)
            galleries = self._delete_where(SharedGallery, SharedGallery.owner_id, user_id)
            settings_rows = self._delete_where(UserSettings, UserSettings.user_id, user_id)
            if self._delete_user_row(user_id) == 0:
                raise NotFoundError("Account not found")
            self.session.commit()
        except NotFoundError:
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            logger.error(f"Account deletion for {user_id} rolled back: {e}")
            raise AccountDeletionFailedError("Failed to delete account") from e
        return DeletionReport(
            images=images,
            image_storage_blobs=blobs,
            folders=folders,
            shared_galleries=galleries,
            user_settings=settings_rows,
            user_account_deleted=True,
        )
