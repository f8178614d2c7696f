import logging
from typing import List, Optional

from sqlmodel import Session, select
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError

from .....db.models import Folder, ImageRecord
from .....application.ports.folder_repo import FolderRepository, FolderDto
from .....database import storage_errors
from .....utils import utcnow

logger = logging.getLogger(__name__)


class SqlFolderRepository(FolderRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, folder: Folder) -> FolderDto:
        return FolderDto(
            id=folder.folder_id,
            owner_id=folder.owner_id,
            name=folder.name,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
        )

    def list_for_owner(self, owner_id: str) -> List[FolderDto]:
        with storage_errors("folder list"):
            folders = self.session.exec(
                select(Folder).where(Folder.owner_id == owner_id).order_by(Folder.created_at)
            ).all()
        return [self._to_dto(f) for f in folders]

    def get_for_owner(self, owner_id: str, folder_id: str) -> Optional[FolderDto]:
        with storage_errors("folder read"):
            folder = self.session.exec(
                select(Folder).where(Folder.owner_id == owner_id, Folder.folder_id == folder_id)
            ).first()
        return self._to_dto(folder) if folder else None

    def create(self, owner_id: str, name: str) -> FolderDto:
        folder = Folder(owner_id=owner_id, name=name)
        with storage_errors("folder create"):
            try:
                self.session.add(folder)
                self.session.commit()
                self.session.refresh(folder)
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return self._to_dto(folder)

    def delete(self, owner_id: str, folder_id: str) -> bool:
        """Delete a folder. Its images stay, with folder_id cleared."""
        now = utcnow()
        with storage_errors("folder delete"):
            try:
                moved = self.session.exec(
                    update(ImageRecord)
                    .where(ImageRecord.owner_id == owner_id, ImageRecord.folder_id == folder_id)
                    .values(folder_id=None, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                result = self.session.exec(
                    delete(Folder)
                    .where(Folder.owner_id == owner_id, Folder.folder_id == folder_id)
                    .execution_options(synchronize_session=False)
                )
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        if result.rowcount:
            logger.info(f"Folder {folder_id} deleted, {moved.rowcount} image(s) uncategorized")
        return result.rowcount > 0
