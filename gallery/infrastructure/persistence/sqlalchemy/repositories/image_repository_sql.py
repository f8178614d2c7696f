import logging
from typing import List, Optional

from sqlmodel import Session, select
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError

from .....db.models import ImageRecord
from .....application.ports.blob_store import BlobStore
from .....application.ports.image_repo import ImageRecordRepository, ImageDto, ImagePatch
from .....database import storage_errors
from .....utils import utcnow
from .blob_store_sql import SqlBlobStore

logger = logging.getLogger(__name__)

# ImagePatch field -> ImageRecord attribute
_PATCH_COLUMNS = {
    "name": "name",
    "metadata": "metadata_text",
    "tags": "tags",
    "folder_id": "folder_id",
    "is_defective": "is_defective",
    "defect_type": "defect_type",
}


class SqlImageRecordRepository(ImageRecordRepository):
    def __init__(self, session: Session, blob_store: Optional[BlobStore] = None):
        self.session = session
        self.blob_store = blob_store or SqlBlobStore(session)

    def _to_dto(self, record: ImageRecord, data: Optional[bytes] = None) -> ImageDto:
        return ImageDto(
            id=record.image_id,
            owner_id=record.owner_id,
            name=record.name,
            storage_id=record.storage_id,
            mime_type=record.mime_type,
            size=record.size,
            created_at=record.created_at,
            updated_at=record.updated_at,
            width=record.width,
            height=record.height,
            metadata=record.metadata_text,
            tags=list(record.tags or []),
            folder_id=record.folder_id,
            is_defective=bool(record.is_defective),
            defect_type=record.defect_type,
            data=data,
        )

    def _find(self, owner_id: str, image_id: str) -> Optional[ImageRecord]:
        return self.session.exec(
            select(ImageRecord).where(
                ImageRecord.owner_id == owner_id,
                ImageRecord.image_id == image_id,
            )
        ).first()

    def _resolve(self, record: ImageRecord) -> ImageDto:
        blob = self.blob_store.get(record.storage_id)
        if blob is None:
            # surfaced with empty content rather than hidden
            logger.warning(f"Image {record.image_id} references missing blob {record.storage_id}")
            return self._to_dto(record)
        return self._to_dto(record, data=blob.data)

    def list_for_owner(self, owner_id: str) -> List[ImageDto]:
        with storage_errors("image list"):
            records = self.session.exec(
                select(ImageRecord)
                .where(ImageRecord.owner_id == owner_id)
                .order_by(ImageRecord.created_at.desc())
            ).all()
        return [self._resolve(r) for r in records]

    def get_for_owner(self, owner_id: str, image_id: str, with_content: bool = False) -> Optional[ImageDto]:
        with storage_errors("image read"):
            record = self._find(owner_id, image_id)
        if not record:
            return None
        return self._resolve(record) if with_content else self._to_dto(record)

    def create(self, owner_id: str, data: bytes, mime_type: str, name: str,
               width: Optional[int] = None, height: Optional[int] = None) -> ImageDto:
        # Two phases: if the insert below fails the blob is left as an orphan
        # for cleanup_orphans to reclaim.
        storage_id = self.blob_store.store(data, mime_type, owner_id=owner_id)
        record = ImageRecord(
            owner_id=owner_id,
            name=name,
            storage_id=storage_id,
            mime_type=mime_type,
            size=len(data),
            width=width,
            height=height,
            tags=[],
            folder_id=None,
            is_defective=False,
        )
        with storage_errors("image create"):
            try:
                self.session.add(record)
                self.session.commit()
                self.session.refresh(record)
            except SQLAlchemyError:
                self.session.rollback()
                logger.error(f"Image insert failed; blob {storage_id} may be orphaned")
                raise
        logger.info(f"Image {record.image_id} created for owner {owner_id}")
        return self._to_dto(record, data=data)

    def _update_where(self, owner_id: str, image_id: str, values: dict, *conditions) -> bool:
        values["updated_at"] = utcnow()
        with storage_errors("image update"):
            try:
                result = self.session.exec(
                    update(ImageRecord)
                    .where(
                        ImageRecord.owner_id == owner_id,
                        ImageRecord.image_id == image_id,
                        *conditions,
                    )
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return result.rowcount > 0

    def update(self, owner_id: str, image_id: str, patch: ImagePatch) -> bool:
        changes = patch.changes()
        if not changes:
            with storage_errors("image read"):
                return self._find(owner_id, image_id) is not None
        values = {_PATCH_COLUMNS[k]: v for k, v in changes.items()}
        return self._update_where(owner_id, image_id, values)

    def move_to_bin(self, owner_id: str, image_id: str, defect_type: str) -> bool:
        return self._update_where(
            owner_id, image_id,
            {"is_defective": True, "defect_type": defect_type},
            ImageRecord.is_defective == False,  # noqa: E712
        )

    def restore(self, owner_id: str, image_id: str) -> bool:
        return self._update_where(
            owner_id, image_id,
            {"is_defective": False, "defect_type": None},
            ImageRecord.is_defective == True,  # noqa: E712
        )

    def count_references(self, storage_id: str) -> int:
        with storage_errors("reference count"):
            return self.session.exec(
                select(func.count()).select_from(ImageRecord).where(ImageRecord.storage_id == storage_id)
            ).one()

    def permanently_delete(self, owner_id: str, image_id: str) -> bool:
        """Remove the record and, when it was the last reference, its blob.

        Runs as one transaction: on failure neither the record nor the blob
        is touched. Two concurrent deletes of the last two references can
        each see one remaining and both keep the blob; cleanup_orphans is the
        backstop for that case.
        """
        with storage_errors("image delete"):
            try:
                record = self._find(owner_id, image_id)
                if not record:
                    return False
                storage_id = record.storage_id
                self.session.delete(record)
                self.session.flush()

                blob_deleted = False
                if self.count_references(storage_id) == 0:
                    blob_deleted = self.blob_store.delete(storage_id, commit=False)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise
        logger.info(f"Image {image_id} permanently deleted (blob removed: {blob_deleted})")
        return True
