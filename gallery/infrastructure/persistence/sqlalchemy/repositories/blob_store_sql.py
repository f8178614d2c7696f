import logging
from typing import Optional

from sqlmodel import Session, select
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from .....db.models import ImageBlob, ImageRecord
from .....application.ports.blob_store import BlobStore, BlobDto
from .....database import storage_errors
from .....media_utils import checksum

logger = logging.getLogger(__name__)


class SqlBlobStore(BlobStore):
    """Content-addressed blob storage in the `image_blobs` table.

    Dedup is a lookup-then-insert and is not serialized: two concurrent
    uploads of identical bytes can both insert. Lookups take the oldest row
    for a checksum and cleanup_orphans reclaims the unreferenced copy.
    """

    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, blob: ImageBlob) -> BlobDto:
        return BlobDto(
            id=blob.id,
            data=blob.data,
            mime_type=blob.mime_type,
            size=blob.size,
            checksum=blob.checksum,
            created_at=blob.created_at,
        )

    def store(self, data: bytes, mime_type: str, owner_id: Optional[str] = None) -> str:
        digest = checksum(data)
        with storage_errors("blob store"):
            existing = self.session.exec(
                select(ImageBlob.id)
                .where(ImageBlob.checksum == digest)
                .order_by(ImageBlob.created_at)
            ).first()
            if existing:
                logger.debug(f"Blob dedup hit for checksum {digest[:12]}")
                return existing

            blob = ImageBlob(
                data=data,
                mime_type=mime_type,
                size=len(data),
                checksum=digest,
                owner_id=owner_id,
            )
            blob_id = blob.id
            try:
                self.session.add(blob)
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        logger.info(f"Stored blob {blob_id} ({len(data)} bytes)")
        return blob_id

    def get(self, storage_id: str) -> Optional[BlobDto]:
        with storage_errors("blob read"):
            blob = self.session.exec(select(ImageBlob).where(ImageBlob.id == storage_id)).first()
        return self._to_dto(blob) if blob else None

    def delete(self, storage_id: str, commit: bool = True) -> bool:
        """Physically remove a blob. Reference checks are the caller's job."""
        with storage_errors("blob delete"):
            try:
                result = self.session.exec(
                    delete(ImageBlob)
                    .where(ImageBlob.id == storage_id)
                    .execution_options(synchronize_session=False)
                )
                if commit:
                    self.session.commit()
            except SQLAlchemyError:
                if commit:
                    self.session.rollback()
                raise
        return result.rowcount > 0

    def cleanup_orphans(self) -> int:
        """Delete every blob no image record references."""
        with storage_errors("orphan cleanup"):
            try:
                referenced = select(ImageRecord.storage_id).distinct()
                result = self.session.exec(
                    delete(ImageBlob)
                    .where(ImageBlob.id.not_in(referenced))
                    .execution_options(synchronize_session=False)
                )
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        deleted = result.rowcount
        if deleted:
            logger.info(f"Removed {deleted} orphaned blob(s)")
        return deleted
