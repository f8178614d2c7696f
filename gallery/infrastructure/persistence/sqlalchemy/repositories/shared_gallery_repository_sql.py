import logging
from datetime import timedelta
from typing import List, Optional

from sqlmodel import Session, select
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import SQLAlchemyError

from .....db.models import SharedGallery
from .....application.ports.shared_gallery_repo import SharedGalleryRepository, SnapshotDto, SnapshotImage
from .....database import storage_errors
from .....utils import utcnow, new_share_id

logger = logging.getLogger(__name__)


class SqlSharedGalleryRepository(SharedGalleryRepository):
    """Persistent store of shared-gallery snapshots.

    Expiry is lazy: a snapshot past `expires_at` is flipped to inactive the
    next time it is read (or by cleanup_expired). Nothing here deletes a
    snapshot except an explicit owner delete.
    """

    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, row: SharedGallery) -> SnapshotDto:
        return SnapshotDto(
            id=row.share_id,
            owner_id=row.owner_id,
            title=row.title,
            images=[SnapshotImage.from_dict(raw) for raw in (row.image_data or [])],
            created_at=row.created_at,
            expires_at=row.expires_at,
            access_count=row.access_count,
            is_active=row.is_active,
        )

    def _find(self, share_id: str) -> Optional[SharedGallery]:
        return self.session.exec(select(SharedGallery).where(SharedGallery.share_id == share_id)).first()

    def _deactivate(self, *share_ids: str) -> int:
        result = self.session.exec(
            update(SharedGallery)
            .where(SharedGallery.share_id.in_(share_ids), SharedGallery.is_active == True)  # noqa: E712
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def create_snapshot(self, owner_id: str, title: str, images: List[SnapshotImage],
                        expiration_days: Optional[float] = None) -> str:
        now = utcnow()
        row = SharedGallery(
            share_id=new_share_id(),
            owner_id=owner_id,
            title=title,
            image_data=[img.to_dict() for img in images],
            created_at=now,
            expires_at=now + timedelta(days=expiration_days) if expiration_days else None,
            access_count=0,
            is_active=True,
        )
        share_id = row.share_id
        with storage_errors("snapshot create"):
            try:
                self.session.add(row)
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        logger.info(f"Shared gallery {share_id} created with {len(images)} image(s)")
        return share_id

    def peek(self, share_id: str) -> Optional[SnapshotDto]:
        """Read without counting an access or applying expiry."""
        with storage_errors("snapshot read"):
            row = self._find(share_id)
        return self._to_dto(row) if row else None

    def get(self, share_id: str) -> Optional[SnapshotDto]:
        now = utcnow()
        with storage_errors("snapshot read"):
            try:
                row = self._find(share_id)
                if row is None or not row.is_active:
                    return None
                if row.expires_at is not None and row.expires_at < now:
                    self._deactivate(share_id)
                    self.session.commit()
                    logger.info(f"Shared gallery {share_id} expired")
                    return None

                # the expiry check is repeated in the UPDATE so an access is
                # never counted against a snapshot that expired meanwhile
                result = self.session.exec(
                    update(SharedGallery)
                    .where(
                        SharedGallery.share_id == share_id,
                        SharedGallery.is_active == True,  # noqa: E712
                        or_(SharedGallery.expires_at.is_(None), SharedGallery.expires_at >= now),
                    )
                    .values(access_count=SharedGallery.access_count + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    self.session.rollback()
                    return None
                self.session.commit()
                self.session.refresh(row)
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return self._to_dto(row)

    def add_images(self, owner_id: str, share_id: str, images: List[SnapshotImage]) -> Optional[int]:
        """Append images not already present. None when no active snapshot of this owner matches."""
        now = utcnow()
        with storage_errors("snapshot update"):
            try:
                row = self.session.exec(
                    select(SharedGallery).where(
                        SharedGallery.share_id == share_id,
                        SharedGallery.owner_id == owner_id,
                        SharedGallery.is_active == True,  # noqa: E712
                    )
                ).first()
                if row is None:
                    return None
                if row.expires_at is not None and row.expires_at < now:
                    self._deactivate(share_id)
                    self.session.commit()
                    logger.info(f"Shared gallery {share_id} expired")
                    return None
                present = {raw.get("id") for raw in (row.image_data or [])}
                appended = []
                for img in images:
                    if img.id in present:
                        continue
                    present.add(img.id)
                    appended.append(img.to_dict())
                if appended:
                    # reassign so the JSON column is flagged dirty
                    row.image_data = list(row.image_data or []) + appended
                    self.session.add(row)
                    self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return len(appended)

    def delete(self, owner_id: str, share_id: str) -> bool:
        with storage_errors("snapshot delete"):
            try:
                result = self.session.exec(
                    delete(SharedGallery)
                    .where(SharedGallery.owner_id == owner_id, SharedGallery.share_id == share_id)
                    .execution_options(synchronize_session=False)
                )
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return result.rowcount > 0

    def list_for_owner(self, owner_id: str) -> List[SnapshotDto]:
        now = utcnow()
        with storage_errors("snapshot list"):
            try:
                rows = self.session.exec(
                    select(SharedGallery)
                    .where(SharedGallery.owner_id == owner_id, SharedGallery.is_active == True)  # noqa: E712
                    .order_by(SharedGallery.created_at.desc())
                ).all()
                live, expired = [], []
                for row in rows:
                    if row.expires_at is not None and row.expires_at < now:
                        expired.append(row.share_id)
                    else:
                        live.append(self._to_dto(row))
                if expired:
                    self._deactivate(*expired)
                    self.session.commit()
                    logger.info(f"Marked {len(expired)} expired gallery(ies) inactive for owner {owner_id}")
            except SQLAlchemyError:
                self.session.rollback()
                raise
        return live

    def cleanup_expired(self) -> int:
        with storage_errors("expiry sweep"):
            try:
                result = self.session.exec(
                    update(SharedGallery)
                    .where(SharedGallery.expires_at < utcnow(), SharedGallery.is_active == True)  # noqa: E712
                    .values(is_active=False)
                    .execution_options(synchronize_session=False)
                )
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                raise
        if result.rowcount:
            logger.info(f"Expired {result.rowcount} shared gallery(ies)")
        return result.rowcount
