import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..ports.image_repo import ImageRecordRepository
from ..ports.shared_gallery_repo import SharedGalleryRepository, SnapshotDto, SnapshotImage
from ...config import settings
from ...exceptions import NotFoundError, UnauthorizedError, ValidationError
from ...media_utils import to_data_uri
from ...utils import utcnow

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200


def _is_expired(snapshot: SnapshotDto) -> bool:
    return snapshot.expires_at is not None and snapshot.expires_at < utcnow()


@dataclass
class SharingService:
    """Publishes point-in-time copies of a user's images behind a share id."""

    share_repo: SharedGalleryRepository
    image_repo: ImageRecordRepository
    base_url: Optional[str] = None

    def share_url(self, share_id: str) -> str:
        base = (self.base_url or settings.BASE_URL).rstrip("/")
        return f"{base}/share/{share_id}"

    def _snapshot_images(self, owner_id: str, image_ids: List[str]) -> List[SnapshotImage]:
        images = []
        seen = set()
        for image_id in image_ids:
            if image_id in seen:
                continue
            seen.add(image_id)
            image = self.image_repo.get_for_owner(owner_id, image_id, with_content=True)
            if image is None or image.is_binned:
                logger.info(f"Skipping image {image_id}: not a live image of owner {owner_id}")
                continue
            if not image.has_content:
                logger.warning(f"Skipping image {image_id}: content missing")
                continue
            images.append(SnapshotImage(
                id=image.id,
                name=image.name,
                data_uri=to_data_uri(image.data, image.mime_type),
                metadata=image.metadata,
                tags=list(image.tags),
                is_defective=image.is_defective,
                defect_type=image.defect_type,
            ))
        return images

    def create(self, owner_id: str, title: str, image_ids: List[str],
               expiration_days: Optional[float] = None) -> Dict[str, str]:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        if expiration_days is not None and expiration_days <= 0:
            raise ValidationError("expiration_days must be positive")
        if not image_ids:
            raise ValidationError("At least one image is required")

        images = self._snapshot_images(owner_id, image_ids)
        if not images:
            raise ValidationError("No valid images found")

        share_id = self.share_repo.create_snapshot(owner_id, title, images, expiration_days)
        return {"share_id": share_id, "share_url": self.share_url(share_id)}

    def view(self, share_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        snapshot = self.share_repo.get(share_id)
        if snapshot is None:
            raise NotFoundError("Shared gallery not found or expired")
        return {
            "share_id": snapshot.id,
            "title": snapshot.title,
            "images": [img.to_dict() for img in snapshot.images],
            "created_at": snapshot.created_at,
            "expires_at": snapshot.expires_at,
            "access_count": snapshot.access_count,
            "is_owner": viewer_id is not None and viewer_id == snapshot.owner_id,
        }

    def add_images(self, owner_id: str, share_id: str, image_ids: List[str]) -> int:
        existing = self.share_repo.peek(share_id)
        if existing is None or not existing.is_active or _is_expired(existing):
            raise NotFoundError("Shared gallery not found")
        if existing.owner_id != owner_id:
            raise UnauthorizedError("Not authorized to modify this gallery")
        if not image_ids:
            raise ValidationError("At least one image is required")

        images = self._snapshot_images(owner_id, image_ids)
        if not images:
            raise ValidationError("No valid images found")
        added = self.share_repo.add_images(owner_id, share_id, images)
        if added is None:
            # expired or deleted between the check and the write
            raise NotFoundError("Shared gallery not found")
        return added

    def list(self, owner_id: str) -> List[SnapshotDto]:
        return self.share_repo.list_for_owner(owner_id)

    def delete(self, owner_id: str, share_id: str) -> None:
        if not self.share_repo.delete(owner_id, share_id):
            raise NotFoundError("Shared gallery not found")
