import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..ports.image_repo import ImageRecordRepository, ImageDto, ImagePatch
from ..ports.folder_repo import FolderRepository, FolderDto
from ..ports.ai_provider import ImageAnalyzer, ImageAnalysis
from ..ports.audit_logger import AuditLogger
from ...config import settings
from ...database import read_with_retry
from ...exceptions import AnalysisUnavailableError, GalleryError, NotFoundError, ValidationError
from ...media_utils import prepare_upload, parse_data_uri, display_name

logger = logging.getLogger(__name__)

MANUAL_BIN_REASON = "manual"


@dataclass
class BulkDeleteResult:
    success_count: int
    failed_count: int


@dataclass
class ImageService:
    image_repo: ImageRecordRepository
    folder_repo: FolderRepository
    analyzer: Optional[ImageAnalyzer] = None
    audit: Optional[AuditLogger] = None
    ai_timeout: float = field(default_factory=lambda: settings.AI_TIMEOUT_SECONDS)

    # ---- reads ----

    def list(self, owner_id: str) -> List[ImageDto]:
        return read_with_retry(lambda: self.image_repo.list_for_owner(owner_id))

    def get(self, owner_id: str, image_id: str, with_content: bool = False) -> ImageDto:
        image = read_with_retry(lambda: self.image_repo.get_for_owner(owner_id, image_id, with_content=with_content))
        if not image:
            raise NotFoundError("Image not found")
        return image

    def get_content(self, owner_id: str, image_id: str) -> Tuple[bytes, str]:
        image = self.get(owner_id, image_id, with_content=True)
        if not image.has_content:
            raise NotFoundError("Image data not found")
        return image.data, image.mime_type

    # ---- upload ----

    async def upload(self, owner_id: str, data: bytes, filename: Optional[str], content_type: Optional[str]) -> ImageDto:
        prepared = prepare_upload(data, content_type)
        image = self.image_repo.create(
            owner_id,
            prepared.data,
            prepared.mime_type,
            display_name(filename),
            width=prepared.width,
            height=prepared.height,
        )
        analyzed = await self._apply_analysis(owner_id, image)
        return analyzed or image

    async def upload_data_uri(self, owner_id: str, data_uri: str, filename: Optional[str] = None) -> ImageDto:
        data, mime_type = parse_data_uri(data_uri)
        return await self.upload(owner_id, data, filename, mime_type)

    async def _run_ai(self, image: ImageDto, folders: List[FolderDto]) -> Tuple[ImageAnalysis, Optional[str]]:
        analysis = await asyncio.to_thread(self.analyzer.analyze, image.data, image.mime_type)
        category = None
        if folders:
            try:
                category = await asyncio.to_thread(
                    self.analyzer.categorize, image.data, image.mime_type, [f.name for f in folders]
                )
            except AnalysisUnavailableError as e:
                logger.warning(f"Categorization unavailable for image {image.id}: {e.detail}")
        return analysis, category

    async def _apply_analysis(self, owner_id: str, image: ImageDto) -> Optional[ImageDto]:
        """Run the AI collaborator and write its result in one update.

        A timeout or provider failure leaves the record exactly as created.
        """
        if self.analyzer is None:
            return None
        folders = self.folder_repo.list_for_owner(owner_id)
        try:
            analysis, category = await asyncio.wait_for(self._run_ai(image, folders), timeout=self.ai_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"AI analysis timed out for image {image.id}")
            return None
        except AnalysisUnavailableError as e:
            logger.warning(f"AI analysis unavailable for image {image.id}: {e.detail}")
            return None

        changes = {"metadata": analysis.description, "tags": analysis.tags}
        if analysis.is_defective:
            changes["is_defective"] = True
            changes["defect_type"] = analysis.defect_type or "unknown"
        folder = self._match_folder(category, folders)
        if folder:
            changes["folder_id"] = folder.id

        self.image_repo.update(owner_id, image.id, ImagePatch(**changes))
        return self.image_repo.get_for_owner(owner_id, image.id, with_content=True)

    @staticmethod
    def _match_folder(category: Optional[str], folders: List[FolderDto]) -> Optional[FolderDto]:
        if not category:
            return None
        wanted = category.strip().lower()
        return next((f for f in folders if f.name.strip().lower() == wanted), None)

    # ---- edits ----

    def update(self, owner_id: str, image_id: str, patch: ImagePatch) -> ImageDto:
        changes = patch.changes()
        folder_id = changes.get("folder_id")
        if folder_id is not None and not self.folder_repo.get_for_owner(owner_id, folder_id):
            raise NotFoundError("Folder not found")
        if not self.image_repo.update(owner_id, image_id, patch):
            raise NotFoundError("Image not found")
        return self.get(owner_id, image_id)

    def save_edited_copy(self, owner_id: str, image_id: str, data: bytes, mime_type: str) -> ImageDto:
        """Store edited bytes as a new image; the source is left untouched."""
        source = self.get(owner_id, image_id)
        prepared = prepare_upload(data, mime_type)
        copy = self.image_repo.create(
            owner_id,
            prepared.data,
            prepared.mime_type,
            f"{source.name} (edited)",
            width=prepared.width,
            height=prepared.height,
        )
        self.image_repo.update(owner_id, copy.id, ImagePatch(
            metadata=source.metadata,
            tags=source.tags,
            folder_id=source.folder_id,
        ))
        return self.get(owner_id, copy.id, with_content=True)

    # ---- bin / delete ----

    def move_to_bin(self, owner_id: str, image_id: str, reason: str = MANUAL_BIN_REASON) -> None:
        if not self.image_repo.move_to_bin(owner_id, image_id, reason):
            self.get(owner_id, image_id)
            raise ValidationError("Image is already in the bin")

    def restore(self, owner_id: str, image_id: str) -> None:
        if not self.image_repo.restore(owner_id, image_id):
            self.get(owner_id, image_id)
            raise ValidationError("Image is not in the bin")

    def permanently_delete(self, owner_id: str, image_id: str) -> None:
        if not self.image_repo.permanently_delete(owner_id, image_id):
            raise NotFoundError("Image not found")
        if self.audit:
            self.audit.log("image.permanent_delete", user_id=owner_id, details={"image_id": image_id})

    def delete(self, owner_id: str, image_id: str) -> str:
        """Two-tier delete: an active image goes to the bin, a binned one is destroyed."""
        image = self.get(owner_id, image_id)
        if image.is_binned:
            self.permanently_delete(owner_id, image_id)
            return "deleted"
        self.move_to_bin(owner_id, image_id)
        return "binned"

    def bulk_delete(self, owner_id: str, image_ids: List[str]) -> BulkDeleteResult:
        if not isinstance(image_ids, list) or not image_ids or not all(isinstance(i, str) for i in image_ids):
            raise ValidationError("Image IDs array required")

        success = 0
        for image_id in image_ids:
            try:
                self.permanently_delete(owner_id, image_id)
                success += 1
            except GalleryError as e:
                logger.warning(f"Bulk delete skipped image {image_id}: {e.detail}")
        result = BulkDeleteResult(success_count=success, failed_count=len(image_ids) - success)
        if success == 0:
            raise ValidationError("No images could be deleted")
        return result
