import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ..ports.blob_store import BlobStore
from ..ports.shared_gallery_repo import SharedGalleryRepository
from ..ports.audit_logger import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class MaintenanceService:
    blob_store: BlobStore
    share_repo: SharedGalleryRepository
    audit: Optional[AuditLogger] = None

    def run(self, requested_by: Optional[str] = None) -> Dict[str, int]:
        orphans = self.blob_store.cleanup_orphans()
        expired = self.share_repo.cleanup_expired()
        result = {"orphaned_blobs_removed": orphans, "galleries_expired": expired}
        logger.info(f"Maintenance sweep finished: {result}")
        if self.audit:
            self.audit.log("maintenance.cleanup", user_id=requested_by, details=result)
        return result
