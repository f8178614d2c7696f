import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..config import settings
from ..database import get_session
from ..utils import decode_jwt_token
from ..application.ports.ai_provider import ImageAnalyzer
from ..application.services.image_service import ImageService
from ..application.services.folder_service import FolderService
from ..application.services.sharing_service import SharingService
from ..application.services.account_service import AccountService
from ..application.services.maintenance_service import MaintenanceService
from ..infrastructure.persistence.sqlalchemy.repositories.blob_store_sql import SqlBlobStore
from ..infrastructure.persistence.sqlalchemy.repositories.image_repository_sql import SqlImageRecordRepository
from ..infrastructure.persistence.sqlalchemy.repositories.folder_repository_sql import SqlFolderRepository
from ..infrastructure.persistence.sqlalchemy.repositories.shared_gallery_repository_sql import SqlSharedGalleryRepository
from ..infrastructure.persistence.sqlalchemy.repositories.account_repository_sql import SqlAccountRepository
from ..infrastructure.audit.std_logger import StdAuditLogger

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer()
optional_scheme = HTTPBearer(auto_error=False)


def _user_id_from_token(token: str) -> str:
    payload = decode_jwt_token(token)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    return str(user_id)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> str:
    return _user_id_from_token(credentials.credentials)


def get_optional_user(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_scheme)) -> Optional[str]:
    """Viewer id for public endpoints; anonymous when no valid token is sent."""
    token = credentials.credentials if credentials else request.cookies.get("access_token")
    if not token:
        return None
    payload = decode_jwt_token(token)
    return str(payload["sub"]) if payload and payload.get("sub") else None


def get_admin_user(current_user: str = Depends(get_current_user)) -> str:
    if current_user not in settings.admin_user_ids_list:
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return current_user


@lru_cache()
def get_analyzer() -> Optional[ImageAnalyzer]:
    if not settings.GEMINI_API_KEY:
        logger.info("GEMINI_API_KEY not set, uploads will skip AI analysis")
        return None
    from ..infrastructure.ai.gemini_provider import GeminiImageAnalyzer
    return GeminiImageAnalyzer()


def get_audit_logger() -> StdAuditLogger:
    return StdAuditLogger()


def get_image_service(
    session: Session = Depends(get_session),
    analyzer: Optional[ImageAnalyzer] = Depends(get_analyzer),
    audit: StdAuditLogger = Depends(get_audit_logger),
) -> ImageService:
    return ImageService(
        image_repo=SqlImageRecordRepository(session),
        folder_repo=SqlFolderRepository(session),
        analyzer=analyzer,
        audit=audit,
    )


def get_folder_service(session: Session = Depends(get_session)) -> FolderService:
    return FolderService(folder_repo=SqlFolderRepository(session))


def get_sharing_service(session: Session = Depends(get_session)) -> SharingService:
    return SharingService(
        share_repo=SqlSharedGalleryRepository(session),
        image_repo=SqlImageRecordRepository(session),
    )


def get_account_service(
    session: Session = Depends(get_session),
    audit: StdAuditLogger = Depends(get_audit_logger),
) -> AccountService:
    return AccountService(account_repo=SqlAccountRepository(session), audit=audit)


def get_maintenance_service(
    session: Session = Depends(get_session),
    audit: StdAuditLogger = Depends(get_audit_logger),
) -> MaintenanceService:
    return MaintenanceService(
        blob_store=SqlBlobStore(session),
        share_repo=SqlSharedGalleryRepository(session),
        audit=audit,
    )
