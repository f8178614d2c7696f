import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..ports.account_repo import AccountRepository, UserDto, DeletionReport
from ..ports.audit_logger import AuditLogger
from ...exceptions import GalleryError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "cloud_storage": {"provider": "", "enabled": False},
    "auto_sync": False,
    "sync_interval": 30,
}


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass
class AccountService:
    account_repo: AccountRepository
    audit: Optional[AuditLogger] = None

    def register(self, email: str, name: Optional[str] = None) -> UserDto:
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationError("A valid email is required")
        if self.account_repo.get_by_email(email):
            raise ValidationError("Email already registered", status_code=409)
        user = self.account_repo.create(email, (name or "").strip() or None)
        logger.info(f"Registered user {user.id}")
        return user

    def get(self, user_id: str) -> UserDto:
        user = self.account_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("Account not found")
        return user

    def get_settings(self, user_id: str) -> Dict[str, Any]:
        stored = self.account_repo.get_settings(user_id) or {}
        return _merge(DEFAULT_SETTINGS, stored)

    def update_settings(self, user_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        merged = _merge(self.get_settings(user_id), values)
        return self.account_repo.save_settings(user_id, merged)

    def delete_account(self, user_id: str) -> DeletionReport:
        """Remove every record owned by the user, or nothing at all."""
        try:
            report = self.account_repo.delete_account(user_id)
        except GalleryError as e:
            if self.audit:
                self.audit.log("account.delete", user_id=user_id, success=False, details={"error": e.detail})
            raise
        if self.audit:
            self.audit.log("account.delete", user_id=user_id, details=report.to_dict())
        logger.info(f"Account {user_id} deleted: {report.to_dict()}")
        return report
