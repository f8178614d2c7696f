from typing import Any, Dict, Optional, Protocol
from dataclasses import dataclass, asdict
from datetime import datetime


@dataclass
class UserDto:
    id: str
    email: str
    name: Optional[str]
    created_at: datetime


@dataclass
class DeletionReport:
    images: int
    image_storage_blobs: int
    folders: int
    shared_galleries: int
    user_settings: int
    user_account_deleted: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AccountRepository(Protocol):
    def create(self, email: str, name: Optional[str]) -> UserDto:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def get_settings(self, user_id: str) -> Optional[Dict[str, Any]]:
        ...

    def save_settings(self, user_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete_account(self, user_id: str) -> DeletionReport:
        ...
