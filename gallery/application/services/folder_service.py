from dataclasses import dataclass
from typing import List

from ..ports.folder_repo import FolderRepository, FolderDto
from ...exceptions import NotFoundError, ValidationError

MAX_FOLDER_NAME_LENGTH = 100


@dataclass
class FolderService:
    folder_repo: FolderRepository

    def list(self, owner_id: str) -> List[FolderDto]:
        return self.folder_repo.list_for_owner(owner_id)

    def create(self, owner_id: str, name: str) -> FolderDto:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Folder name is required")
        if len(name) > MAX_FOLDER_NAME_LENGTH:
            raise ValidationError(f"Folder name must be at most {MAX_FOLDER_NAME_LENGTH} characters")
        return self.folder_repo.create(owner_id, name)

    def delete(self, owner_id: str, folder_id: str) -> None:
        if not self.folder_repo.delete(owner_id, folder_id):
            raise NotFoundError("Folder not found")
