from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class FolderDto:
    id: str
    owner_id: str
    name: str
    created_at: datetime
    updated_at: datetime


class FolderRepository(Protocol):
    def list_for_owner(self, owner_id: str) -> List[FolderDto]:
        ...

    def get_for_owner(self, owner_id: str, folder_id: str) -> Optional[FolderDto]:
        ...

    def create(self, owner_id: str, name: str) -> FolderDto:
        ...

    def delete(self, owner_id: str, folder_id: str) -> bool:
        ...
