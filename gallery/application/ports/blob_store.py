from typing import Optional, Protocol
from dataclasses import dataclass
from datetime import datetime


@dataclass
class BlobDto:
    id: str
    data: bytes
    mime_type: str
    size: int
    checksum: str
    created_at: datetime


class BlobStore(Protocol):
    def store(self, data: bytes, mime_type: str, owner_id: Optional[str] = None) -> str:
        ...

    def get(self, storage_id: str) -> Optional[BlobDto]:
        ...

    def delete(self, storage_id: str, commit: bool = True) -> bool:
        ...

    def cleanup_orphans(self) -> int:
        ...
