from typing import Any, Dict, List, Optional, Protocol
from dataclasses import dataclass, field, asdict
from datetime import datetime


@dataclass
class SnapshotImage:
    """Copied image descriptor. Content is inlined, never a storage reference."""
    id: str
    name: str
    data_uri: str
    metadata: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    is_defective: bool = False
    defect_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SnapshotImage":
        return cls(
            id=raw["id"],
            name=raw.get("name", ""),
            data_uri=raw.get("data_uri", ""),
            metadata=raw.get("metadata"),
            tags=list(raw.get("tags") or []),
            is_defective=bool(raw.get("is_defective", False)),
            defect_type=raw.get("defect_type"),
        )


@dataclass
class SnapshotDto:
    id: str
    owner_id: str
    title: str
    images: List[SnapshotImage]
    created_at: datetime
    expires_at: Optional[datetime]
    access_count: int
    is_active: bool


class SharedGalleryRepository(Protocol):
    def create_snapshot(self, owner_id: str, title: str, images: List[SnapshotImage],
                        expiration_days: Optional[float] = None) -> str:
        ...

    def peek(self, share_id: str) -> Optional[SnapshotDto]:
        ...

    def get(self, share_id: str) -> Optional[SnapshotDto]:
        ...

    def add_images(self, owner_id: str, share_id: str, images: List[SnapshotImage]) -> Optional[int]:
        ...

    def delete(self, owner_id: str, share_id: str) -> bool:
        ...

    def list_for_owner(self, owner_id: str) -> List[SnapshotDto]:
        ...

    def cleanup_expired(self) -> int:
        ...
