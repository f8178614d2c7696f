from typing import List, Optional, Protocol
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


@dataclass
class ImageDto:
    id: str
    owner_id: str
    name: str
    storage_id: str
    mime_type: str
    size: int
    created_at: datetime
    updated_at: datetime
    width: Optional[int] = None
    height: Optional[int] = None
    metadata: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    folder_id: Optional[str] = None
    is_defective: bool = False
    defect_type: Optional[str] = None
    # resolved blob content; None when the storage id no longer resolves
    data: Optional[bytes] = None

    @property
    def is_binned(self) -> bool:
        return self.is_defective

    @property
    def has_content(self) -> bool:
        return self.data is not None


# patch fields whose columns cannot be cleared
_NOT_NULLABLE = ("name", "tags", "is_defective")


class ImagePatch(BaseModel):
    """The mutable fields of an image. Only fields that were set are written."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    metadata: Optional[str] = None
    tags: Optional[List[str]] = None
    folder_id: Optional[str] = None
    is_defective: Optional[bool] = None
    defect_type: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("name must not be empty")
        return v

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @model_validator(mode="after")
    def _no_null_for_required_columns(self) -> "ImagePatch":
        for name in _NOT_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ImageRecordRepository(Protocol):
    def list_for_owner(self, owner_id: str) -> List[ImageDto]:
        ...

    def get_for_owner(self, owner_id: str, image_id: str, with_content: bool = False) -> Optional[ImageDto]:
        ...

    def create(self, owner_id: str, data: bytes, mime_type: str, name: str,
               width: Optional[int] = None, height: Optional[int] = None) -> ImageDto:
        ...

    def update(self, owner_id: str, image_id: str, patch: ImagePatch) -> bool:
        ...

    def move_to_bin(self, owner_id: str, image_id: str, defect_type: str) -> bool:
        ...

    def restore(self, owner_id: str, image_id: str) -> bool:
        ...

    def permanently_delete(self, owner_id: str, image_id: str) -> bool:
        ...

    def count_references(self, storage_id: str) -> int:
        ...
