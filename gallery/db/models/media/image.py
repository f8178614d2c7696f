# gallery/db/models/media/image.py
from typing import Optional, List
from sqlmodel import SQLModel, Field
from datetime import datetime
from sqlalchemy import Column, JSON, Index, Text

from ....utils import utcnow, new_image_id

class ImageRecord(SQLModel, table=True):
    __tablename__ = "images"
    __table_args__ = (
        Index("ix_images_owner_image", "owner_id", "image_id"),
    )

    pk: Optional[int] = Field(default=None, primary_key=True)
    image_id: str = Field(default_factory=new_image_id, max_length=36, unique=True)
    owner_id: str = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=255)
    storage_id: str = Field(max_length=64, index=True)  # weak reference to image_blobs.id
    mime_type: str = Field(max_length=100)
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    metadata_text: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))  # AI description
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    folder_id: Optional[str] = Field(default=None, max_length=64, index=True)
    is_defective: bool = Field(default=False)
    defect_type: Optional[str] = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
