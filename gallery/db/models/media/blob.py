# gallery/db/models/media/blob.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid
from sqlalchemy import Column, LargeBinary

from ....utils import utcnow

class ImageBlob(SQLModel, table=True):
    """Raw image bytes, stored once per distinct SHA-256 checksum.

    The checksum index is not unique: two concurrent uploads of
    the same bytes may both insert, and lookups simply take the oldest row.
    Rows are never updated after insert.
    """
    __tablename__ = "image_blobs"
    id: str = Field(default_factory=lambda: uuid.uuid4().hex, primary_key=True)
    data: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    mime_type: str = Field(max_length=100)
    size: int
    checksum: str = Field(max_length=64, index=True)
    # first uploader; dedup hits from other users do not change it
    owner_id: Optional[str] = Field(default=None, max_length=36, index=True)
    created_at: datetime = Field(default_factory=utcnow)
