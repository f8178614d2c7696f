# gallery/db/models/sharing/gallery.py
from typing import Optional, List, Dict, Any
from sqlmodel import SQLModel, Field
from datetime import datetime
from sqlalchemy import Column, JSON

from ....utils import utcnow, new_share_id

class SharedGallery(SQLModel, table=True):
    """Point-in-time copy of shared images; no live link to `images`."""
    __tablename__ = "shared_galleries"
    pk: Optional[int] = Field(default=None, primary_key=True)
    share_id: str = Field(default_factory=new_share_id, max_length=64, unique=True)
    owner_id: str = Field(foreign_key="users.id", index=True)
    title: str = Field(max_length=200)
    image_data: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = Field(default=None, index=True)
    access_count: int = Field(default=0)
    is_active: bool = Field(default=True, index=True)
