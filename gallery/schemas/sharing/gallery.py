# gallery/schemas/sharing/gallery.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class SharedGalleryCreate(BaseModel):
    title: str
    image_ids: List[str] = Field(default_factory=list)
    expiration_days: Optional[float] = None


class AddImagesRequest(BaseModel):
    image_ids: List[str] = Field(default_factory=list)


class SharedGalleryCreated(BaseModel):
    share_id: str
    share_url: str


class SharedImage(BaseModel):
    id: str
    name: str
    data_uri: str
    metadata: Optional[str] = None
    tags: List[str] = []
    is_defective: bool = False
    defect_type: Optional[str] = None


class SharedGallerySummary(BaseModel):
    share_id: str
    share_url: str
    title: str
    image_count: int
    created_at: datetime
    expires_at: Optional[datetime] = None
    access_count: int


class SharedGalleryView(BaseModel):
    share_id: str
    title: str
    images: List[SharedImage]
    created_at: datetime
    expires_at: Optional[datetime] = None
    access_count: int
    is_owner: bool
