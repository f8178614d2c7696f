# gallery/schemas/images/image.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class ImageResponse(BaseModel):
    id: str
    name: str
    mime_type: str
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    metadata: Optional[str] = None
    tags: List[str] = []
    folder_id: Optional[str] = None
    is_defective: bool = False
    defect_type: Optional[str] = None
    data_uri: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DataUriUploadRequest(BaseModel):
    data_uri: str
    filename: Optional[str] = None


class EditedCopyRequest(BaseModel):
    data_uri: str


class BulkDeleteRequest(BaseModel):
    image_ids: List[str] = Field(default_factory=list)


class BulkDeleteResponse(BaseModel):
    success_count: int
    failed_count: int


class DeleteImageResponse(BaseModel):
    id: str
    action: str
