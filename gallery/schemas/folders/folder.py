# gallery/schemas/folders/folder.py
from pydantic import BaseModel
from datetime import datetime


class FolderCreate(BaseModel):
    name: str


class FolderResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
