# gallery/db/models/media/folder.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utcnow, new_folder_id

class Folder(SQLModel, table=True):
    __tablename__ = "folders"
    pk: Optional[int] = Field(default=None, primary_key=True)
    folder_id: str = Field(default_factory=new_folder_id, max_length=64, unique=True)
    owner_id: str = Field(foreign_key="users.id", index=True)
    name: str = Field(max_length=100)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
