# gallery/schemas/account/account.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class RegisterRequest(BaseModel):
    email: str
    name: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: datetime


class RegisterResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class DeletionReportResponse(BaseModel):
    images: int
    image_storage_blobs: int
    folders: int
    shared_galleries: int
    user_settings: int
    user_account_deleted: bool


class MaintenanceReport(BaseModel):
    orphaned_blobs_removed: int
    galleries_expired: int
