# gallery/schemas/settings/settings.py
from pydantic import BaseModel
from typing import Optional


class CloudStorageSettings(BaseModel):
    provider: str = ""
    enabled: bool = False


class AppSettings(BaseModel):
    cloud_storage: CloudStorageSettings = CloudStorageSettings()
    auto_sync: bool = False
    sync_interval: int = 30


class UpdateSettingsRequest(BaseModel):
    cloud_storage: Optional[CloudStorageSettings] = None
    auto_sync: Optional[bool] = None
    sync_interval: Optional[int] = None
