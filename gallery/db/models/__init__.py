# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.settings import UserSettings
from .media.blob import ImageBlob
from .media.image import ImageRecord
from .media.folder import Folder
from .sharing.gallery import SharedGallery

__all__ = [
    "User",
    "UserSettings",
    "ImageBlob",
    "ImageRecord",
    "Folder",
    "SharedGallery",
]
