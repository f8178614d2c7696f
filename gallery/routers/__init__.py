# Routers package
from . import images_router
from . import folders_router
from . import sharing_router
from . import account_router
from . import maintenance_router

__all__ = [
    "images_router",
    "folders_router",
    "sharing_router",
    "account_router",
    "maintenance_router",
]
