
# Schemas package (re-export feature modules for stable imports)
from .images.image import *
from .folders.folder import *
from .sharing.gallery import *
from .account.account import *
from .settings.settings import *
