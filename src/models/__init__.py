from .base import Base
from .user import UserModel
from .content import ContentModel
from .token import TokenModel
from .library_entry import LibraryEntryModel

__all__ = [
    "Base",
    "UserModel",
    "ContentModel",
    "TokenModel",
    "LibraryEntryModel",
]
