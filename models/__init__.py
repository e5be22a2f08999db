from .bucket import Bucket
from .member import Member
from .invitation import Invitation
from .file_ownership import FileOwnership
from .share import Share

__all__ = [
    "Bucket",
    "Member",
    "Invitation",
    "FileOwnership",
    "Share",
]
