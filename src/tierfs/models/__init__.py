"""SQLModel tables for permission records and friendships."""

from tierfs.models.friends import Friendship, FriendshipBase
from tierfs.models.permissions import PermissionRecord, PermissionRecordBase

__all__ = [
    "Friendship",
    "FriendshipBase",
    "PermissionRecord",
    "PermissionRecordBase",
]
