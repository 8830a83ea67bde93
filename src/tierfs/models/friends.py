"""Friendship model — directional trust between two identities.

A row ``(user_id=alice, friend_id=bob)`` means alice trusts bob: bob is
evaluated against the friend tier of alice's resources.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


class FriendshipBase(SQLModel):
    """Base fields for a friendship record. Subclass with ``table=True`` for a concrete table."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    friend_id: str = Field(index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class Friendship(FriendshipBase, table=True):
    """Default friendship table, ``tierfs_friendships``."""

    __tablename__ = "tierfs_friendships"
    __table_args__ = (UniqueConstraint("user_id", "friend_id"),)
