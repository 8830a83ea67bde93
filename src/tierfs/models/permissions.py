"""PermissionRecord model — the four-tier access record of one resource.

Provides ``PermissionRecordBase`` (non-table) and ``PermissionRecord``
(concrete table).  Subclass ``PermissionRecordBase`` with ``table=True`` and
a custom ``__tablename__`` to use a different table name.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class PermissionRecordBase(SQLModel):
    """Base fields for a permission record. Subclass with ``table=True`` for a concrete table."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    path: str = Field(index=True, unique=True)
    owner: str = Field(index=True)
    public: str = Field(default="")
    friend: str = Field(default="")
    private: str = Field(default="rw")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class PermissionRecord(PermissionRecordBase, table=True):
    """Default permission table, ``tierfs_permissions``."""

    __tablename__ = "tierfs_permissions"
