"""FileRecord model: file identity and its immutable owner.

Only metadata lives here; the bytes are referenced through the opaque
``storage_ref`` handed out by the blob store.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class FileRecordBase(SQLModel):
    """Base fields for an uploaded file. Subclass with ``table=True`` for a concrete table."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    owner_id: str = Field(index=True)
    original_name: str = Field(default="")
    file_type: str = Field(default="")
    size_bytes: int = Field(default=0)
    storage_ref: str = Field(default="")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class FileRecord(FileRecordBase, table=True):
    """Default file table, ``sharegate_files``."""

    __tablename__ = "sharegate_files"
