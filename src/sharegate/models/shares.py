"""FileShare model: named grants and share links in one relation.

A row is either a *grant* (``grantee_id`` set, ``token`` NULL) or a
*link* (``token`` set, ``grantee_id`` NULL).  The table enforces:

- exactly one of ``grantee_id`` / ``token`` per row,
- one grant per ``(file_id, grantee_id)``,
- globally unique tokens,
- at most one link per file (partial unique index on ``file_id``).
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

_LINK_ROWS = text("token IS NOT NULL")


class FileShareBase(SQLModel):
    """Base fields for a share record. Subclass with ``table=True`` for a concrete table."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    file_id: str = Field(index=True)
    owner_id: str = Field(default="")
    grantee_id: str | None = Field(default=None, index=True)
    token: str | None = Field(default=None, unique=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    expires_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )

    @property
    def is_link(self) -> bool:
        return self.token is not None


def share_table_args(tablename: str) -> tuple:
    """Constraints for a concrete share table named *tablename*."""
    return (
        CheckConstraint(
            "(grantee_id IS NULL) <> (token IS NULL)",
            name=f"ck_{tablename}_variant",
        ),
        UniqueConstraint("file_id", "grantee_id", name=f"uq_{tablename}_grant"),
        Index(
            f"uq_{tablename}_link",
            "file_id",
            unique=True,
            sqlite_where=_LINK_ROWS,
            postgresql_where=_LINK_ROWS,
        ),
    )


class FileShare(FileShareBase, table=True):
    """Default share table, ``sharegate_file_shares``."""

    __tablename__ = "sharegate_file_shares"
    __table_args__ = share_table_args("sharegate_file_shares")
