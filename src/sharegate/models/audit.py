"""AuditRecord model: append-only log of actions taken against a file."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class AuditRecordBase(SQLModel):
    """Base fields for an audit entry. Subclass with ``table=True`` for a concrete table.

    The integer primary key doubles as insertion order, so entries written
    within the same clock tick still sort deterministically.
    """

    id: int | None = Field(default=None, primary_key=True)
    file_id: str = Field(index=True)
    actor_id: str = Field(index=True)
    action: str
    role: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class AuditRecord(AuditRecordBase, table=True):
    """Default audit table, ``sharegate_audit_log``."""

    __tablename__ = "sharegate_audit_log"
