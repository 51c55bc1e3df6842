"""Actor model: the known principals files can be shared with."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class ActorBase(SQLModel):
    """Base fields for an actor. Subclass with ``table=True`` for a concrete table.

    Actor ids are issued by the external identity provider and trusted as given.
    """

    id: str = Field(primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )


class Actor(ActorBase, table=True):
    """Default actor table, ``sharegate_actors``."""

    __tablename__ = "sharegate_actors"
