"""Result types returned by the stores, the resolver, and the facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from sharegate.access.roles import Role
    from sharegate.models.files import FileRecordBase
    from sharegate.models.shares import FileShareBase


@dataclass
class ActorInfo:
    """Public identity of an actor."""

    id: str
    username: str
    email: str | None = None


@dataclass
class ShareInfo:
    """Share metadata for owner-facing management views.

    ``grantee`` is set for named grants, ``token`` for the link.
    """

    id: str
    file_id: str
    owner_id: str
    grantee_id: str | None = None
    grantee: ActorInfo | None = None
    token: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    active: bool = True

    @property
    def is_link(self) -> bool:
        return self.token is not None


@dataclass
class SharedFile:
    """A file actively shared with an actor ("shared with me" view)."""

    file_id: str
    original_name: str
    file_type: str
    size_bytes: int
    uploaded_at: datetime | None
    owner_id: str
    owner_name: str | None
    shared_at: datetime | None
    expires_at: datetime | None = None


@dataclass
class TokenAccess:
    """Result of resolving a link token."""

    file_id: str
    role: Role


@dataclass
class GrantUpsert:
    """Result of a single grant upsert."""

    created: bool
    share: FileShareBase


@dataclass
class LinkUpsert:
    """Result of a link upsert."""

    token: str
    is_new: bool
    share: FileShareBase


@dataclass
class BatchShareResult:
    """Per-target outcome of a batch share.

    ``invalid`` lists target ids that did not refer to a known actor; they
    are reported, not raised.
    """

    created: list[ShareInfo] = field(default_factory=list)
    updated: list[ShareInfo] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        """True when some, but not all, targets were invalid."""
        return bool(self.invalid) and bool(self.created or self.updated)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated)


@dataclass
class LinkResult:
    """Facade result of creating or refreshing a share link."""

    token: str
    is_new: bool
    expires_at: datetime | None = None
    url: str | None = None


@dataclass
class AuditEntry:
    """An audit record joined with the acting actor's identity."""

    id: int
    file_id: str
    actor_id: str
    action: str
    role: str
    created_at: datetime
    username: str | None = None
    email: str | None = None


@dataclass
class DownloadGrant:
    """Authorization to stream a file's bytes, returned after the audit write."""

    file: FileRecordBase
    role: Role
