"""ShareGrantStore: named, per-user access grants.

A grant's identity is ``(file_id, grantee_id)``.  Sharing the same file
with the same user again updates ``expires_at`` on the existing row, whether
that row is currently active or already expired.  The decision between
insert and update is made by the table's unique constraint inside a single
``INSERT … ON CONFLICT DO UPDATE`` statement.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlmodel import select

from sharegate.models.actors import Actor
from sharegate.models.files import FileRecord
from sharegate.models.shares import FileShare

from .actors import to_actor_info
from .dialect import upsert_returning
from .exceptions import InvalidInputError, NotFoundError
from .roles import AuditAction, Role
from .types import BatchShareResult, GrantUpsert, SharedFile, ShareInfo
from .utils import ensure_utc, is_active

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from sharegate.models.actors import ActorBase
    from sharegate.models.files import FileRecordBase
    from sharegate.models.shares import FileShareBase

    from .actors import ActorDirectory
    from .audit import AuditTrail
    from .ownership import FileOwnershipRegistry

logger = logging.getLogger(__name__)

_GRANT_KEYS = ["file_id", "grantee_id"]


def share_to_info(
    share: FileShareBase,
    grantee: ActorBase | None = None,
    now: datetime | None = None,
) -> ShareInfo:
    """Convert a share row to ShareInfo."""
    return ShareInfo(
        id=share.id,
        file_id=share.file_id,
        owner_id=share.owner_id,
        grantee_id=share.grantee_id,
        grantee=to_actor_info(grantee) if grantee is not None else None,
        token=share.token,
        created_at=ensure_utc(share.created_at),
        expires_at=ensure_utc(share.expires_at),
        active=is_active(share.expires_at, now),
    )


def normalize_targets(grantee_ids: Any) -> list[str]:
    """Validate a target list and return its ids as strings, de-duplicated in order."""
    if isinstance(grantee_ids, (str, bytes)) or not isinstance(grantee_ids, (list, tuple)):
        raise InvalidInputError("User IDs must be given as a list")
    if not grantee_ids:
        raise InvalidInputError("User IDs are required")

    targets: list[str] = []
    for raw in grantee_ids:
        if isinstance(raw, bool) or not isinstance(raw, (str, int)):
            raise InvalidInputError(f"Invalid user id: {raw!r}")
        target = str(raw).strip()
        if not target:
            raise InvalidInputError("User IDs must not be empty")
        if target not in targets:
            targets.append(target)
    return targets


class ShareGrantStore:
    """Creates, updates, lists, and deletes named grants.

    Every create or update appends an audit record in the caller's
    transaction.
    """

    def __init__(
        self,
        dialect: str,
        actors: ActorDirectory,
        audit: AuditTrail,
        registry: FileOwnershipRegistry,
        share_model: type[FileShareBase] = FileShare,
        file_model: type[FileRecordBase] = FileRecord,
        actor_model: type[ActorBase] = Actor,
    ) -> None:
        self._dialect = dialect
        self._actors = actors
        self._audit = audit
        self._registry = registry
        self._share_model = share_model
        self._file_model = file_model
        self._actor_model = actor_model

    # ------------------------------------------------------------------
    # Upsert
    # ------------------------------------------------------------------

    async def upsert_grant(
        self,
        session: AsyncSession,
        file_id: str,
        owner_id: str,
        grantee_id: str,
        expires_at: datetime | None = None,
    ) -> GrantUpsert:
        """Create the grant for ``(file_id, grantee_id)`` or update its expiry.

        Raises InvalidInputError when *grantee_id* is not a known actor.
        """
        if not await self._actors.exists(session, grantee_id):
            raise InvalidInputError(f"Unknown user: {grantee_id}")
        return await self._upsert(session, file_id, owner_id, grantee_id, expires_at)

    async def upsert_many_grants(
        self,
        session: AsyncSession,
        file_id: str,
        owner_id: str,
        grantee_ids: Sequence[str],
        expires_at: datetime | None = None,
    ) -> BatchShareResult:
        """Upsert one grant per target; unknown targets are reported in ``invalid``."""
        targets = normalize_targets(grantee_ids)
        known = await self._actors.get_many(session, targets)
        now = datetime.now(UTC)

        outcome = BatchShareResult()
        for target in targets:
            actor = known.get(target)
            if actor is None:
                outcome.invalid.append(target)
                continue
            upserted = await self._upsert(session, file_id, owner_id, target, expires_at)
            info = share_to_info(upserted.share, actor, now)
            if upserted.created:
                outcome.created.append(info)
            else:
                outcome.updated.append(info)

        if outcome.invalid:
            logger.debug("Share of %s skipped unknown users %s", file_id, outcome.invalid)
        return outcome

    async def _upsert(
        self,
        session: AsyncSession,
        file_id: str,
        owner_id: str,
        grantee_id: str,
        expires_at: datetime | None,
    ) -> GrantUpsert:
        model = self._share_model
        new_id = str(uuid.uuid4())
        row = await upsert_returning(
            session,
            self._dialect,
            model.__table__,  # type: ignore[attr-defined]
            values={
                "id": new_id,
                "file_id": file_id,
                "owner_id": owner_id,
                "grantee_id": grantee_id,
                "token": None,
                "created_at": datetime.now(UTC),
                "expires_at": ensure_utc(expires_at),
            },
            conflict_keys=_GRANT_KEYS,
            update_keys=["expires_at"],
            returning=["id"],
        )
        created = row.id == new_id
        share = await session.get(model, row.id, populate_existing=True)
        assert share is not None

        action = AuditAction.SHARE if created else AuditAction.SHARE_UPDATED
        await self._audit.record(session, file_id, owner_id, action, Role.OWNER)
        logger.debug(
            "%s grant %s on %s for %s",
            "Created" if created else "Updated",
            share.id,
            file_id,
            grantee_id,
        )
        return GrantUpsert(created=created, share=share)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def get_grant(
        self,
        session: AsyncSession,
        file_id: str,
        grantee_id: str,
    ) -> FileShareBase | None:
        """The grant row for ``(file_id, grantee_id)``, active or not."""
        model = self._share_model
        result = await session.execute(
            select(model).where(
                model.file_id == file_id,
                model.grantee_id == grantee_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_active_grant(
        self,
        session: AsyncSession,
        file_id: str,
        grantee_id: str,
    ) -> FileShareBase | None:
        grant = await self.get_grant(session, file_id, grantee_id)
        if grant is None or not is_active(grant.expires_at):
            return None
        return grant

    async def list_grants(self, session: AsyncSession, file_id: str) -> list[ShareInfo]:
        """All grants on *file_id*, active and expired, newest first."""
        model = self._share_model
        result = await session.execute(
            select(model)
            .where(
                model.file_id == file_id,
                model.grantee_id.is_not(None),  # type: ignore[union-attr]
            )
            .order_by(model.created_at.desc())  # type: ignore[union-attr]
        )
        grants = list(result.scalars().all())
        actors = await self._actors.get_many(session, (g.grantee_id for g in grants))  # type: ignore[misc]
        now = datetime.now(UTC)
        return [share_to_info(g, actors.get(g.grantee_id), now) for g in grants]  # type: ignore[arg-type]

    async def list_shared_with(self, session: AsyncSession, grantee_id: str) -> list[SharedFile]:
        """Files actively shared with *grantee_id*, most recently shared first."""
        share = self._share_model
        file = self._file_model
        owner = self._actor_model
        result = await session.execute(
            select(share, file, owner)
            .join(file, file.id == share.file_id)  # type: ignore[arg-type]
            .join(owner, owner.id == file.owner_id, isouter=True)  # type: ignore[arg-type]
            .where(share.grantee_id == grantee_id)
            .order_by(share.created_at.desc())  # type: ignore[union-attr]
        )
        now = datetime.now(UTC)
        shared: list[SharedFile] = []
        for grant, record, who in result.all():
            if not is_active(grant.expires_at, now):
                continue
            shared.append(
                SharedFile(
                    file_id=record.id,
                    original_name=record.original_name,
                    file_type=record.file_type,
                    size_bytes=record.size_bytes,
                    uploaded_at=ensure_utc(record.created_at),
                    owner_id=record.owner_id,
                    owner_name=who.username if who is not None else None,
                    shared_at=ensure_utc(grant.created_at),
                    expires_at=ensure_utc(grant.expires_at),
                )
            )
        return shared

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_grant(
        self,
        session: AsyncSession,
        share_id: str,
        *,
        file_id: str,
        owner_id: str,
    ) -> None:
        """Hard-delete grant *share_id* after re-checking it belongs to *owner_id*'s file."""
        grant = await session.get(self._share_model, share_id)
        if grant is None or grant.grantee_id is None:
            raise NotFoundError(f"Grant not found: {share_id}")
        if grant.file_id != file_id:
            raise NotFoundError(f"Grant {share_id} is not on file {file_id}")
        await self._registry.require_owner(session, file_id, owner_id)

        await session.delete(grant)
        await session.flush()
        logger.debug("Deleted grant %s on %s", share_id, file_id)
