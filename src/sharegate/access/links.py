"""ShareLinkStore: the single anonymous access link per file.

A link is identified by its file.  Re-issuing a link updates its expiry
and hands back the token it already had; a new token is minted only when
the file has no link row.  The partial unique index on ``file_id`` keeps
concurrent creators from producing two rows: the loser's insert is skipped
and it falls through to the update path.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import update
from sqlmodel import select

from sharegate.models.shares import FileShare

from .dialect import insert_ignore_returning
from .exceptions import NotFoundError, StorageError
from .roles import AuditAction, Role
from .types import LinkUpsert
from .utils import DEFAULT_TOKEN_BYTES, ensure_utc, new_token

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from sharegate.models.shares import FileShareBase

    from .audit import AuditTrail
    from .ownership import FileOwnershipRegistry

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ATTEMPTS = 5


class ShareLinkStore:
    """Creates, refreshes, looks up, and deletes share links.

    *token_factory* defaults to ``secrets.token_urlsafe`` over
    *token_bytes* bytes.  *max_attempts* bounds how many fresh tokens are
    tried when a generated token collides with an existing one.
    """

    def __init__(
        self,
        dialect: str,
        audit: AuditTrail,
        registry: FileOwnershipRegistry,
        share_model: type[FileShareBase] = FileShare,
        *,
        token_factory: Callable[[], str] | None = None,
        token_bytes: int = DEFAULT_TOKEN_BYTES,
        max_attempts: int = DEFAULT_TOKEN_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._dialect = dialect
        self._audit = audit
        self._registry = registry
        self._share_model = share_model
        self._token_factory = token_factory or (lambda: new_token(token_bytes))
        self._max_attempts = max_attempts

    async def upsert_link(
        self,
        session: AsyncSession,
        file_id: str,
        owner_id: str,
        expires_at: datetime | None = None,
    ) -> LinkUpsert:
        """Create the link for *file_id* or update its expiry."""
        model = self._share_model
        table = model.__table__  # type: ignore[attr-defined]
        expires_at = ensure_utc(expires_at)

        for attempt in range(1, self._max_attempts + 1):
            token = self._token_factory()
            inserted = await insert_ignore_returning(
                session,
                self._dialect,
                table,
                values={
                    "id": str(uuid.uuid4()),
                    "file_id": file_id,
                    "owner_id": owner_id,
                    "grantee_id": None,
                    "token": token,
                    "created_at": datetime.now(UTC),
                    "expires_at": expires_at,
                },
                returning=["id", "token"],
            )
            if inserted is not None:
                return await self._finish(session, inserted.id, inserted.token, True, file_id, owner_id)

            result = await session.execute(
                update(table)
                .where(table.c.file_id == file_id, table.c.token.is_not(None))
                .values(expires_at=expires_at)
                .returning(table.c.id, table.c.token)
            )
            updated = result.one_or_none()
            if updated is not None:
                return await self._finish(session, updated.id, updated.token, False, file_id, owner_id)

            # Neither insert nor update touched a row: the token collided.
            logger.warning(
                "Share link token collision for %s (attempt %d/%d)",
                file_id,
                attempt,
                self._max_attempts,
            )

        raise StorageError(
            f"Could not allocate a unique share link token for {file_id} "
            f"after {self._max_attempts} attempts"
        )

    async def _finish(
        self,
        session: AsyncSession,
        share_id: str,
        token: str,
        is_new: bool,
        file_id: str,
        owner_id: str,
    ) -> LinkUpsert:
        share = await session.get(self._share_model, share_id, populate_existing=True)
        assert share is not None
        action = AuditAction.SHARE_LINK if is_new else AuditAction.SHARE_LINK_UPDATED
        await self._audit.record(session, file_id, owner_id, action, Role.OWNER)
        logger.debug("%s share link %s on %s", "Created" if is_new else "Updated", share_id, file_id)
        return LinkUpsert(token=token, is_new=is_new, share=share)

    async def get_by_token(self, session: AsyncSession, token: str) -> FileShareBase:
        """The link row for *token*, active or not. Raises NotFoundError if absent."""
        model = self._share_model
        result = await session.execute(select(model).where(model.token == token))
        share = result.scalar_one_or_none()
        if share is None:
            raise NotFoundError("Invalid or expired link")
        return share

    async def get_link(self, session: AsyncSession, file_id: str) -> FileShareBase | None:
        model = self._share_model
        result = await session.execute(
            select(model).where(
                model.file_id == file_id,
                model.token.is_not(None),  # type: ignore[union-attr]
            )
        )
        return result.scalar_one_or_none()

    async def delete_link(
        self,
        session: AsyncSession,
        file_id: str,
        *,
        owner_id: str,
    ) -> None:
        """Hard-delete the link on *file_id* after re-checking ownership."""
        await self._registry.require_owner(session, file_id, owner_id)
        link = await self.get_link(session, file_id)
        if link is None:
            raise NotFoundError(f"No share link on file {file_id}")
        await session.delete(link)
        await session.flush()
        logger.debug("Deleted share link %s on %s", link.id, file_id)
