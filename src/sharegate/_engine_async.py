"""ShareGateAsync: async facade over the access layer.

Each public method runs in its own session and transaction: committed when
the method returns, rolled back when it raises.  Storage failures surface
as ``StorageError``; every other outcome is a typed result or one of the
``ShareGateError`` subclasses.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from sharegate.access.actors import ActorDirectory, to_actor_info
from sharegate.access.audit import AuditTrail
from sharegate.access.dialect import check_dialect, get_dialect
from sharegate.access.exceptions import (
    ForbiddenError,
    NotFoundError,
    ShareConflictError,
    StorageError,
)
from sharegate.access.grants import ShareGrantStore, share_to_info
from sharegate.access.links import ShareLinkStore
from sharegate.access.ownership import FileOwnershipRegistry
from sharegate.access.resolver import PermissionResolver
from sharegate.access.roles import AuditAction, Role
from sharegate.access.types import DownloadGrant, LinkResult
from sharegate.access.utils import build_share_url, ensure_utc
from sharegate.config import ShareGateSettings
from sharegate.models import Actor, AuditRecord, FileRecord, FileShare

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncEngine

    from sharegate.access.types import (
        ActorInfo,
        AuditEntry,
        BatchShareResult,
        SharedFile,
        ShareInfo,
        TokenAccess,
    )
    from sharegate.models.files import FileRecordBase

logger = logging.getLogger(__name__)

_TABLES = (Actor, FileRecord, FileShare, AuditRecord)


class ShareGateAsync:
    """Async facade wiring ownership, grants, links, audit, and resolution.

    Engine-based (primary API)::

        engine = create_async_engine("postgresql+asyncpg://...")
        gate = ShareGateAsync(engine)
        await gate.create_tables()
        await gate.share_with_users("alice", file_id, ["bob"])

    With no engine and no session factory, one is created from
    ``settings.database_url``.
    """

    def __init__(
        self,
        engine: AsyncEngine | None = None,
        *,
        session_factory: Callable[..., AsyncSession] | None = None,
        dialect: str | None = None,
        settings: ShareGateSettings | None = None,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        if engine is not None and session_factory is not None:
            raise ValueError("Provide engine or session_factory, not both")

        self._settings = settings or ShareGateSettings()
        self._closed = False
        self._owns_engine = False

        if session_factory is None:
            if engine is None:
                engine = create_async_engine(
                    self._settings.database_url,
                    echo=self._settings.echo_sql,
                )
                self._owns_engine = True
            session_factory = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
            dialect = dialect or get_dialect(engine)
        self._engine = engine
        self._session_factory = session_factory
        self._dialect = check_dialect(dialect or "sqlite")

        # Access layer (stateless services; sessions are passed per call)
        self._actors = ActorDirectory()
        self._audit = AuditTrail()
        self._registry = FileOwnershipRegistry(self._audit)
        self._grants = ShareGrantStore(self._dialect, self._actors, self._audit, self._registry)
        self._links = ShareLinkStore(
            self._dialect,
            self._audit,
            self._registry,
            token_factory=token_factory,
            token_bytes=self._settings.link_token_bytes,
            max_attempts=self._settings.link_token_attempts,
        )
        self._resolver = PermissionResolver(self._registry, self._grants, self._links)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_tables(self) -> None:
        """Create the sharegate tables on the engine if they do not exist."""
        if self._engine is None:
            raise ValueError("create_tables() requires an engine")
        tables = [m.__table__ for m in _TABLES]  # type: ignore[attr-defined]
        async with self._engine.begin() as conn:
            await conn.run_sync(lambda c: SQLModel.metadata.create_all(c, tables=tables))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_engine and self._engine is not None:
            await self._engine.dispose()

    async def __aenter__(self) -> ShareGateAsync:
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; commit on success, roll back on any error."""
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Storage failure: %s", e, exc_info=True)
            raise StorageError(f"Storage failure: {e}") from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ShareGateSettings:
        return self._settings

    @property
    def dialect(self) -> str:
        return self._dialect

    @property
    def resolver(self) -> PermissionResolver:
        return self._resolver

    @property
    def grants(self) -> ShareGrantStore:
        return self._grants

    @property
    def links(self) -> ShareLinkStore:
        return self._links

    @property
    def audit(self) -> AuditTrail:
        return self._audit

    @property
    def registry(self) -> FileOwnershipRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Actors
    # ------------------------------------------------------------------

    async def register_actor(
        self,
        actor_id: str,
        username: str,
        email: str | None = None,
    ) -> ActorInfo:
        async with self._session() as session:
            actor = await self._actors.register(session, actor_id, username, email)
            return to_actor_info(actor)

    async def get_actor(self, actor_id: str) -> ActorInfo | None:
        async with self._session() as session:
            actor = await self._actors.get(session, actor_id)
            return to_actor_info(actor) if actor is not None else None

    async def list_actors(self, exclude: str | None = None) -> list[ActorInfo]:
        """Actors a file can be shared with, minus *exclude* (usually the caller)."""
        async with self._session() as session:
            return await self._actors.list_actors(session, exclude=exclude)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def upload(
        self,
        owner_id: str,
        original_name: str,
        *,
        size_bytes: int,
        storage_ref: str,
        file_type: str | None = None,
    ) -> FileRecordBase:
        """Register a file whose bytes the blob store already holds."""
        async with self._session() as session:
            return await self._registry.register_file(
                session,
                owner_id,
                original_name,
                size_bytes=size_bytes,
                storage_ref=storage_ref,
                file_type=file_type,
            )

    async def my_files(self, actor_id: str) -> list[FileRecordBase]:
        async with self._session() as session:
            return await self._registry.list_owned(session, actor_id)

    async def shared_with_me(self, actor_id: str) -> list[SharedFile]:
        async with self._session() as session:
            return await self._grants.list_shared_with(session, actor_id)

    async def delete_file(self, actor_id: str, file_id: str) -> FileRecordBase:
        """Delete *file_id* (owner only); the caller releases ``storage_ref``."""
        async with self._session() as session:
            return await self._registry.delete_file(session, file_id, actor_id)

    # ------------------------------------------------------------------
    # Resolution and downloads
    # ------------------------------------------------------------------

    async def file_role(self, actor_id: str, file_id: str) -> Role:
        async with self._session() as session:
            return await self._resolver.resolve_file_role(session, actor_id, file_id)

    async def token_access(self, token: str, actor_id: str | None = None) -> TokenAccess:
        async with self._session() as session:
            return await self._resolver.resolve_token_role(session, token, actor_id)

    async def token_file_info(self, token: str, actor_id: str | None = None) -> FileRecordBase:
        """Metadata of the file behind a valid link token, for previews. Not audited."""
        async with self._session() as session:
            access = await self._resolver.resolve_token_role(session, token, actor_id)
            record = await self._registry.get_file(session, access.file_id)
            if record is None:
                raise NotFoundError(f"File not found: {access.file_id}")
            return record

    async def authorize_download(self, actor_id: str, file_id: str) -> DownloadGrant:
        """Gate a download by role and record it in the audit trail."""
        async with self._session() as session:
            role = await self._resolver.resolve_file_role(session, actor_id, file_id)
            if not role.granted:
                raise ForbiddenError("Access denied")
            return await self._record_download(session, actor_id, file_id, role)

    async def authorize_token_download(self, actor_id: str, token: str) -> DownloadGrant:
        """Gate a download through a share link and record it in the audit trail."""
        async with self._session() as session:
            access = await self._resolver.resolve_token_role(session, token, actor_id)
            return await self._record_download(session, actor_id, access.file_id, access.role)

    async def _record_download(
        self,
        session: AsyncSession,
        actor_id: str,
        file_id: str,
        role: Role,
    ) -> DownloadGrant:
        record = await self._registry.get_file(session, file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")
        await self._audit.record(session, file_id, actor_id, AuditAction.DOWNLOAD, role)
        return DownloadGrant(file=record, role=role)

    # ------------------------------------------------------------------
    # Sharing (owner only)
    # ------------------------------------------------------------------

    async def share_with_users(
        self,
        actor_id: str,
        file_id: str,
        grantee_ids: Sequence[str],
        expires_at: datetime | None = None,
    ) -> BatchShareResult:
        """Grant VIEWER on *file_id* to each of *grantee_ids*.

        Unknown ids land in ``result.invalid``.  Raises ShareConflictError
        when no grant was created or updated.
        """
        async with self._session() as session:
            await self._registry.require_owner(session, file_id, actor_id)
            outcome = await self._grants.upsert_many_grants(
                session, file_id, actor_id, grantee_ids, expires_at
            )
            if not outcome.changed:
                raise ShareConflictError(
                    "No new shares created or updated", invalid=outcome.invalid
                )
            return outcome

    async def create_share_link(
        self,
        actor_id: str,
        file_id: str,
        expires_at: datetime | None = None,
    ) -> LinkResult:
        """Create the file's share link, or refresh its expiry and reuse its token."""
        async with self._session() as session:
            await self._registry.require_owner(session, file_id, actor_id)
            upserted = await self._links.upsert_link(session, file_id, actor_id, expires_at)
            return LinkResult(
                token=upserted.token,
                is_new=upserted.is_new,
                expires_at=ensure_utc(upserted.share.expires_at),
                url=build_share_url(self._settings.share_base_url, upserted.token),
            )

    async def list_shares(self, actor_id: str, file_id: str) -> list[ShareInfo]:
        """Grants and the link on *file_id*, newest first, for the owner's management view."""
        async with self._session() as session:
            await self._registry.require_owner(session, file_id, actor_id)
            shares = await self._grants.list_grants(session, file_id)
            link = await self._links.get_link(session, file_id)
            if link is not None:
                shares.append(share_to_info(link))
                shares.sort(key=lambda s: s.created_at, reverse=True)  # type: ignore[arg-type]
            return shares

    async def remove_share(self, actor_id: str, file_id: str, share_id: str) -> None:
        """Remove a grant or the link by share id (owner only)."""
        async with self._session() as session:
            share = await session.get(FileShare, share_id)
            if share is not None and share.is_link and share.file_id == file_id:
                await self._links.delete_link(session, file_id, owner_id=actor_id)
            else:
                await self._grants.delete_grant(
                    session, share_id, file_id=file_id, owner_id=actor_id
                )

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def audit_log(self, actor_id: str, file_id: str) -> list[AuditEntry]:
        """Audit records for *file_id*, newest first; any role but NONE may read."""
        async with self._session() as session:
            role = await self._resolver.resolve_file_role(session, actor_id, file_id)
            if not role.granted:
                raise ForbiddenError("Access denied")
            return await self._audit.query(session, file_id)
