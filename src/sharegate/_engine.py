"""ShareGate: synchronous facade over ShareGateAsync."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

from sharegate._engine_async import ShareGateAsync
from sharegate.config import ShareGateSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from sharegate.access.roles import Role
    from sharegate.access.types import (
        ActorInfo,
        AuditEntry,
        BatchShareResult,
        DownloadGrant,
        LinkResult,
        SharedFile,
        ShareInfo,
        TokenAccess,
    )
    from sharegate.models.files import FileRecordBase


class ShareGate:
    """Synchronous API backed by a private event loop in a background thread.

    The async engine and its connection pool live on that loop, so the
    facade can be used from plain sync code or from inside another running
    event loop.

    Usage::

        with ShareGate("sqlite+aiosqlite:///./shares.db") as gate:
            gate.create_tables()
            f = gate.upload("alice", "report.pdf", size_bytes=1024, storage_ref="ab12.pdf")
            gate.share_with_users("alice", f.id, ["bob"])
    """

    def __init__(
        self,
        database_url: str | None = None,
        *,
        settings: ShareGateSettings | None = None,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        self._closed = False

        # Private event loop in a daemon thread
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

        self._gate: ShareGateAsync = self._run(
            self._async_init(database_url, settings, token_factory)
        )

    async def _async_init(
        self,
        database_url: str | None,
        settings: ShareGateSettings | None,
        token_factory: Callable[[], str] | None,
    ) -> ShareGateAsync:
        if database_url is not None:
            base = settings or ShareGateSettings()
            settings = base.model_copy(update={"database_url": database_url})
        # The engine must be created on the private loop.
        return ShareGateAsync(settings=settings, token_factory=token_factory)

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_tables(self) -> None:
        self._run(self._gate.create_tables())

    def close(self) -> None:
        """Dispose the engine, stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True

        try:
            self._run(self._gate.close())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)

    def __enter__(self) -> ShareGate:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    @property
    def aio(self) -> ShareGateAsync:
        """The wrapped async facade (use only from the private loop)."""
        return self._gate

    # ------------------------------------------------------------------
    # Actors and files
    # ------------------------------------------------------------------

    def register_actor(self, actor_id: str, username: str, email: str | None = None) -> ActorInfo:
        return self._run(self._gate.register_actor(actor_id, username, email))

    def get_actor(self, actor_id: str) -> ActorInfo | None:
        return self._run(self._gate.get_actor(actor_id))

    def list_actors(self, exclude: str | None = None) -> list[ActorInfo]:
        return self._run(self._gate.list_actors(exclude))

    def upload(
        self,
        owner_id: str,
        original_name: str,
        *,
        size_bytes: int,
        storage_ref: str,
        file_type: str | None = None,
    ) -> FileRecordBase:
        return self._run(
            self._gate.upload(
                owner_id,
                original_name,
                size_bytes=size_bytes,
                storage_ref=storage_ref,
                file_type=file_type,
            )
        )

    def my_files(self, actor_id: str) -> list[FileRecordBase]:
        return self._run(self._gate.my_files(actor_id))

    def shared_with_me(self, actor_id: str) -> list[SharedFile]:
        return self._run(self._gate.shared_with_me(actor_id))

    def delete_file(self, actor_id: str, file_id: str) -> FileRecordBase:
        return self._run(self._gate.delete_file(actor_id, file_id))

    # ------------------------------------------------------------------
    # Resolution and downloads
    # ------------------------------------------------------------------

    def file_role(self, actor_id: str, file_id: str) -> Role:
        return self._run(self._gate.file_role(actor_id, file_id))

    def token_access(self, token: str, actor_id: str | None = None) -> TokenAccess:
        return self._run(self._gate.token_access(token, actor_id))

    def token_file_info(self, token: str, actor_id: str | None = None) -> FileRecordBase:
        return self._run(self._gate.token_file_info(token, actor_id))

    def authorize_download(self, actor_id: str, file_id: str) -> DownloadGrant:
        return self._run(self._gate.authorize_download(actor_id, file_id))

    def authorize_token_download(self, actor_id: str, token: str) -> DownloadGrant:
        return self._run(self._gate.authorize_token_download(actor_id, token))

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    def share_with_users(
        self,
        actor_id: str,
        file_id: str,
        grantee_ids: Sequence[str],
        expires_at: datetime | None = None,
    ) -> BatchShareResult:
        return self._run(self._gate.share_with_users(actor_id, file_id, grantee_ids, expires_at))

    def create_share_link(
        self,
        actor_id: str,
        file_id: str,
        expires_at: datetime | None = None,
    ) -> LinkResult:
        return self._run(self._gate.create_share_link(actor_id, file_id, expires_at))

    def list_shares(self, actor_id: str, file_id: str) -> list[ShareInfo]:
        return self._run(self._gate.list_shares(actor_id, file_id))

    def remove_share(self, actor_id: str, file_id: str, share_id: str) -> None:
        self._run(self._gate.remove_share(actor_id, file_id, share_id))

    def audit_log(self, actor_id: str, file_id: str) -> list[AuditEntry]:
        return self._run(self._gate.audit_log(actor_id, file_id))
