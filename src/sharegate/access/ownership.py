"""FileOwnershipRegistry: file identity and its owning actor."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlmodel import select

from sharegate.models.files import FileRecord
from sharegate.models.shares import FileShare

from .exceptions import ForbiddenError, InvalidInputError, NotFoundError
from .roles import AuditAction, Role
from .utils import file_type_from_name

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sharegate.models.files import FileRecordBase
    from sharegate.models.shares import FileShareBase

    from .audit import AuditTrail

logger = logging.getLogger(__name__)


class FileOwnershipRegistry:
    """Maps a file id to its owner.

    The backing table is authoritative and ownership never changes after
    the file is registered.
    """

    def __init__(
        self,
        audit: AuditTrail,
        file_model: type[FileRecordBase] = FileRecord,
        share_model: type[FileShareBase] = FileShare,
    ) -> None:
        self._audit = audit
        self._file_model = file_model
        self._share_model = share_model

    async def get_file(self, session: AsyncSession, file_id: str) -> FileRecordBase | None:
        return await session.get(self._file_model, file_id)

    async def get_owner(self, session: AsyncSession, file_id: str) -> str:
        """Return the owner id of *file_id*. Raises NotFoundError if absent."""
        model = self._file_model
        result = await session.execute(select(model.owner_id).where(model.id == file_id))
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            raise NotFoundError(f"File not found: {file_id}")
        return owner_id

    async def require_owner(self, session: AsyncSession, file_id: str, actor_id: str) -> None:
        """Raise ForbiddenError unless *actor_id* owns *file_id*."""
        if await self.get_owner(session, file_id) != actor_id:
            raise ForbiddenError(f"Only the owner can manage file {file_id}")

    async def register_file(
        self,
        session: AsyncSession,
        owner_id: str,
        original_name: str,
        *,
        size_bytes: int,
        storage_ref: str,
        file_type: str | None = None,
    ) -> FileRecordBase:
        """Record an uploaded file and audit the upload. Flushes but does not commit."""
        if not owner_id or not original_name:
            raise InvalidInputError("owner_id and original_name are required")
        if size_bytes < 0:
            raise InvalidInputError(f"Invalid size: {size_bytes}")

        record = self._file_model(
            owner_id=owner_id,
            original_name=original_name,
            file_type=(file_type if file_type is not None else file_type_from_name(original_name)),
            size_bytes=size_bytes,
            storage_ref=storage_ref,
        )
        session.add(record)
        await session.flush()
        await self._audit.record(session, record.id, owner_id, AuditAction.UPLOAD, Role.OWNER)
        return record

    async def list_owned(self, session: AsyncSession, owner_id: str) -> list[FileRecordBase]:
        """Files owned by *owner_id*, newest first."""
        model = self._file_model
        result = await session.execute(
            select(model)
            .where(model.owner_id == owner_id)
            .order_by(model.created_at.desc())  # type: ignore[union-attr]
        )
        return list(result.scalars().all())

    async def delete_file(
        self,
        session: AsyncSession,
        file_id: str,
        actor_id: str,
    ) -> FileRecordBase:
        """Delete *file_id* and every grant and link on it. Owner only.

        Returns the deleted record so the caller can release the blob at
        ``storage_ref``.  Audit records are kept, and no audit record is
        written for the deletion.
        """
        record = await self.get_file(session, file_id)
        if record is None:
            raise NotFoundError(f"File not found: {file_id}")
        if record.owner_id != actor_id:
            raise ForbiddenError("Only the owner can delete a file")

        share = self._share_model
        await session.execute(delete(share).where(share.file_id == file_id))
        await session.delete(record)
        await session.flush()
        logger.debug("Deleted file %s (%s)", file_id, record.storage_ref)
        return record
