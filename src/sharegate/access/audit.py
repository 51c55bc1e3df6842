"""AuditTrail: append-only record of actions taken against a file.

The trail is a compliance artifact: ``record`` flushes immediately and lets
any storage failure propagate so the surrounding transaction rolls back
together with the action it describes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlmodel import select

from sharegate.models.actors import Actor
from sharegate.models.audit import AuditRecord

from .roles import AuditAction, Role
from .types import AuditEntry
from .utils import ensure_utc

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sharegate.models.actors import ActorBase
    from sharegate.models.audit import AuditRecordBase

logger = logging.getLogger(__name__)


class AuditTrail:
    """Writes and reads audit records.

    Records are never updated or deleted.
    """

    def __init__(
        self,
        audit_model: type[AuditRecordBase] = AuditRecord,
        actor_model: type[ActorBase] = Actor,
    ) -> None:
        self._audit_model = audit_model
        self._actor_model = actor_model

    async def record(
        self,
        session: AsyncSession,
        file_id: str,
        actor_id: str,
        action: AuditAction | str,
        role: Role | str,
    ) -> AuditRecordBase:
        """Append one audit record. Flushes but does not commit."""
        action = AuditAction(action)
        role = Role(role)
        entry = self._audit_model(
            file_id=file_id,
            actor_id=actor_id,
            action=action.value,
            role=role.value,
        )
        session.add(entry)
        await session.flush()
        logger.debug("audit %s on %s by %s (%s)", action.value, file_id, actor_id, role.value)
        return entry

    async def query(self, session: AsyncSession, file_id: str) -> list[AuditEntry]:
        """All records for *file_id*, newest first, with the actor's identity."""
        audit = self._audit_model
        actor = self._actor_model
        result = await session.execute(
            select(audit, actor)
            .join(actor, actor.id == audit.actor_id, isouter=True)  # type: ignore[arg-type]
            .where(audit.file_id == file_id)
            .order_by(audit.created_at.desc(), audit.id.desc())  # type: ignore[union-attr]
        )
        entries: list[AuditEntry] = []
        for record, who in result.all():
            entries.append(
                AuditEntry(
                    id=record.id,
                    file_id=record.file_id,
                    actor_id=record.actor_id,
                    action=record.action,
                    role=record.role,
                    created_at=ensure_utc(record.created_at),
                    username=who.username if who is not None else None,
                    email=who.email if who is not None else None,
                )
            )
        return entries
