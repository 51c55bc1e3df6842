"""PermissionResolver: which role, if any, an actor holds on a file.

Resolution never writes.  Callers that act on a resolved role (for example
a download) record the audit entry themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import ForbiddenError, NotFoundError
from .roles import Role
from .types import TokenAccess
from .utils import is_active

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from .grants import ShareGrantStore
    from .links import ShareLinkStore
    from .ownership import FileOwnershipRegistry


class PermissionResolver:
    """Composes the ownership registry and the grant and link stores."""

    def __init__(
        self,
        registry: FileOwnershipRegistry,
        grants: ShareGrantStore,
        links: ShareLinkStore,
    ) -> None:
        self._registry = registry
        self._grants = grants
        self._links = links

    async def resolve_file_role(
        self,
        session: AsyncSession,
        actor_id: str,
        file_id: str,
    ) -> Role:
        """Return OWNER, VIEWER (active grant), or NONE for *actor_id* on *file_id*.

        The owner check comes first so no grant state can demote the owner.
        Raises NotFoundError if the file does not exist.
        """
        if await self._registry.get_owner(session, file_id) == actor_id:
            return Role.OWNER
        if await self._grants.get_active_grant(session, file_id, actor_id) is not None:
            return Role.VIEWER
        return Role.NONE

    async def resolve_token_role(
        self,
        session: AsyncSession,
        token: str,
        actor_id: str | None = None,
    ) -> TokenAccess:
        """Resolve a link token to its file with the VIEWER role.

        Links are not scoped to a user, so any authenticated actor holding
        a valid token gets VIEWER.  Raises NotFoundError for an unknown or
        expired token.
        """
        if not token:
            raise NotFoundError("Invalid or expired link")
        link = await self._links.get_by_token(session, token)
        if not is_active(link.expires_at):
            raise NotFoundError("Invalid or expired link")
        # Link rows never carry a grantee; refuse one that does unless it matches.
        if link.grantee_id is not None and link.grantee_id != actor_id:
            raise ForbiddenError("Access denied")
        return TokenAccess(file_id=link.file_id, role=Role.VIEWER)
