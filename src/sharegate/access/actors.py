"""ActorDirectory: lookup of the actors files can be shared with."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import select

from sharegate.models.actors import Actor

from .exceptions import InvalidInputError
from .types import ActorInfo

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from sharegate.models.actors import ActorBase


class ActorDirectory:
    """Stateless helpers over the actor table.

    Actor ids come from the identity provider; this directory only records
    which ids exist and how to display them.
    """

    def __init__(self, actor_model: type[ActorBase] = Actor) -> None:
        self._actor_model = actor_model

    @property
    def model(self) -> type[ActorBase]:
        return self._actor_model

    async def register(
        self,
        session: AsyncSession,
        actor_id: str,
        username: str,
        email: str | None = None,
    ) -> ActorBase:
        """Create the actor, or refresh its display fields if it already exists."""
        if not actor_id or not username:
            raise InvalidInputError("actor_id and username are required")

        actor = await session.get(self._actor_model, actor_id)
        if actor is None:
            actor = self._actor_model(id=actor_id, username=username, email=email)
            session.add(actor)
        else:
            actor.username = username
            actor.email = email
        await session.flush()
        return actor

    async def get(self, session: AsyncSession, actor_id: str) -> ActorBase | None:
        return await session.get(self._actor_model, actor_id)

    async def exists(self, session: AsyncSession, actor_id: str) -> bool:
        return await self.get(session, actor_id) is not None

    async def get_many(
        self,
        session: AsyncSession,
        actor_ids: Iterable[str],
    ) -> dict[str, ActorBase]:
        """Map each known id in *actor_ids* to its actor; unknown ids are omitted."""
        ids = list({a for a in actor_ids if a})
        if not ids:
            return {}
        model = self._actor_model
        result = await session.execute(
            select(model).where(model.id.in_(ids))  # type: ignore[union-attr]
        )
        return {a.id: a for a in result.scalars().all()}

    async def list_actors(
        self,
        session: AsyncSession,
        exclude: str | None = None,
    ) -> list[ActorInfo]:
        """All actors ordered by username, optionally excluding *exclude*."""
        model = self._actor_model
        query = select(model).order_by(model.username)
        if exclude is not None:
            query = query.where(model.id != exclude)
        result = await session.execute(query)
        return [to_actor_info(a) for a in result.scalars().all()]


def to_actor_info(actor: ActorBase) -> ActorInfo:
    return ActorInfo(id=actor.id, username=actor.username, email=actor.email)
