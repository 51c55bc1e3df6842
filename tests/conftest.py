"""Shared fixtures for sharegate tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import Session, SQLModel, create_engine

from sharegate.access.actors import ActorDirectory
from sharegate.access.audit import AuditTrail
from sharegate.access.grants import ShareGrantStore
from sharegate.access.links import ShareLinkStore
from sharegate.access.ownership import FileOwnershipRegistry
from sharegate.access.resolver import PermissionResolver

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from sqlalchemy import Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

    from sharegate.models import Actor, FileRecord


@pytest.fixture
def engine() -> Engine:
    """In-memory SQLite engine with all tables created."""
    eng = create_engine("sqlite://", echo=False)
    SQLModel.metadata.create_all(eng)
    return eng


@pytest.fixture
def session(engine: Engine) -> Iterator[Session]:
    """SQLModel session bound to the in-memory engine, rolled back after each test."""
    with Session(engine) as s:
        s.begin()
        yield s
        s.rollback()


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Async SQLModel session on the in-memory engine."""
    factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Access layer services
# ---------------------------------------------------------------------------


@pytest.fixture
def actors() -> ActorDirectory:
    return ActorDirectory()


@pytest.fixture
def audit() -> AuditTrail:
    return AuditTrail()


@pytest.fixture
def registry(audit: AuditTrail) -> FileOwnershipRegistry:
    return FileOwnershipRegistry(audit)


@pytest.fixture
def grants(
    actors: ActorDirectory, audit: AuditTrail, registry: FileOwnershipRegistry
) -> ShareGrantStore:
    return ShareGrantStore("sqlite", actors, audit, registry)


@pytest.fixture
def links(audit: AuditTrail, registry: FileOwnershipRegistry) -> ShareLinkStore:
    return ShareLinkStore("sqlite", audit, registry)


@pytest.fixture
def resolver(
    registry: FileOwnershipRegistry, grants: ShareGrantStore, links: ShareLinkStore
) -> PermissionResolver:
    return PermissionResolver(registry, grants, links)


# ---------------------------------------------------------------------------
# Seed data: alice owns report.pdf; bob and carol are other known actors
# ---------------------------------------------------------------------------


@pytest.fixture
async def alice(async_session: AsyncSession, actors: ActorDirectory) -> Actor:
    return await actors.register(async_session, "alice", "alice", "alice@example.com")


@pytest.fixture
async def bob(async_session: AsyncSession, actors: ActorDirectory) -> Actor:
    return await actors.register(async_session, "bob", "bob", "bob@example.com")


@pytest.fixture
async def carol(async_session: AsyncSession, actors: ActorDirectory) -> Actor:
    return await actors.register(async_session, "carol", "carol")


@pytest.fixture
async def report(
    async_session: AsyncSession, registry: FileOwnershipRegistry, alice: Actor
) -> FileRecord:
    return await registry.register_file(
        async_session,
        alice.id,
        "Report.PDF",
        size_bytes=2048,
        storage_ref="0f3a9c.pdf",
    )
