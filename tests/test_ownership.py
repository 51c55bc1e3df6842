"""Tests for FileOwnershipRegistry."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlmodel import select

from sharegate.access.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from sharegate.models import AuditRecord, FileShare

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from sharegate.access.grants import ShareGrantStore
    from sharegate.access.links import ShareLinkStore
    from sharegate.access.ownership import FileOwnershipRegistry


class TestRegisterFile:
    async def test_register(self, report):
        assert report.owner_id == "alice"
        assert report.original_name == "Report.PDF"
        assert report.file_type == "pdf"
        assert report.size_bytes == 2048
        assert report.storage_ref == "0f3a9c.pdf"

    async def test_register_audits_upload(self, async_session: AsyncSession, report):
        result = await async_session.execute(
            select(AuditRecord).where(AuditRecord.file_id == report.id)
        )
        records = result.scalars().all()
        assert [(r.action, r.role, r.actor_id) for r in records] == [
            ("upload", "owner", "alice")
        ]

    async def test_explicit_file_type(
        self, registry: FileOwnershipRegistry, async_session: AsyncSession
    ):
        record = await registry.register_file(
            async_session, "alice", "notes", size_bytes=1, storage_ref="x", file_type="txt"
        )
        assert record.file_type == "txt"

    async def test_negative_size_rejected(
        self, registry: FileOwnershipRegistry, async_session: AsyncSession
    ):
        with pytest.raises(InvalidInputError):
            await registry.register_file(
                async_session, "alice", "a.txt", size_bytes=-1, storage_ref="x"
            )


class TestGetOwner:
    async def test_get_owner(
        self, registry: FileOwnershipRegistry, async_session: AsyncSession, report
    ):
        assert await registry.get_owner(async_session, report.id) == "alice"

    async def test_missing_file(self, registry: FileOwnershipRegistry, async_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await registry.get_owner(async_session, "no-such-file")

    async def test_require_owner(
        self, registry: FileOwnershipRegistry, async_session: AsyncSession, report
    ):
        await registry.require_owner(async_session, report.id, "alice")
        with pytest.raises(ForbiddenError):
            await registry.require_owner(async_session, report.id, "bob")


class TestListOwned:
    async def test_newest_first(self, registry: FileOwnershipRegistry, async_session: AsyncSession):
        first = await registry.register_file(
            async_session, "alice", "one.txt", size_bytes=1, storage_ref="1"
        )
        second = await registry.register_file(
            async_session, "alice", "two.txt", size_bytes=2, storage_ref="2"
        )
        await registry.register_file(
            async_session, "bob", "three.txt", size_bytes=3, storage_ref="3"
        )
        owned = await registry.list_owned(async_session, "alice")
        assert [f.id for f in owned] == [second.id, first.id]


class TestDeleteFile:
    async def test_owner_deletes_file_and_shares(
        self,
        registry: FileOwnershipRegistry,
        grants: ShareGrantStore,
        links: ShareLinkStore,
        async_session: AsyncSession,
        report,
        bob,
    ):
        await grants.upsert_grant(async_session, report.id, "alice", "bob")
        await links.upsert_link(async_session, report.id, "alice")

        deleted = await registry.delete_file(async_session, report.id, "alice")
        assert deleted.storage_ref == "0f3a9c.pdf"
        assert await registry.get_file(async_session, report.id) is None

        result = await async_session.execute(
            select(FileShare).where(FileShare.file_id == report.id)
        )
        assert result.scalars().all() == []

    async def test_delete_keeps_audit_and_writes_none(
        self, registry: FileOwnershipRegistry, async_session: AsyncSession, report
    ):
        await registry.delete_file(async_session, report.id, "alice")
        result = await async_session.execute(
            select(AuditRecord.action).where(AuditRecord.file_id == report.id)
        )
        assert result.scalars().all() == ["upload"]

    async def test_non_owner_forbidden(
        self, registry: FileOwnershipRegistry, async_session: AsyncSession, report
    ):
        with pytest.raises(ForbiddenError):
            await registry.delete_file(async_session, report.id, "bob")
        assert await registry.get_file(async_session, report.id) is not None

    async def test_missing_file(self, registry: FileOwnershipRegistry, async_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await registry.delete_file(async_session, "nope", "alice")
