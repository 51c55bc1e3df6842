"""Tests for the SQLModel tables and their constraints."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from sharegate.models import Actor, AuditRecord, FileRecord, FileShare

# ---------------------------------------------------------------------------
# Table creation
# ---------------------------------------------------------------------------


class TestTableCreation:
    def test_tables_exist(self, engine):
        with engine.connect() as conn:
            names = set(engine.dialect.get_table_names(conn))
        assert {
            "sharegate_actors",
            "sharegate_files",
            "sharegate_file_shares",
            "sharegate_audit_log",
        } <= names


class TestDefaultFactories:
    def test_file_record_defaults(self, session: Session):
        f = FileRecord(owner_id="alice", original_name="a.txt")
        session.add(f)
        session.flush()
        session.refresh(f)

        assert f.id  # UUID string
        assert f.size_bytes == 0
        assert f.file_type == ""
        assert f.created_at is not None

    def test_audit_ids_increase(self, session: Session):
        first = AuditRecord(file_id="f", actor_id="alice", action="upload", role="owner")
        second = AuditRecord(file_id="f", actor_id="alice", action="share", role="owner")
        session.add(first)
        session.flush()
        session.add(second)
        session.flush()
        assert first.id is not None
        assert second.id is not None
        assert second.id > first.id

    def test_share_variant_property(self):
        assert FileShare(file_id="f", token="t").is_link is True
        assert FileShare(file_id="f", grantee_id="bob").is_link is False


# ---------------------------------------------------------------------------
# Share constraints
# ---------------------------------------------------------------------------


class TestShareConstraints:
    def test_duplicate_grant_rejected(self, session: Session):
        session.add(FileShare(file_id="f", owner_id="alice", grantee_id="bob"))
        session.flush()
        session.add(FileShare(file_id="f", owner_id="alice", grantee_id="bob"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_second_link_for_file_rejected(self, session: Session):
        session.add(FileShare(file_id="f", owner_id="alice", token="t1"))
        session.flush()
        session.add(FileShare(file_id="f", owner_id="alice", token="t2"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_links_on_different_files_allowed(self, session: Session):
        session.add(FileShare(file_id="f1", owner_id="alice", token="t1"))
        session.add(FileShare(file_id="f2", owner_id="alice", token="t2"))
        session.flush()
        rows = session.exec(select(FileShare)).all()
        assert len(rows) == 2

    def test_duplicate_token_rejected(self, session: Session):
        session.add(FileShare(file_id="f1", owner_id="alice", token="same"))
        session.flush()
        session.add(FileShare(file_id="f2", owner_id="alice", token="same"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_grants_and_link_coexist_on_file(self, session: Session):
        session.add(FileShare(file_id="f", owner_id="alice", grantee_id="bob"))
        session.add(FileShare(file_id="f", owner_id="alice", grantee_id="carol"))
        session.add(FileShare(file_id="f", owner_id="alice", token="t"))
        session.flush()
        rows = session.exec(select(FileShare).where(FileShare.file_id == "f")).all()
        assert len(rows) == 3

    def test_row_with_both_variants_rejected(self, session: Session):
        session.add(FileShare(file_id="f", owner_id="alice", grantee_id="bob", token="t"))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_row_with_neither_variant_rejected(self, session: Session):
        session.add(FileShare(file_id="f", owner_id="alice"))
        with pytest.raises(IntegrityError):
            session.flush()


class TestActorModel:
    def test_username_unique(self, session: Session):
        session.add(Actor(id="1", username="bob"))
        session.flush()
        session.add(Actor(id="2", username="bob"))
        with pytest.raises(IntegrityError):
            session.flush()
