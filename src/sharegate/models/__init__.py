"""SQLModel database models for sharegate."""

from sharegate.models.actors import Actor, ActorBase
from sharegate.models.audit import AuditRecord, AuditRecordBase
from sharegate.models.files import FileRecord, FileRecordBase
from sharegate.models.shares import FileShare, FileShareBase, share_table_args

__all__ = [
    "Actor",
    "ActorBase",
    "AuditRecord",
    "AuditRecordBase",
    "FileRecord",
    "FileRecordBase",
    "FileShare",
    "FileShareBase",
    "share_table_args",
]
