"""Access layer: ownership, grants, links, audit trail, role resolution."""

from sharegate.access.actors import ActorDirectory
from sharegate.access.audit import AuditTrail
from sharegate.access.exceptions import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ShareConflictError,
    ShareGateError,
    StorageError,
)
from sharegate.access.grants import ShareGrantStore
from sharegate.access.links import ShareLinkStore
from sharegate.access.ownership import FileOwnershipRegistry
from sharegate.access.resolver import PermissionResolver
from sharegate.access.roles import AuditAction, Role
from sharegate.access.types import (
    ActorInfo,
    AuditEntry,
    BatchShareResult,
    DownloadGrant,
    GrantUpsert,
    LinkResult,
    LinkUpsert,
    SharedFile,
    ShareInfo,
    TokenAccess,
)

__all__ = [
    "ActorDirectory",
    "ActorInfo",
    "AuditAction",
    "AuditEntry",
    "AuditTrail",
    "BatchShareResult",
    "DownloadGrant",
    "FileOwnershipRegistry",
    "ForbiddenError",
    "GrantUpsert",
    "InvalidInputError",
    "LinkResult",
    "LinkUpsert",
    "NotFoundError",
    "PermissionResolver",
    "Role",
    "ShareConflictError",
    "ShareGateError",
    "ShareGrantStore",
    "ShareInfo",
    "ShareLinkStore",
    "SharedFile",
    "StorageError",
    "TokenAccess",
]
