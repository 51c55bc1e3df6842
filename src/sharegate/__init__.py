"""sharegate: access control and sharing for uploaded files.

Ownership, per-user grants, anonymous share links, and an append-only
audit trail, resolved against a shared SQL store.
"""

__version__ = "0.1.0"

from sharegate._engine import ShareGate
from sharegate._engine_async import ShareGateAsync
from sharegate.access.exceptions import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ShareConflictError,
    ShareGateError,
    StorageError,
)
from sharegate.access.roles import AuditAction, Role
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
from sharegate.access.utils import build_share_url
from sharegate.config import ShareGateSettings

__all__ = [
    "ActorInfo",
    "AuditAction",
    "AuditEntry",
    "BatchShareResult",
    "DownloadGrant",
    "ForbiddenError",
    "InvalidInputError",
    "LinkResult",
    "NotFoundError",
    "Role",
    "ShareConflictError",
    "ShareGate",
    "ShareGateAsync",
    "ShareGateError",
    "ShareGateSettings",
    "ShareInfo",
    "SharedFile",
    "StorageError",
    "TokenAccess",
    "__version__",
    "build_share_url",
]
