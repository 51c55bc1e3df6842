"""Role and audit action enums."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role an actor holds on a file."""

    OWNER = "owner"
    VIEWER = "viewer"
    NONE = "none"

    @property
    def granted(self) -> bool:
        return self is not Role.NONE


class AuditAction(str, Enum):
    """Actions recorded in the audit trail."""

    UPLOAD = "upload"
    DOWNLOAD = "download"
    SHARE = "share"
    SHARE_UPDATED = "share_updated"
    SHARE_LINK = "share_link"
    SHARE_LINK_UPDATED = "share_link_updated"
