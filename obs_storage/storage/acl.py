"""Translation between public/private visibility and OBS ACL grants."""

from __future__ import annotations

from typing import Iterable

from obs_storage.storage.models import PRIVATE, PUBLIC, Grant

ACL_PUBLIC_READ = "public-read"
ACL_PRIVATE = "private"

# OBS names the anonymous group "Everyone"; the S3-compatible API uses the URI.
ALL_USERS_GROUPS = frozenset(
    {
        "Everyone",
        "AllUsers",
        "http://acs.amazonaws.com/groups/global/AllUsers",
    }
)
PUBLIC_PERMISSIONS = frozenset({"READ", "READ_ACP"})


def visibility_to_acl(visibility: str) -> str:
    if visibility in (PUBLIC, ACL_PUBLIC_READ):
        return ACL_PUBLIC_READ
    return ACL_PRIVATE


def acl_to_visibility(grants: Iterable[Grant]) -> str:
    for grant in grants:
        if grant.group in ALL_USERS_GROUPS and grant.permission in PUBLIC_PERMISSIONS:
            return PUBLIC
    return PRIVATE


def public_read_grants(owner_id: str | None = None) -> list[Grant]:
    """Grants implied by the ``public-read`` canned ACL."""
    return [
        Grant(permission="FULL_CONTROL", grantee_id=owner_id),
        Grant(permission="READ", group="Everyone"),
    ]
