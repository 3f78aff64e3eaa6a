"""Capability grants: single-permission, short-lived SAS tokens for one blob.

A grant carries either read or write permission, never both. Grants are
minted fresh for every operation and never cached, so a leaked URL is only
useful for one kind of access and only until it expires.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from azure.storage.blob import BlobSasPermissions, generate_blob_sas

DEFAULT_GRANT_MINUTES = 5


class Permission(str, enum.Enum):
    """Permission carried by a grant."""

    READ = "r"
    WRITE = "w"


@dataclass(frozen=True, slots=True)
class CapabilityGrant:
    """Signed query string granting one permission on one blob."""

    query: str
    permission: Permission
    minted_at: datetime
    expires_on: datetime

    def apply(self, blob_url: str) -> str:
        """Append the grant to a bare blob URL."""
        return f"{blob_url}?{self.query}"


def _sas_permissions(permission: Permission) -> BlobSasPermissions:
    if permission is Permission.READ:
        return BlobSasPermissions(read=True)
    return BlobSasPermissions(write=True)


def mint_grant(
    *,
    blob_path: str,
    account_name: str,
    account_key: str,
    container_name: str,
    permission: Permission,
    duration_minutes: int = DEFAULT_GRANT_MINUTES,
    now: datetime | None = None,
) -> CapabilityGrant:
    """Sign a grant valid from now until ``now + duration_minutes``.

    Args:
        blob_path: Blob name within the container.
        account_name: Storage account the key belongs to.
        account_key: Base64 shared account key. Never leaves this process.
        container_name: Container holding the blob.
        permission: READ or WRITE.
        duration_minutes: Lifetime of the grant.
        now: Mint time; defaults to the local clock in UTC.

    Returns:
        CapabilityGrant whose ``expires_on`` is exactly mint time + duration.
        Mint time is truncated to whole seconds, the resolution of SAS expiry.
    """
    minted_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    expires_on = minted_at + timedelta(minutes=duration_minutes)

    query = generate_blob_sas(
        account_name=account_name,
        container_name=container_name,
        blob_name=blob_path,
        account_key=account_key,
        permission=_sas_permissions(permission),
        expiry=expires_on,
    )
    return CapabilityGrant(
        query=query,
        permission=permission,
        minted_at=minted_at,
        expires_on=expires_on,
    )


__all__ = ["DEFAULT_GRANT_MINUTES", "Permission", "CapabilityGrant", "mint_grant"]
