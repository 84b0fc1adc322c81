"""Access grants: time-bounded presigned URLs scoped to one operation on one key."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..config import settings
from ..repositories.storage_repo import StorageRepository
from ..utils.helpers import utcnow


@dataclass(frozen=True)
class Grant:
    """A presigned URL and the instant it stops working."""

    url: str
    expires_at: datetime


class AccessGrantIssuer:
    """
    Issues presigned URLs against the blob store.

    Grants are stateless SigV4 signatures. Nothing is recorded per grant, so
    a grant cannot be revoked; expiry is the only bound on exposure.
    """

    def __init__(self, storage_repo: StorageRepository, expiry_seconds: Optional[int] = None):
        self.storage_repo = storage_repo
        self.expiry_seconds = expiry_seconds or settings.grant_expiry_seconds

    def _expires_at(self) -> datetime:
        return utcnow() + timedelta(seconds=self.expiry_seconds)

    def grant_write(
        self,
        storage_key: str,
        upload_id: Optional[str] = None,
        part_number: Optional[int] = None,
    ) -> Grant:
        """
        Grant a PUT of the whole object, or of one part when both
        upload_id and part_number are given.
        """
        if (upload_id is None) != (part_number is None):
            raise ValueError("upload_id and part_number must be given together")

        expires_at = self._expires_at()
        if part_number is None:
            url = self.storage_repo.generate_presigned_upload_url(
                storage_key, expiration=self.expiry_seconds
            )
        else:
            url = self.storage_repo.generate_presigned_part_url(
                storage_key, upload_id, part_number, expiration=self.expiry_seconds
            )
        return Grant(url=url, expires_at=expires_at)

    def grant_read(self, storage_key: str) -> Grant:
        """Grant a GET of the whole object."""
        expires_at = self._expires_at()
        url = self.storage_repo.generate_presigned_url(
            storage_key, expiration=self.expiry_seconds
        )
        return Grant(url=url, expires_at=expires_at)
