"""Storage repository for blob store operations."""

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from ..config.settings import Settings, settings as default_settings
from ..config.storage import get_bucket_name, get_storage_client
from ..core.exceptions import StorageUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class MultipartSessionNotFoundError(StorageUnavailableError):
    """The blob store no longer knows the multipart session (merged or aborted)."""


def _error_code(exc: Exception) -> Optional[str]:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


class StorageRepository:
    """Repository for operations against one S3 bucket."""

    def __init__(self, client: BaseClient, bucket_name: str):
        self.client = client
        self.bucket_name = bucket_name

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "StorageRepository":
        """Build a repository with a fresh boto3 client."""
        return cls(get_storage_client(settings), get_bucket_name(settings))

    async def _call(self, action: str, fn: Callable[..., Any], **kwargs) -> Any:
        """
        Run a blocking boto3 call in the default executor.
        botocore failures surface as StorageUnavailableError.
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(fn, **kwargs))
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Object storage call failed",
                action=action,
                key=kwargs.get("Key"),
                error_code=_error_code(e),
                error=str(e),
            )
            if _error_code(e) == "NoSuchUpload":
                raise MultipartSessionNotFoundError("Multipart upload session not found") from e
            raise StorageUnavailableError("Object storage is unavailable") from e

    def _presign(self, operation: str, params: Dict[str, Any], expiration: int) -> str:
        try:
            return self.client.generate_presigned_url(
                operation, Params=params, ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to generate presigned URL",
                operation=operation,
                key=params.get("Key"),
                error=str(e),
            )
            raise StorageUnavailableError("Failed to generate access URL") from e

    def generate_presigned_upload_url(self, key: str, expiration: int) -> str:
        """Presigned PUT for a whole object."""
        return self._presign(
            "put_object", {"Bucket": self.bucket_name, "Key": key}, expiration
        )

    def generate_presigned_part_url(
        self, key: str, upload_id: str, part_number: int, expiration: int
    ) -> str:
        """Presigned PUT for one numbered part of a multipart upload."""
        return self._presign(
            "upload_part",
            {
                "Bucket": self.bucket_name,
                "Key": key,
                "UploadId": upload_id,
                "PartNumber": part_number,
            },
            expiration,
        )

    def generate_presigned_url(self, key: str, expiration: int) -> str:
        """Presigned GET for a whole object."""
        return self._presign(
            "get_object", {"Bucket": self.bucket_name, "Key": key}, expiration
        )

    async def initiate_multipart_upload(self, key: str, content_type: str) -> str:
        """
        Open a multipart upload session.
        Returns:
            upload_id: the store's session handle
        """
        response = await self._call(
            "create_multipart_upload",
            self.client.create_multipart_upload,
            Bucket=self.bucket_name,
            Key=key,
            ContentType=content_type,
        )
        return response["UploadId"]

    async def complete_multipart_upload(
        self,
        key: str,
        upload_id: str,
        parts: List[Dict[str, Any]],  # [{"part_number": 1, "etag": "..."}]
    ) -> None:
        """Merge uploaded parts into the final object."""
        multipart_upload = {
            "Parts": [
                {"PartNumber": part["part_number"], "ETag": part["etag"]}
                for part in sorted(parts, key=lambda p: p["part_number"])
            ]
        }
        await self._call(
            "complete_multipart_upload",
            self.client.complete_multipart_upload,
            Bucket=self.bucket_name,
            Key=key,
            UploadId=upload_id,
            MultipartUpload=multipart_upload,
        )

    async def abort_multipart_upload(self, key: str, upload_id: str) -> None:
        """Abort a multipart upload and discard its parts."""
        await self._call(
            "abort_multipart_upload",
            self.client.abort_multipart_upload,
            Bucket=self.bucket_name,
            Key=key,
            UploadId=upload_id,
        )

    async def delete_file(self, key: str) -> None:
        """Delete an object. Raises StorageUnavailableError on failure."""
        await self._call(
            "delete_object",
            self.client.delete_object,
            Bucket=self.bucket_name,
            Key=key,
        )

    async def file_exists(self, key: str) -> bool:
        """Check if an object exists in storage."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, partial(self.client.head_object, Bucket=self.bucket_name, Key=key)
            )
            return True
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchKey", "NotFound"):
                return False
            raise StorageUnavailableError("Object storage is unavailable") from e
        except BotoCoreError as e:
            raise StorageUnavailableError("Object storage is unavailable") from e

    async def check_connectivity(self) -> bool:
        """Lightweight reachability check against the bucket."""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None, partial(self.client.head_bucket, Bucket=self.bucket_name)
            )
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning("Storage connectivity check failed", error=str(e))
            return False
