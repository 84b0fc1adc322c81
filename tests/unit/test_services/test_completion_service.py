"""Unit tests for multipart completion."""

import pytest

from src.core.exceptions import ConflictError, NotFoundError, StorageUnavailableError
from src.models.file_metadata import FileChunk
from src.services.completion_service import chunks_complete
from src.utils.constants import ChunkOutcome, ChunkStatus, UploadStatus


async def _upload_all(tracker, file_id, total=3):
    for number in range(1, total + 1):
        await tracker.report_chunk(file_id, number, ChunkOutcome.UPLOADED, checksum=f"etag-{number}")


def _chunk(number, status):
    return FileChunk(file_id="f", chunk_number=number, expected_size=1, status=status)


def test_chunks_complete():
    """Complete only when there is at least one chunk and all are uploaded."""
    uploaded = ChunkStatus.UPLOADED.value
    assert chunks_complete([]) is False
    assert chunks_complete([_chunk(1, uploaded), _chunk(2, uploaded)]) is True
    assert chunks_complete([_chunk(1, uploaded), _chunk(2, ChunkStatus.PENDING.value)]) is False
    assert chunks_complete([_chunk(1, uploaded), _chunk(2, ChunkStatus.FAILED.value)]) is False
    assert chunks_complete([_chunk(1, uploaded)], expected_total=2) is False


@pytest.mark.asyncio
async def test_check_complete_progression(coordinator, tracker, multipart_plan):
    """Completeness flips only once the last chunk is uploaded."""
    file_id = multipart_plan.file_id

    state = await coordinator.check_complete(file_id)
    assert state.is_complete is False
    assert len(state.chunks) == 3

    await tracker.report_chunk(file_id, 1, ChunkOutcome.UPLOADED, checksum="etag-1")
    await tracker.report_chunk(file_id, 2, ChunkOutcome.UPLOADED, checksum="etag-2")
    assert (await coordinator.check_complete(file_id)).is_complete is False

    await tracker.report_chunk(file_id, 3, ChunkOutcome.UPLOADED, checksum="etag-3")
    state = await coordinator.check_complete(file_id)
    assert state.is_complete is True
    assert state.record.status == UploadStatus.UPLOADING.value


@pytest.mark.asyncio
async def test_check_complete_failed_chunk(coordinator, tracker, multipart_plan):
    """A failed chunk keeps the upload incomplete."""
    file_id = multipart_plan.file_id
    await _upload_all(tracker, file_id)
    await tracker.report_chunk(file_id, 2, ChunkOutcome.FAILED)

    assert (await coordinator.check_complete(file_id)).is_complete is False


@pytest.mark.asyncio
async def test_check_complete_unknown_file(coordinator):
    with pytest.raises(NotFoundError):
        await coordinator.check_complete("missing")


@pytest.mark.asyncio
async def test_finalize(coordinator, tracker, file_repo, s3_client, multipart_plan):
    """Finalize merges parts in order with their ETags and marks the upload completed."""
    file_id = multipart_plan.file_id
    await _upload_all(tracker, file_id)

    result = await coordinator.finalize(file_id, owner_id="user-1")

    assert result.file_id == file_id
    assert result.total_chunks == 3
    assert result.completed_at is not None
    s3_client.complete_multipart_upload.assert_called_once_with(
        Bucket="test-bucket",
        Key=multipart_plan.storage_key,
        UploadId="upload-123",
        MultipartUpload={
            "Parts": [
                {"PartNumber": 1, "ETag": "etag-1"},
                {"PartNumber": 2, "ETag": "etag-2"},
                {"PartNumber": 3, "ETag": "etag-3"},
            ]
        },
    )

    record = await file_repo.get(file_id)
    assert record.status == UploadStatus.COMPLETED.value
    assert record.completed_at is not None


@pytest.mark.asyncio
async def test_finalize_is_idempotent(coordinator, tracker, s3_client, multipart_plan):
    """A second finalize returns the stored result without touching the blob store."""
    file_id = multipart_plan.file_id
    await _upload_all(tracker, file_id)

    first = await coordinator.finalize(file_id)
    second = await coordinator.finalize(file_id)

    assert second.file_id == first.file_id
    assert second.total_chunks == first.total_chunks
    assert second.completed_at is not None
    assert s3_client.complete_multipart_upload.call_count == 1


@pytest.mark.asyncio
async def test_finalize_incomplete(coordinator, tracker, s3_client, multipart_plan):
    """Finalize refuses while any chunk is pending."""
    await tracker.report_chunk(multipart_plan.file_id, 1, ChunkOutcome.UPLOADED, checksum="etag-1")

    with pytest.raises(ConflictError, match="Not all chunks"):
        await coordinator.finalize(multipart_plan.file_id)
    s3_client.complete_multipart_upload.assert_not_called()


@pytest.mark.asyncio
async def test_finalize_single_upload(coordinator, single_plan):
    with pytest.raises(ConflictError, match="Not a multipart upload"):
        await coordinator.finalize(single_plan.file_id)


@pytest.mark.asyncio
async def test_finalize_other_owner(coordinator, tracker, multipart_plan):
    await _upload_all(tracker, multipart_plan.file_id)
    with pytest.raises(NotFoundError):
        await coordinator.finalize(multipart_plan.file_id, owner_id="user-2")


@pytest.mark.asyncio
async def test_finalize_session_already_merged(coordinator, tracker, file_repo, s3_client, s3_error, multipart_plan):
    """NoSuchUpload with the object present means an earlier merge succeeded."""
    file_id = multipart_plan.file_id
    await _upload_all(tracker, file_id)
    s3_client.complete_multipart_upload.side_effect = s3_error("NoSuchUpload", "CompleteMultipartUpload")

    result = await coordinator.finalize(file_id)

    assert result.total_chunks == 3
    s3_client.head_object.assert_called_once_with(Bucket="test-bucket", Key=multipart_plan.storage_key)
    assert (await file_repo.get(file_id)).status == UploadStatus.COMPLETED.value


@pytest.mark.asyncio
async def test_finalize_session_gone_without_object(coordinator, tracker, file_repo, s3_client, s3_error, multipart_plan):
    """NoSuchUpload without the object leaves the upload uploading."""
    file_id = multipart_plan.file_id
    await _upload_all(tracker, file_id)
    s3_client.complete_multipart_upload.side_effect = s3_error("NoSuchUpload", "CompleteMultipartUpload")
    s3_client.head_object.side_effect = s3_error("404", "HeadObject")

    with pytest.raises(StorageUnavailableError):
        await coordinator.finalize(file_id)

    assert (await file_repo.get(file_id)).status == UploadStatus.UPLOADING.value


@pytest.mark.asyncio
async def test_finalize_storage_failure(coordinator, tracker, file_repo, s3_client, s3_error, multipart_plan):
    """Other blob store failures are retryable and change nothing."""
    file_id = multipart_plan.file_id
    await _upload_all(tracker, file_id)
    s3_client.complete_multipart_upload.side_effect = s3_error("InternalError", "CompleteMultipartUpload")

    with pytest.raises(StorageUnavailableError):
        await coordinator.finalize(file_id)

    assert (await file_repo.get(file_id)).status == UploadStatus.UPLOADING.value


@pytest.mark.asyncio
async def test_abort(coordinator, file_repo, s3_client, multipart_plan):
    """Abort discards the session and marks the upload failed."""
    record = await coordinator.abort(multipart_plan.file_id, owner_id="user-1")

    assert record.status == UploadStatus.FAILED.value
    s3_client.abort_multipart_upload.assert_called_once_with(
        Bucket="test-bucket", Key=multipart_plan.storage_key, UploadId="upload-123"
    )
    assert (await file_repo.get(multipart_plan.file_id)).status == UploadStatus.FAILED.value


@pytest.mark.asyncio
async def test_abort_then_finalize(coordinator, tracker, multipart_plan):
    """A failed upload can neither be finalized nor aborted again."""
    await _upload_all(tracker, multipart_plan.file_id)
    await coordinator.abort(multipart_plan.file_id)

    with pytest.raises(ConflictError, match="has failed"):
        await coordinator.finalize(multipart_plan.file_id)
    with pytest.raises(ConflictError, match="already failed"):
        await coordinator.abort(multipart_plan.file_id)


@pytest.mark.asyncio
async def test_abort_completed_upload(coordinator, tracker, s3_client, multipart_plan):
    await _upload_all(tracker, multipart_plan.file_id)
    await coordinator.finalize(multipart_plan.file_id)

    with pytest.raises(ConflictError, match="already completed"):
        await coordinator.abort(multipart_plan.file_id)
    s3_client.abort_multipart_upload.assert_not_called()


@pytest.mark.asyncio
async def test_abort_session_already_gone(coordinator, file_repo, s3_client, s3_error, multipart_plan):
    """An expired session with no object still lets the upload be marked failed."""
    s3_client.abort_multipart_upload.side_effect = s3_error("NoSuchUpload", "AbortMultipartUpload")
    s3_client.head_object.side_effect = s3_error("404", "HeadObject")

    record = await coordinator.abort(multipart_plan.file_id)

    assert record.status == UploadStatus.FAILED.value
    assert (await file_repo.get(multipart_plan.file_id)).status == UploadStatus.FAILED.value
    with pytest.raises(ConflictError, match="already failed"):
        await coordinator.abort(multipart_plan.file_id)


@pytest.mark.asyncio
async def test_abort_session_already_merged(coordinator, file_repo, s3_client, s3_error, multipart_plan):
    """If the session is gone but the object exists, the upload was merged and abort is refused."""
    s3_client.abort_multipart_upload.side_effect = s3_error("NoSuchUpload", "AbortMultipartUpload")

    with pytest.raises(ConflictError, match="already merged"):
        await coordinator.abort(multipart_plan.file_id)

    assert (await file_repo.get(multipart_plan.file_id)).status == UploadStatus.UPLOADING.value


@pytest.mark.asyncio
async def test_abort_storage_failure(coordinator, file_repo, s3_client, s3_error, multipart_plan):
    """Other abort failures are retryable and leave the metadata untouched."""
    s3_client.abort_multipart_upload.side_effect = s3_error("InternalError", "AbortMultipartUpload")

    with pytest.raises(StorageUnavailableError):
        await coordinator.abort(multipart_plan.file_id)

    assert (await file_repo.get(multipart_plan.file_id)).status == UploadStatus.UPLOADING.value
