"""Upload protocol routes: plans, chunk reports, completion."""

from fastapi import APIRouter, Depends, Path, Request

from ..config import settings
from ..core.dependencies import (
    get_chunk_tracker,
    get_completion_coordinator,
    get_upload_planner,
)
from ..middleware.auth import get_current_user
from ..middleware.rate_limit import limiter
from ..schemas.upload import (
    AbortUploadResponse,
    ChunkCompleteRequest,
    ChunkCompleteResponse,
    ChunkStatusInfo,
    ChunkURL,
    CompleteUploadResponse,
    UploadStatusResponse,
    UploadURLRequest,
    UploadURLResponse,
)
from ..services.chunk_tracker import ChunkTracker
from ..services.completion_service import CompletionCoordinator
from ..services.upload_planner import UploadPlanner
from ..utils.constants import ChunkStatus, UploadType

router = APIRouter(prefix="/files", tags=["uploads"])


@router.post("/upload-url", response_model=UploadURLResponse, response_model_exclude_none=True)
@limiter.limit(settings.upload_url_rate_limit)
async def create_upload_url(
    request: Request,
    body: UploadURLRequest,
    user: dict = Depends(get_current_user),
    planner: UploadPlanner = Depends(get_upload_planner),
):
    """
    Plan an upload.
    Sizes below the multipart threshold get one presigned PUT URL; larger
    ones get one presigned URL per chunk.
    """
    plan = await planner.plan(
        owner_id=user["id"],
        filename=body.filename,
        declared_size=body.size,
        content_type=body.content_type,
    )

    if plan.upload_type == UploadType.SINGLE:
        return UploadURLResponse(
            file_id=plan.file_id,
            upload_type=plan.upload_type,
            url=plan.grant.url,
            expires_at=plan.grant.expires_at,
        )
    return UploadURLResponse(
        file_id=plan.file_id,
        upload_type=plan.upload_type,
        chunks=[
            ChunkURL(
                chunk_number=c.chunk_number,
                url=c.grant.url,
                expires_at=c.grant.expires_at,
                size=c.size,
            )
            for c in plan.chunks
        ],
    )


@router.post(
    "/{file_id}/chunks/{chunk_number}/complete",
    response_model=ChunkCompleteResponse,
    response_model_exclude_none=True,
)
async def report_chunk(
    body: ChunkCompleteRequest,
    file_id: str,
    chunk_number: int = Path(..., ge=1),
    user: dict = Depends(get_current_user),
    tracker: ChunkTracker = Depends(get_chunk_tracker),
    coordinator: CompletionCoordinator = Depends(get_completion_coordinator),
):
    """
    Report a chunk as uploaded or failed.
    An "uploaded" report must carry the part's ETag as checksum (400 otherwise);
    finalize merges the parts by these ETags.
    Reports never finalize the upload; call /complete once upload_complete is true.
    """
    await tracker.report_chunk(
        file_id,
        chunk_number,
        body.status,
        checksum=body.checksum,
        owner_id=user["id"],
    )
    state = await coordinator.check_complete(file_id)

    return ChunkCompleteResponse(
        chunk_number=chunk_number,
        status=body.status,
        upload_complete=state.is_complete,
        total_chunks=len(state.chunks) if state.is_complete else None,
    )


@router.post("/{file_id}/chunks/{chunk_number}/upload-url", response_model=ChunkURL)
async def reissue_chunk_url(
    file_id: str,
    chunk_number: int = Path(..., ge=1),
    user: dict = Depends(get_current_user),
    tracker: ChunkTracker = Depends(get_chunk_tracker),
):
    """Get a fresh presigned URL to retry a failed chunk."""
    chunk = await tracker.reissue_chunk(file_id, chunk_number, owner_id=user["id"])
    return ChunkURL(
        chunk_number=chunk.chunk_number,
        url=chunk.grant.url,
        expires_at=chunk.grant.expires_at,
        size=chunk.size,
    )


@router.get("/{file_id}/upload-status", response_model=UploadStatusResponse)
async def get_upload_status(
    file_id: str,
    user: dict = Depends(get_current_user),
    coordinator: CompletionCoordinator = Depends(get_completion_coordinator),
):
    """Per-chunk progress of a multipart upload."""
    state = await coordinator.check_complete(file_id, owner_id=user["id"])
    record = state.record

    return UploadStatusResponse(
        file_id=file_id,
        status=record.status,
        upload_complete=state.is_complete,
        uploaded_chunks=sum(1 for c in state.chunks if c.status == ChunkStatus.UPLOADED.value),
        total_chunks=record.total_chunks or 0,
        chunks=[
            ChunkStatusInfo(
                chunk_number=c.chunk_number,
                expected_size=c.expected_size,
                status=c.status,
                checksum=c.checksum,
                uploaded_at=c.uploaded_at,
            )
            for c in state.chunks
        ],
    )


@router.post("/{file_id}/complete", response_model=CompleteUploadResponse)
async def complete_upload(
    file_id: str,
    user: dict = Depends(get_current_user),
    coordinator: CompletionCoordinator = Depends(get_completion_coordinator),
):
    """
    Merge all uploaded chunks into the final object.
    Idempotent: completing an already completed upload returns the same result.
    """
    result = await coordinator.finalize(file_id, owner_id=user["id"])
    return CompleteUploadResponse(
        file_id=result.file_id,
        total_chunks=result.total_chunks,
        completed_at=result.completed_at,
    )


@router.post("/{file_id}/abort", response_model=AbortUploadResponse)
async def abort_upload(
    file_id: str,
    user: dict = Depends(get_current_user),
    coordinator: CompletionCoordinator = Depends(get_completion_coordinator),
):
    """Abort a multipart upload and discard its uploaded parts."""
    record = await coordinator.abort(file_id, owner_id=user["id"])
    return AbortUploadResponse(file_id=record.file_id, status=record.status)
