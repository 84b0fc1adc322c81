"""File metadata, download and delete routes."""

from fastapi import APIRouter, Depends

from ..core.dependencies import get_file_service
from ..middleware.auth import get_current_user
from ..schemas.file import FileDownloadResponse, FileListResponse, FileResponse
from ..schemas.shared import MessageResponse
from ..services.file_service import FileService

router = APIRouter(prefix="/files", tags=["files"])


@router.get("", response_model=FileListResponse)
async def list_files(
    user: dict = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """List the caller's files."""
    files = await file_service.list_files(owner_id=user["id"])
    return FileListResponse(
        files=[FileResponse.model_validate(f) for f in files],
        count=len(files),
    )


@router.get("/{file_id}", response_model=FileResponse)
async def get_file_details(
    file_id: str,
    user: dict = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """Get file details by ID."""
    record = await file_service.get_file(file_id=file_id, owner_id=user["id"])
    return FileResponse.model_validate(record)


@router.get("/{file_id}/download-url", response_model=FileDownloadResponse)
async def get_download_url(
    file_id: str,
    user: dict = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """Get presigned download URL for file."""
    grant = await file_service.get_download_url(file_id=file_id, owner_id=user["id"])
    return FileDownloadResponse(file_id=file_id, url=grant.url, expires_at=grant.expires_at)


@router.delete("/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str,
    user: dict = Depends(get_current_user),
    file_service: FileService = Depends(get_file_service),
):
    """Delete a file: the stored object first, then its metadata."""
    await file_service.delete_file(file_id=file_id, owner_id=user["id"])
    return MessageResponse(message="File deleted successfully", file_id=file_id)
