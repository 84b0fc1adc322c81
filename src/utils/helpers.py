"""Helper functions for common operations."""

import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def generate_file_id() -> str:
    """Generate an opaque file identifier."""
    return str(uuid.uuid4())


def build_storage_key(file_id: str, filename: str) -> str:
    """
    Build the blob store key for a file.
    Format: <file_id>-<filename>
    """
    return f"{file_id}-{filename}"


def generate_request_id() -> str:
    """Short correlation id for a request."""
    return "req-" + uuid.uuid4().hex[:8]


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PB"
