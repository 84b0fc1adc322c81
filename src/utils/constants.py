"""Application constants and enums."""

from enum import Enum

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB

MAX_FILENAME_LENGTH = 255

# Windows device names, rejected regardless of extension
RESERVED_FILENAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)


class UploadType(str, Enum):
    """How the object bytes reach the blob store."""

    SINGLE = "single"
    MULTIPART = "multipart"


class UploadStatus(str, Enum):
    """File upload status enum."""

    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


class ChunkStatus(str, Enum):
    """Delivery status of one multipart chunk."""

    PENDING = "pending"
    UPLOADED = "uploaded"
    FAILED = "failed"


class ChunkOutcome(str, Enum):
    """Outcomes a client may report for a chunk."""

    UPLOADED = "uploaded"
    FAILED = "failed"

# Content types a client may declare for an upload
ALLOWED_CONTENT_TYPES = frozenset([
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    "text/rtf",
    # Images
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "image/bmp",
    "image/tiff",
    # Audio
    "audio/mpeg",
    "audio/wav",
    "audio/ogg",
    "audio/mp4",
    "audio/aac",
    "audio/flac",
    # Video
    "video/mp4",
    "video/mpeg",
    "video/quicktime",
    "video/x-msvideo",
    "video/webm",
    "video/ogg",
    # Archives
    "application/zip",
    "application/x-tar",
    "application/gzip",
    "application/x-7z-compressed",
    "application/x-rar-compressed",
    # Code/Text
    "application/json",
    "application/xml",
    "text/html",
    "text/css",
    "text/javascript",
    "application/javascript",
])
