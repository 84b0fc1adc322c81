"""Input validators for upload requests."""

import mimetypes
import re
from typing import Optional

from ..config import settings
from .constants import ALLOWED_CONTENT_TYPES, MAX_FILENAME_LENGTH, RESERVED_FILENAMES
from .helpers import format_file_size

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def validate_filename(filename: Optional[str]) -> str:
    """
    Validate a client-supplied filename.
    Raises ValueError describing the first problem found.
    """
    if filename is None or not filename.strip():
        raise ValueError("Filename is required")
    if len(filename) > MAX_FILENAME_LENGTH:
        raise ValueError(f"Filename must be at most {MAX_FILENAME_LENGTH} characters")
    if _INVALID_FILENAME_CHARS.search(filename):
        raise ValueError("Filename contains invalid characters")

    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    if stem.upper() in RESERVED_FILENAMES:
        raise ValueError(f"'{stem.upper()}' is a reserved filename")
    return filename


def validate_declared_size(size: Optional[int]) -> Optional[int]:
    """Validate an optional declared size in bytes."""
    if size is None:
        return None
    if size <= 0:
        raise ValueError("File size must be greater than 0")
    if size > settings.max_file_size_bytes:
        raise ValueError(
            f"File size cannot exceed {settings.max_file_size_bytes} bytes "
            f"({format_file_size(settings.max_file_size_bytes)})"
        )
    return size


def validate_content_type(content_type: Optional[str], filename: Optional[str] = None) -> Optional[str]:
    """
    Validate an optional declared content type.
    It must be on the allowlist and, when the filename's extension maps to a
    known type, agree with it.
    """
    if content_type is None:
        return None
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValueError(f"File type '{content_type}' is not allowed")

    if filename:
        expected, _ = mimetypes.guess_type(filename.lower())
        if expected and expected != content_type:
            ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
            raise ValueError(
                f"Content type '{content_type}' does not match file extension '.{ext}'"
            )
    return content_type
