"""Unit tests for validators."""

import pytest
from src.config import settings
from src.utils.helpers import build_storage_key, format_file_size, generate_request_id
from src.utils.validators import validate_content_type, validate_declared_size, validate_filename


def test_validate_filename_success():
    """Test filename validation with a normal filename."""
    assert validate_filename("video.mp4") == "video.mp4"


def test_validate_filename_empty():
    """Test filename validation rejects blank names."""
    with pytest.raises(ValueError, match="required"):
        validate_filename("   ")


def test_validate_filename_too_long():
    """Test filename validation rejects names over 255 characters."""
    with pytest.raises(ValueError, match="at most 255"):
        validate_filename("a" * 256)


@pytest.mark.parametrize("name", ["../etc/passwd", "a<b.txt", "report?.pdf", "tab\tname"])
def test_validate_filename_invalid_characters(name):
    """Test filename validation rejects path separators and control characters."""
    with pytest.raises(ValueError, match="invalid characters"):
        validate_filename(name)


@pytest.mark.parametrize("name", ["CON", "nul.txt", "com1.log", "LPT9"])
def test_validate_filename_reserved(name):
    """Test filename validation rejects reserved device names regardless of extension."""
    with pytest.raises(ValueError, match="reserved filename"):
        validate_filename(name)


def test_validate_filename_reserved_prefix_allowed():
    """Names that merely start with a device name are fine."""
    assert validate_filename("console.txt") == "console.txt"


def test_validate_declared_size_optional():
    """Test size validation accepts an undeclared size."""
    assert validate_declared_size(None) is None


def test_validate_declared_size_non_positive():
    """Test size validation rejects zero and negative sizes."""
    with pytest.raises(ValueError, match="greater than 0"):
        validate_declared_size(0)
    with pytest.raises(ValueError, match="greater than 0"):
        validate_declared_size(-1)


def test_validate_declared_size_limit():
    """Test size validation accepts the maximum and rejects one byte more."""
    assert validate_declared_size(settings.max_file_size_bytes) == settings.max_file_size_bytes
    with pytest.raises(ValueError, match="cannot exceed"):
        validate_declared_size(settings.max_file_size_bytes + 1)


def test_build_storage_key():
    """Storage keys are the file id and filename joined by a dash."""
    assert build_storage_key("abc", "video.mp4") == "abc-video.mp4"


def test_generate_request_id_format():
    request_id = generate_request_id()
    assert request_id.startswith("req-")
    assert len(request_id) == 12


def test_format_file_size():
    assert format_file_size(512) == "512.00 B"
    assert format_file_size(5 * 1024 ** 3) == "5.00 GB"


def test_validate_content_type_optional():
    assert validate_content_type(None, "video.mp4") is None


def test_validate_content_type_matches_extension():
    assert validate_content_type("video/mp4", "video.mp4") == "video/mp4"
    assert validate_content_type("application/pdf", "REPORT.PDF") == "application/pdf"


def test_validate_content_type_not_allowed():
    """Types off the allowlist are rejected."""
    with pytest.raises(ValueError, match="is not allowed"):
        validate_content_type("application/x-msdownload", "setup.exe")


def test_validate_content_type_extension_mismatch():
    """An allowed type that contradicts the extension is rejected."""
    with pytest.raises(ValueError, match="does not match file extension '.mp4'"):
        validate_content_type("application/pdf", "video.mp4")


def test_validate_content_type_unknown_extension():
    """Without a known extension only the allowlist applies."""
    assert validate_content_type("application/zip", "archive") == "application/zip"
