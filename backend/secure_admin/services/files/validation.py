import math
import secrets
import string
import time
from typing import Final

from ...errors import ValidationError

DEFAULT_MAX_UPLOAD_BYTES: Final[int] = 10 * 1024 * 1024

# Extension -> the only MIME type accepted for it
ALLOWED_FILE_TYPES: Final[dict[str, str]] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "json": "application/json",
    "csv": "text/csv",
}

_BASE36 = string.digits + string.ascii_lowercase


def file_extension(file_name: str) -> str:
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def validate_upload(
    file_name: str,
    mime_type: str | None,
    size_bytes: int,
    max_size: int = DEFAULT_MAX_UPLOAD_BYTES,
) -> None:
    """
    Reject an upload before it reaches storage.

    Only the last extension counts, and the declared MIME type must be the one
    registered for it: ``evil.exe.png`` sent as anything but ``image/png`` is
    refused.

    Raises:
        ValidationError: On size, extension or MIME type mismatch
    """
    if size_bytes <= 0:
        raise ValidationError("File is empty")

    if size_bytes > max_size:
        raise ValidationError(
            f"File size exceeds maximum allowed size of {round(max_size / 1024 / 1024)}MB"
        )

    extension = file_extension(file_name)
    expected_mime_type = ALLOWED_FILE_TYPES.get(extension)
    if expected_mime_type is None:
        raise ValidationError(
            f"File type .{extension} is not allowed. "
            f"Allowed types: {', '.join(ALLOWED_FILE_TYPES)}"
        )

    if mime_type != expected_mime_type:
        raise ValidationError(
            f"File MIME type {mime_type} does not match expected type {expected_mime_type}"
        )


def generate_unique_file_name(original_name: str) -> str:
    """``<epoch millis>_<6 base36 chars>.<ext>``"""
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    extension = file_extension(original_name)
    return f"{timestamp}_{suffix}.{extension}" if extension else f"{timestamp}_{suffix}"


def format_file_size(size_bytes: int) -> str:
    if size_bytes <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size_bytes, 1024))), len(units) - 1)
    value = round(size_bytes / math.pow(1024, index), 2)
    return f"{value:g} {units[index]}"
