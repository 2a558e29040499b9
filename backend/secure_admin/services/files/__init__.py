from .scanner import ScanReport, scan_upload
from .validation import (
    ALLOWED_FILE_TYPES,
    format_file_size,
    generate_unique_file_name,
    validate_upload,
)

__all__ = [
    "ALLOWED_FILE_TYPES",
    "ScanReport",
    "format_file_size",
    "generate_unique_file_name",
    "scan_upload",
    "validate_upload",
]
