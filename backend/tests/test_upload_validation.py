import json
import re

import pytest

from secure_admin.errors import ValidationError
from secure_admin.services.files import (
    format_file_size,
    generate_unique_file_name,
    scan_upload,
    validate_upload,
)

MB = 1024 * 1024


@pytest.mark.parametrize(
    "file_name,mime_type",
    [
        ("photo.jpg", "image/jpeg"),
        ("photo.JPEG", "image/jpeg"),
        ("logo.png", "image/png"),
        ("data.json", "application/json"),
        ("report.csv", "text/csv"),
    ],
)
def test_validate_upload_accepts_allowed_types(file_name: str, mime_type: str) -> None:
    validate_upload(file_name, mime_type, 1024)


def test_validate_upload_rejects_double_extension_with_wrong_mime() -> None:
    with pytest.raises(ValidationError, match="does not match expected type image/png"):
        validate_upload("evil.exe.png", "application/x-msdownload", 1024)


def test_validate_upload_rejects_disallowed_extension() -> None:
    with pytest.raises(ValidationError, match=r"File type \.exe is not allowed"):
        validate_upload("tool.exe", "application/octet-stream", 1024)


def test_validate_upload_rejects_missing_extension() -> None:
    with pytest.raises(ValidationError, match="is not allowed"):
        validate_upload("README", "text/plain", 1024)


def test_validate_upload_rejects_oversize() -> None:
    with pytest.raises(ValidationError, match="exceeds maximum allowed size of 10MB"):
        validate_upload("big.png", "image/png", 10 * MB + 1)


def test_validate_upload_accepts_exact_limit() -> None:
    validate_upload("big.png", "image/png", 10 * MB)


def test_validate_upload_honours_custom_limit() -> None:
    with pytest.raises(ValidationError):
        validate_upload("a.csv", "text/csv", 2 * MB, max_size=MB)


def test_validate_upload_rejects_empty_file() -> None:
    with pytest.raises(ValidationError, match="File is empty"):
        validate_upload("a.csv", "text/csv", 0)


def test_validation_error_is_bad_request() -> None:
    with pytest.raises(ValidationError) as exc:
        validate_upload("a.gif", "image/gif", 10)
    assert exc.value.status_code == 400
    assert exc.value.code == "INVALID_INPUT"


def test_scan_flags_suspicious_filename() -> None:
    report = scan_upload("evil.exe.png", "image/png", b"\x89PNG")
    assert not report.is_safe
    assert "Suspicious pattern in filename: exe" in report.suspicious_patterns


def test_scan_passes_plain_image() -> None:
    report = scan_upload("holiday.png", "image/png", b"\x89PNG....")
    assert report.is_safe
    assert report.file_size == 8
    assert report.as_dict()["file_type"] == "image/png"


def test_scan_flags_script_in_json() -> None:
    content = json.dumps({"payload": "<script>alert(1)</script>"}).encode()
    report = scan_upload("data.json", "application/json", content)
    assert not report.is_safe
    assert "Potential script injection in JSON content" in report.suspicious_patterns


def test_scan_flags_javascript_url_in_json() -> None:
    content = json.dumps({"href": "JavaScript:void(0)"}).encode()
    assert not scan_upload("links.json", "application/json", content).is_safe


def test_scan_invalid_json_only_warns() -> None:
    report = scan_upload("broken.json", "application/json", b"{not json")
    assert report.is_safe
    assert report.warnings == ["Invalid JSON format"]


def test_generate_unique_file_name_shape() -> None:
    name = generate_unique_file_name("My Photo.PNG")
    assert re.fullmatch(r"\d{13}_[0-9a-z]{6}\.png", name)
    assert generate_unique_file_name("a.csv") != generate_unique_file_name("a.csv")


@pytest.mark.parametrize(
    "size,expected",
    [(0, "0 Bytes"), (512, "512 Bytes"), (1024, "1 KB"), (1536, "1.5 KB"), (5 * MB, "5 MB")],
)
def test_format_file_size(size: int, expected: str) -> None:
    assert format_file_size(size) == expected
