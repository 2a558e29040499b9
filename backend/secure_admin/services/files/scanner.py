"""Lightweight content scan run on every upload before it is stored."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Final

LARGE_FILE_BYTES: Final[int] = 50 * 1024 * 1024

SUSPICIOUS_NAME_PATTERNS: Final[tuple[str, ...]] = (
    "script", "exec", "cmd", "bat", "exe", "php", "asp", "jsp",
)


@dataclass
class ScanReport:
    file_size: int
    file_type: str
    suspicious_patterns: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_safe(self) -> bool:
        return not self.suspicious_patterns

    def as_dict(self) -> dict[str, Any]:
        return {
            "file_size": self.file_size,
            "file_type": self.file_type,
            "suspicious_patterns": list(self.suspicious_patterns),
            "warnings": list(self.warnings),
        }


def scan_upload(file_name: str, mime_type: str, content: bytes) -> ScanReport:
    report = ScanReport(file_size=len(content), file_type=mime_type)

    if len(content) > LARGE_FILE_BYTES:
        report.warnings.append("File size is unusually large")

    lowered = file_name.lower()
    for pattern in SUSPICIOUS_NAME_PATTERNS:
        if pattern in lowered:
            report.suspicious_patterns.append(f"Suspicious pattern in filename: {pattern}")

    if mime_type == "application/json":
        try:
            document = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            report.warnings.append("Invalid JSON format")
        else:
            normalized = json.dumps(document).lower()
            if "script" in normalized or "javascript:" in normalized:
                report.suspicious_patterns.append("Potential script injection in JSON content")

    return report
