from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredBlob:
    path: str  # backend-specific location used for deletion
    public_path: str  # what clients are given to fetch the file
    is_remote: bool
    remote_id: str | None = None
    remote_url: str | None = None


class BlobStore(Protocol):
    is_remote: bool

    async def put(self, data: bytes, stored_name: str, mime_type: str) -> StoredBlob:
        ...

    async def delete(self, path: str, remote_id: str | None = None) -> None:
        ...

    def resolve_url(self, public_path: str, remote_url: str | None = None) -> str:
        ...
