import asyncio
import logging
from pathlib import Path

from .base import StoredBlob

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


class LocalBlobStore:
    """Store uploads on local disk, served from ``/uploads``."""

    is_remote = False

    def __init__(self, upload_dir: str | Path):
        self.upload_dir = Path(upload_dir).resolve()

    def _target(self, stored_name: str) -> Path:
        target = (self.upload_dir / stored_name).resolve()
        if target.parent != self.upload_dir:
            raise ValueError(f"Refusing to store outside upload dir: {stored_name!r}")
        return target

    async def put(self, data: bytes, stored_name: str, mime_type: str) -> StoredBlob:
        target = self._target(stored_name)

        def _write() -> None:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug("Stored %s (%s, %d bytes) at %s", stored_name, mime_type, len(data), target)
        return StoredBlob(
            path=str(target),
            public_path=f"{PUBLIC_PREFIX}/{stored_name}",
            is_remote=False,
        )

    async def delete(self, path: str, remote_id: str | None = None) -> None:
        try:
            await asyncio.to_thread(Path(path).unlink)
        except FileNotFoundError:
            logger.warning("Local file already missing: %s", path)
        except OSError:
            logger.error("Error deleting local file %s", path, exc_info=True)

    def resolve_url(self, public_path: str, remote_url: str | None = None) -> str:
        return public_path
