import asyncio
import base64
import logging

import cloudinary
import cloudinary.uploader

from .base import StoredBlob

logger = logging.getLogger(__name__)


def configure_cloudinary(
    *,
    cloudinary_url: str | None = None,
    cloud_name: str | None = None,
    api_key: str | None = None,
    api_secret: str | None = None,
) -> None:
    if cloudinary_url:
        # The SDK reads CLOUDINARY_URL from the environment itself
        cloudinary.config(secure=True)
        return
    cloudinary.config(
        cloud_name=cloud_name,
        api_key=api_key,
        api_secret=api_secret,
        secure=True,
    )


class CloudinaryBlobStore:
    """Store uploads in Cloudinary under a single folder."""

    is_remote = True

    def __init__(self, folder: str):
        self.folder = folder

    async def put(self, data: bytes, stored_name: str, mime_type: str) -> StoredBlob:
        data_uri = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        result = await asyncio.to_thread(
            cloudinary.uploader.upload,
            data_uri,
            folder=self.folder,
            resource_type="auto",
            use_filename=True,
            unique_filename=True,
        )
        secure_url = result["secure_url"]
        logger.info(
            "Uploaded %s to cloudinary public_id=%s bytes=%s",
            stored_name,
            result["public_id"],
            result.get("bytes"),
        )
        return StoredBlob(
            path=secure_url,
            public_path=secure_url,
            is_remote=True,
            remote_id=result["public_id"],
            remote_url=secure_url,
        )

    async def delete(self, path: str, remote_id: str | None = None) -> None:
        if not remote_id:
            logger.warning("Cannot delete remote file without public id: %s", path)
            return
        await asyncio.to_thread(cloudinary.uploader.destroy, remote_id)

    def resolve_url(self, public_path: str, remote_url: str | None = None) -> str:
        return remote_url or public_path
