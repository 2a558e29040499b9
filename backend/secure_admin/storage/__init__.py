from functools import lru_cache

from ..config import Settings, get_settings
from .base import BlobStore, StoredBlob
from .local import LocalBlobStore


def build_blob_store(config: Settings) -> BlobStore:
    """Cloudinary in production when credentials are present, local disk otherwise."""
    if config.use_cloud_storage:
        from .cloudinary import CloudinaryBlobStore, configure_cloudinary

        configure_cloudinary(
            cloudinary_url=config.cloudinary_url,
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
        )
        return CloudinaryBlobStore(folder=config.cloudinary_folder)
    return LocalBlobStore(config.upload_dir)


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    return build_blob_store(get_settings())


__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "StoredBlob",
    "build_blob_store",
    "get_blob_store",
]
