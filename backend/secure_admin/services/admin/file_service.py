"""
File uploads.

Upload pipeline, sequential per request:
    validate -> scan -> store blob -> persist record -> record activity

Nothing touches storage until validation and the content scan have passed.
A blob written before a failed record insert is left behind.
"""
import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from ...auth import rbac
from ...auth.guard import ensure_owner_or_admin, resolve_owner_scope
from ...crud.file_upload import FileUploadRepository
from ...errors import NotFoundError, PermissionError, ValidationError
from ...models.file_upload import FileUpload
from ...models.user import User
from ...schemas.common import Pagination
from ...schemas.file_upload import (
    FileDownloadResponse,
    FileList,
    FileListItem,
    FileOwner,
    FileUploadResponse,
)
from ...schemas.filters import FileUploadFilter
from ...storage import BlobStore
from ..audit import ActivityAction, ActivityRecorder, RequestContext
from ..files import format_file_size, generate_unique_file_name, scan_upload, validate_upload

logger = logging.getLogger(__name__)


def to_upload_response(record: FileUpload) -> FileUploadResponse:
    return FileUploadResponse(
        id=record.id,
        stored_name=record.stored_name,
        original_name=record.original_name,
        size_bytes=record.size_bytes,
        mime_type=record.mime_type,
        upload_path=record.upload_path,
        is_safe=record.is_safe,
        uploaded_at=record.created_at,
        is_remote=record.is_remote,
        remote_url=record.remote_url,
    )


def to_list_item(record: FileUpload) -> FileListItem:
    owner = None
    if record.owner is not None:
        owner = FileOwner(
            first_name=record.owner.first_name,
            last_name=record.owner.last_name,
            email=record.owner.email,
        )
    return FileListItem(
        **to_upload_response(record).model_dump(),
        owner_id=record.owner_id,
        owner=owner,
    )


class FileService:
    def __init__(
        self,
        session: AsyncSession,
        storage: BlobStore,
        recorder: ActivityRecorder,
        max_upload_bytes: int,
    ):
        self.session = session
        self.file_repo = FileUploadRepository(session)
        self.storage = storage
        self.recorder = recorder
        self.max_upload_bytes = max_upload_bytes

    async def upload(
        self,
        *,
        file_name: str,
        mime_type: str | None,
        content: bytes,
        actor: User,
        context: RequestContext,
    ) -> FileUpload:
        """
        Validate, scan, store and persist one upload.

        Raises:
            ValidationError: Size/extension/MIME rejection or failed scan
        """
        validate_upload(file_name, mime_type, len(content), self.max_upload_bytes)

        report = scan_upload(file_name, mime_type or "", content)
        if not report.is_safe:
            logger.warning(
                "Upload rejected by scan user=%s file=%r patterns=%s",
                actor.id,
                file_name,
                report.suspicious_patterns,
            )
            raise ValidationError("File failed security scan", details=report.as_dict())

        stored_name = generate_unique_file_name(file_name)
        blob = await self.storage.put(content, stored_name, mime_type or "")

        metadata = report.as_dict()
        metadata.update(
            is_remote=blob.is_remote,
            remote_id=blob.remote_id,
            remote_url=blob.remote_url,
        )
        record = await self.file_repo.create(
            stored_name=stored_name,
            original_name=file_name,
            size_bytes=len(content),
            mime_type=mime_type or "",
            storage_path=blob.path,
            upload_path=blob.public_path,
            owner_id=actor.id,
            is_scanned=True,
            is_safe=True,
            scan_metadata=metadata,
        )
        await self.session.commit()
        logger.info(
            "File uploaded id=%s name=%r size=%s remote=%s by=%s",
            record.id,
            file_name,
            format_file_size(len(content)),
            blob.is_remote,
            actor.id,
        )

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.FILE_UPLOADED,
            details={
                "file_name": file_name,
                "file_size": len(content),
                "file_type": mime_type,
                "is_remote": blob.is_remote,
                "storage_location": "cloudinary" if blob.is_remote else "local",
            },
            context=context,
        )
        return record

    async def list_files(self, filters: FileUploadFilter, actor: User) -> FileList:
        owner_id = resolve_owner_scope(actor, filters.owner_id)
        records, total = await self.file_repo.list_by_owner(
            owner_id,
            limit=filters.limit,
            offset=filters.offset,
        )
        return FileList(
            files=[to_list_item(record) for record in records],
            pagination=Pagination(total=total, limit=filters.limit, offset=filters.offset),
        )

    async def _get_visible(self, file_id: uuid.UUID, actor: User) -> FileUpload:
        record = await self.file_repo.get_by_id(file_id)
        if record is None:
            raise NotFoundError("File not found")
        ensure_owner_or_admin(record.owner_id, actor)
        return record

    async def get_download(
        self,
        file_id: uuid.UUID,
        actor: User,
        context: RequestContext,
    ) -> FileDownloadResponse:
        record = await self._get_visible(file_id, actor)
        download_url = self.storage.resolve_url(record.upload_path, record.remote_url)

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.FILE_DOWNLOADED,
            details={
                "file_id": str(record.id),
                "file_name": record.original_name,
                "file_size": record.size_bytes,
                "is_remote": record.is_remote,
            },
            context=context,
        )
        return FileDownloadResponse(
            id=record.id,
            file_name=record.original_name,
            size_bytes=record.size_bytes,
            mime_type=record.mime_type,
            download_url=download_url,
            is_remote=record.is_remote,
        )

    async def delete(
        self,
        file_id: uuid.UUID,
        actor: User,
        context: RequestContext,
    ) -> None:
        record = await self._get_visible(file_id, actor)

        # Admins reach other users' files, but removing them is its own grant
        if record.owner_id != actor.id and not rbac.has_permission(
            actor.role_name, rbac.Permission.FILES_DELETE
        ):
            logger.warning(
                "File delete denied user=%s role=%s file=%s owner=%s",
                actor.id,
                actor.role_name,
                record.id,
                record.owner_id,
            )
            raise PermissionError()

        details = {
            "file_id": str(record.id),
            "file_name": record.original_name,
            "owner_id": str(record.owner_id),
            "is_remote": record.is_remote,
        }
        await self.storage.delete(record.storage_path, record.remote_id)
        await self.file_repo.delete(record)
        await self.session.commit()
        logger.info("File deleted id=%s by=%s", file_id, actor.id)

        await self.recorder.record(
            actor=actor,
            action=ActivityAction.FILE_DELETED,
            details=details,
            context=context,
        )
