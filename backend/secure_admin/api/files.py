"""
File endpoints.

Non-admin callers only ever see their own uploads. Download info and deletion
require ownership or an admin role; deleting someone else's upload also
requires files.delete.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import rbac
from ..auth.guard import require_permission
from ..config import get_settings
from ..dependencies import get_activity_recorder, get_db, get_request_context, get_storage
from ..models.user import User
from ..schemas.common import MessageResponse
from ..schemas.file_upload import FileDownloadResult, FileList, FileUploadResult
from ..schemas.filters import FileUploadFilter
from ..services.admin import FileService
from ..services.admin.file_service import to_upload_response
from ..services.audit import ActivityRecorder, RequestContext
from ..storage import BlobStore

router = APIRouter(tags=["files"])


def get_file_service(
    db: AsyncSession = Depends(get_db),
    storage: BlobStore = Depends(get_storage),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> FileService:
    return FileService(
        db,
        storage=storage,
        recorder=recorder,
        max_upload_bytes=get_settings().max_upload_bytes,
    )


@router.post("/upload", response_model=FileUploadResult)
async def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(require_permission(rbac.Permission.FILES_UPLOAD)),
    service: FileService = Depends(get_file_service),
    context: RequestContext = Depends(get_request_context),
) -> FileUploadResult:
    """
    Upload one file as multipart form field ``file``.

    Requires: files.upload. The file is validated and scanned before it is
    stored.
    """
    # One byte past the limit is enough for the size check to reject it
    content = await file.read(service.max_upload_bytes + 1)
    record = await service.upload(
        file_name=file.filename or "",
        mime_type=file.content_type,
        content=content,
        actor=current_user,
        context=context,
    )
    return FileUploadResult(file=to_upload_response(record))


@router.get("/files", response_model=FileList)
async def list_files(
    owner_id: UUID | None = Query(None, alias="uploadedBy", description="Admins only"),
    limit: int = Query(50, ge=1, le=100, description="Results per page"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
    current_user: User = Depends(require_permission(rbac.Permission.FILES_READ)),
    service: FileService = Depends(get_file_service),
) -> FileList:
    filters = FileUploadFilter(owner_id=owner_id, limit=limit, offset=offset)
    return await service.list_files(filters, actor=current_user)


@router.get("/files/{file_id}", response_model=FileDownloadResult)
async def get_file(
    file_id: UUID,
    current_user: User = Depends(require_permission(rbac.Permission.FILES_READ)),
    service: FileService = Depends(get_file_service),
    context: RequestContext = Depends(get_request_context),
) -> FileDownloadResult:
    download = await service.get_download(file_id, actor=current_user, context=context)
    return FileDownloadResult(file=download)


@router.delete("/files/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: UUID,
    current_user: User = Depends(require_permission(rbac.Permission.FILES_READ)),
    service: FileService = Depends(get_file_service),
    context: RequestContext = Depends(get_request_context),
) -> MessageResponse:
    await service.delete(file_id, actor=current_user, context=context)
    return MessageResponse(message="File deleted successfully")
