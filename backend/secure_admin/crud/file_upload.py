import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.file_upload import FileUpload


class FileUploadRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        stored_name: str,
        original_name: str,
        size_bytes: int,
        mime_type: str,
        storage_path: str,
        upload_path: str,
        owner_id: uuid.UUID,
        is_scanned: bool = True,
        is_safe: bool = True,
        scan_metadata: dict[str, Any] | None = None,
    ) -> FileUpload:
        record = FileUpload(
            stored_name=stored_name,
            original_name=original_name,
            size_bytes=size_bytes,
            mime_type=mime_type,
            storage_path=storage_path,
            upload_path=upload_path,
            is_scanned=is_scanned,
            is_safe=is_safe,
            scan_metadata=scan_metadata,
            owner_id=owner_id,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return record

    async def get_by_id(self, file_id: uuid.UUID) -> FileUpload | None:
        return await self.session.get(FileUpload, file_id)

    async def list_by_owner(
        self,
        owner_id: uuid.UUID | None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[FileUpload], int]:
        """
        List uploads newest first.

        Args:
            owner_id: Restrict to one owner; None lists every upload
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Tuple of (uploads, total count before pagination)
        """
        query = select(FileUpload)
        if owner_id is not None:
            query = query.where(FileUpload.owner_id == owner_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar() or 0

        query = query.order_by(FileUpload.created_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(query)
        return list(result.unique().scalars().all()), total

    async def count(
        self,
        owner_id: uuid.UUID | None = None,
        since: datetime | None = None,
    ) -> int:
        query = select(func.count()).select_from(FileUpload)
        if owner_id is not None:
            query = query.where(FileUpload.owner_id == owner_id)
        if since is not None:
            query = query.where(FileUpload.created_at >= since)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def delete(self, record: FileUpload) -> None:
        await self.session.delete(record)
        await self.session.flush()
