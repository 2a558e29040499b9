import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .user import User


class FileUpload(Base):
    __tablename__ = "file_uploads"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    stored_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(String(2048), nullable=False)
    upload_path: Mapped[str] = mapped_column(String(2048), nullable=False)
    is_scanned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    is_safe: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    # Scan report plus storage backend details (is_remote, remote_id, remote_url)
    scan_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )

    owner: Mapped["User"] = relationship("User", lazy="joined")

    @property
    def is_remote(self) -> bool:
        return bool((self.scan_metadata or {}).get("is_remote"))

    @property
    def remote_id(self) -> str | None:
        return (self.scan_metadata or {}).get("remote_id")

    @property
    def remote_url(self) -> str | None:
        return (self.scan_metadata or {}).get("remote_url")
