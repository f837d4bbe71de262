"""FileRecord model - file metadata and access policy (bytes live in the blob store).

Rows are written once by MetadataStore.create and never updated.
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import String, BigInteger, DateTime, Enum, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from app.models.base import Base


class Visibility(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class FileRecord(Base):
    __tablename__ = "files"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    original_name: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    storage_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        Enum(Visibility, native_enum=False, length=10, values_callable=lambda e: [v.value for v in e]),
        default=Visibility.PUBLIC,
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    available_from: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    available_to: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @property
    def has_password(self) -> bool:
        return self.password_hash is not None
