"""File response schemas."""
import uuid
from typing import Optional
from datetime import datetime
from pydantic import field_validator
from app.models.file_record import Visibility
from app.schemas.base import CamelORMModel
from app.services.clock import as_utc


class FileInfoResponse(CamelORMModel):
    """What anyone may learn about a file: enough to know which proof to present."""
    id: uuid.UUID
    visibility: Visibility
    has_password: bool
    size_bytes: int
    available_from: Optional[datetime] = None
    available_to: Optional[datetime] = None
    created_at: datetime

    @field_validator("available_from", "available_to", "created_at")
    @classmethod
    def ensure_utc(cls, v):
        return as_utc(v)


class FileUploadResponse(FileInfoResponse):
    original_name: str
    mime_type: Optional[str] = None
    owner_id: Optional[str] = None
