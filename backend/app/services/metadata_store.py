"""Metadata store - the only stateful part of the engine.

Backed by the async SQLAlchemy session factory. ``create`` is a single
insert + commit, so concurrent uploads never share an id and readers only
ever see committed rows.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.file_record import FileRecord
from app.services.errors import FileNotFound, InternalError
from app.services.upload_validator import ValidatedUpload

logger = logging.getLogger(__name__)


def _parse_id(file_id) -> uuid.UUID:
    if isinstance(file_id, uuid.UUID):
        return file_id
    try:
        return uuid.UUID(str(file_id))
    except ValueError:
        raise FileNotFound(file_id)


class MetadataStore:
    def __init__(self, sessions: async_sessionmaker[AsyncSession], clock):
        self._sessions = sessions
        self._clock = clock

    async def create(
        self,
        upload: ValidatedUpload,
        *,
        storage_path: str,
        password_hash: str | None,
    ) -> FileRecord:
        """Persist a new record for a validated upload and return it."""
        record = FileRecord(
            id=uuid.uuid4(),
            owner_id=upload.owner_id,
            original_name=upload.filename,
            mime_type=upload.content_type,
            size_bytes=upload.size,
            storage_path=storage_path,
            visibility=upload.visibility,
            password_hash=password_hash,
            available_from=upload.available_from,
            available_to=upload.available_to,
            created_at=self._clock.now(),
        )
        try:
            async with self._sessions() as db:
                db.add(record)
                await db.commit()
        except SQLAlchemyError:
            logger.exception(f"Failed to persist file record {record.id}")
            raise InternalError()
        return record

    async def get(self, file_id) -> FileRecord:
        """Get a record by id. Raises FileNotFound for unknown ids."""
        record_id = _parse_id(file_id)
        try:
            async with self._sessions() as db:
                record = await db.get(FileRecord, record_id)
        except SQLAlchemyError:
            logger.exception(f"Failed to load file record {record_id}")
            raise InternalError()
        if record is None:
            raise FileNotFound(file_id)
        return record

    async def delete(self, file_id) -> None:
        record_id = _parse_id(file_id)
        try:
            async with self._sessions() as db:
                record = await db.get(FileRecord, record_id)
                if record is None:
                    raise FileNotFound(file_id)
                await db.delete(record)
                await db.commit()
        except SQLAlchemyError:
            logger.exception(f"Failed to delete file record {record_id}")
            raise InternalError()

    async def list_expired(self, now: datetime, limit: int = 100) -> list[FileRecord]:
        """Records whose availability window closed before ``now``."""
        try:
            async with self._sessions() as db:
                result = await db.execute(
                    select(FileRecord)
                    .where(FileRecord.available_to.is_not(None), FileRecord.available_to < now)
                    .order_by(FileRecord.available_to)
                    .limit(limit)
                )
                return list(result.scalars().all())
        except SQLAlchemyError:
            logger.exception("Failed to list expired file records")
            raise InternalError()
