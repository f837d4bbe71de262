"""Access control engine - upload and retrieval use cases.

Upload:    received -> authenticated? -> validated -> hashed -> persisted -> accepted
Retrieval: received -> looked up -> authorized -> served

Any step before "persisted" can reject the upload; nothing is committed until
every check has passed. If the record insert fails after the blob was
written, the blob is removed again.
"""
import logging
from dataclasses import dataclass
from datetime import datetime

from starlette.concurrency import run_in_threadpool

from app.models.file_record import FileRecord, Visibility
from app.services.access_policy import AccessProof, Denied, authorize
from app.services.errors import AccessDenied, AuthError, FileNotFound, InternalError
from app.services.file_storage import FileStorageService
from app.services.hashing import PasswordHasher
from app.services.metadata_store import MetadataStore
from app.services.tokens import TokenService
from app.services.upload_validator import (
    DEFAULT_MIN_PASSWORD_LENGTH,
    UploadCandidate,
    validate_upload,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetrievedFile:
    record: FileRecord
    content: bytes


class AccessEngine:
    """Owns the collaborators and runs the upload/retrieval flows."""

    def __init__(
        self,
        *,
        clock,
        tokens: TokenService,
        store: MetadataStore,
        blobs: FileStorageService,
        hasher: PasswordHasher,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
        private_upload_requires_auth: bool = True,
    ):
        self.clock = clock
        self.tokens = tokens
        self.store = store
        self.blobs = blobs
        self.hasher = hasher
        self.min_password_length = min_password_length
        self.private_upload_requires_auth = private_upload_requires_auth

    async def upload(
        self,
        *,
        payload: bytes | None,
        filename: str | None = None,
        content_type: str | None = None,
        password: str | None = None,
        is_public: bool | None = None,
        available_from: datetime | str | None = None,
        available_to: datetime | str | None = None,
        credential: str | None = None,
    ) -> FileRecord:
        """Validate and store an upload. Returns the new record."""
        subject_id = None
        if credential:
            subject_id = self.tokens.verify(credential, self.clock.now())

        upload = validate_upload(
            UploadCandidate(
                payload=payload,
                filename=filename,
                content_type=content_type,
                password=password,
                is_public=is_public,
                available_from=available_from,
                available_to=available_to,
                subject_id=subject_id,
            ),
            min_password_length=self.min_password_length,
        )

        if (
            upload.visibility == Visibility.PRIVATE
            and upload.owner_id is None
            and self.private_upload_requires_auth
        ):
            raise AuthError(AuthError.MISSING_CREDENTIAL, "Private uploads require authentication")

        password_hash = None
        if upload.password is not None:
            password_hash = await run_in_threadpool(self.hasher.hash, upload.password)

        try:
            storage_path = await self.blobs.save(upload.payload, upload.filename)
        except OSError:
            logger.exception(f"Failed to write blob for upload {upload.filename!r}")
            raise InternalError()

        try:
            record = await self.store.create(
                upload, storage_path=storage_path, password_hash=password_hash
            )
        except BaseException:
            # Also runs on cancellation.
            await self._discard_blob(storage_path)
            raise

        logger.info(
            f"Accepted upload {record.id} ({record.size_bytes} bytes, "
            f"{record.visibility.value}, owner={record.owner_id or 'anonymous'})"
        )
        return record

    async def describe(self, file_id) -> FileRecord:
        """Look up a record without authorizing content access."""
        return await self.store.get(file_id)

    async def retrieve(
        self,
        file_id,
        *,
        credential: str | None = None,
        password: str | None = None,
    ) -> RetrievedFile:
        """Authorize a download and return the record with its bytes."""
        record = await self.store.get(file_id)

        now = self.clock.now()
        subject_id = None
        if credential:
            subject_id = self.tokens.verify(credential, now)

        try:
            decision = await run_in_threadpool(
                authorize,
                record,
                AccessProof(subject_id=subject_id, password=password or None),
                now,
                self.hasher.check,
            )
        except ValueError:
            logger.exception(f"File {record.id} has an inconsistent access policy")
            raise InternalError()
        if isinstance(decision, Denied):
            logger.info(f"Denied retrieval of {record.id}: {decision.reason}")
            raise AccessDenied(decision.reason, _DENIAL_MESSAGES[decision.reason])

        try:
            content = await self.blobs.read(record.storage_path)
        except OSError:
            logger.exception(f"Blob for file {record.id} could not be read")
            raise InternalError()
        return RetrievedFile(record=record, content=content)

    async def purge_expired(self) -> int:
        """Delete records whose availability window has closed, then their blobs."""
        expired = await self.store.list_expired(self.clock.now())
        purged = 0
        for record in expired:
            try:
                await self.store.delete(record.id)
            except FileNotFound:
                # Already removed by another sweeper
                continue
            await self._discard_blob(record.storage_path)
            purged += 1
        if purged:
            logger.info(f"Purged {purged} expired file(s)")
        return purged

    async def _discard_blob(self, storage_path: str) -> None:
        try:
            await self.blobs.delete(storage_path)
        except OSError:
            logger.exception(f"Failed to remove blob {storage_path}")


_DENIAL_MESSAGES = {
    AccessDenied.OUTSIDE_AVAILABILITY_WINDOW: "File is not available at this time",
    AccessDenied.INSUFFICIENT_PROOF: "A valid password or owner credential is required",
}
