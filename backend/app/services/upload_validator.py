"""Upload request validation.

Pure and synchronous: decides whether an upload is well-formed before any
hashing, blob write or database work happens. Checks run in a fixed order
and the first failure wins.
"""
from dataclasses import dataclass
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from app.models.file_record import Visibility
from app.services.clock import as_utc
from app.services.errors import UploadValidationError

DEFAULT_MIN_PASSWORD_LENGTH = 6

_datetime_adapter = TypeAdapter(datetime)


@dataclass(frozen=True)
class UploadCandidate:
    """Raw upload fields as received from the request layer."""
    payload: bytes | None
    filename: str | None = None
    content_type: str | None = None
    password: str | None = None
    is_public: bool | None = None
    available_from: datetime | str | None = None
    available_to: datetime | str | None = None
    subject_id: str | None = None


@dataclass(frozen=True)
class ValidatedUpload:
    payload: bytes
    filename: str
    content_type: str | None
    password: str | None
    visibility: Visibility
    available_from: datetime | None
    available_to: datetime | None
    owner_id: str | None

    @property
    def size(self) -> int:
        return len(self.payload)


def _parse_bound(value: datetime | str | None, field: str) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = _datetime_adapter.validate_python(value.strip())
        except ValidationError:
            raise UploadValidationError(
                UploadValidationError.INVALID_DATE,
                f"{field} is not a valid timestamp",
            )
    try:
        return as_utc(value)
    except (OverflowError, ValueError):
        raise UploadValidationError(
            UploadValidationError.INVALID_DATE,
            f"{field} is outside the supported date range",
        )


def validate_upload(
    candidate: UploadCandidate,
    min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
) -> ValidatedUpload:
    """Check ``candidate`` and return a normalized ValidatedUpload.

    Raises UploadValidationError with one of: missing_file, weak_password,
    invalid_date, invalid_date_range, unauthorized_private_upload.
    """
    if not candidate.payload:
        raise UploadValidationError(UploadValidationError.MISSING_FILE, "A non-empty file is required")

    # An empty password field means "no password"
    password = candidate.password or None
    if password is not None and len(password) < min_password_length:
        raise UploadValidationError(
            UploadValidationError.WEAK_PASSWORD,
            f"Password must be at least {min_password_length} characters",
        )

    available_from = _parse_bound(candidate.available_from, "availableFrom")
    available_to = _parse_bound(candidate.available_to, "availableTo")
    if available_from is not None and available_to is not None and available_from >= available_to:
        raise UploadValidationError(
            UploadValidationError.INVALID_DATE_RANGE,
            "availableFrom must be before availableTo",
        )

    is_public = True if candidate.is_public is None else candidate.is_public
    visibility = Visibility.PUBLIC if is_public else Visibility.PRIVATE
    if visibility == Visibility.PRIVATE and password is None and not candidate.subject_id:
        raise UploadValidationError(
            UploadValidationError.UNAUTHORIZED_PRIVATE_UPLOAD,
            "Private files need a password or an authenticated owner",
        )

    return ValidatedUpload(
        payload=candidate.payload,
        filename=candidate.filename or "unnamed",
        content_type=candidate.content_type,
        password=password,
        visibility=visibility,
        available_from=available_from,
        available_to=available_to,
        owner_id=candidate.subject_id or None,
    )
