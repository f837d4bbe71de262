"""Error taxonomy for the upload and access-control engine.

Every error carries a machine-readable ``kind`` so the HTTP layer can map
it to a status code without inspecting messages.
"""


class EngineError(Exception):
    """Base class for all engine errors."""

    status_code = 500

    def __init__(self, kind: str, message: str = ""):
        self.kind = kind
        self.message = message or kind.replace("_", " ")
        super().__init__(self.message)


class UploadValidationError(EngineError):
    """The upload request is malformed. Client-caused, never retried."""

    status_code = 400

    MISSING_FILE = "missing_file"
    WEAK_PASSWORD = "weak_password"
    INVALID_DATE = "invalid_date"
    INVALID_DATE_RANGE = "invalid_date_range"
    UNAUTHORIZED_PRIVATE_UPLOAD = "unauthorized_private_upload"


class AuthError(EngineError):
    """Bearer credential missing, malformed, expired, or login rejected."""

    status_code = 401

    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    EXPIRED_CREDENTIAL = "expired_credential"
    INVALID_LOGIN = "invalid_login"


class AccessDenied(EngineError):
    """Retrieval refused by the access policy."""

    status_code = 403

    OUTSIDE_AVAILABILITY_WINDOW = "outside_availability_window"
    INSUFFICIENT_PROOF = "insufficient_proof"


class FileNotFound(EngineError):
    status_code = 404

    NOT_FOUND = "not_found"

    def __init__(self, file_id):
        super().__init__(self.NOT_FOUND, f"File {file_id} not found")
        self.file_id = file_id


class AccountError(EngineError):
    status_code = 409

    DUPLICATE_ACCOUNT = "duplicate_account"


class InternalError(EngineError):
    """A collaborator (database, blob store) failed. Details are logged, not returned."""

    INTERNAL = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(self.INTERNAL, message)
