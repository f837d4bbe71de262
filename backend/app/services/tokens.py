"""Bearer credential issuing and verification.

Tokens are itsdangerous-signed payloads ``{"sub": <subject>, "exp": <epoch>}``.
Expiry is checked against the ``now`` passed in, never against the wall
clock, so ``verify`` is a pure function of its arguments.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from itsdangerous import BadData, URLSafeSerializer

from app.services.errors import AuthError

logger = logging.getLogger(__name__)

_TOKEN_SALT = "file-sharing.access-token"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    subject_id: str
    expires_at: datetime


def bearer_token(authorization: str | None) -> str | None:
    """Extract the credential from an ``Authorization`` header value.

    A header with another scheme is returned unchanged so it fails
    verification instead of silently counting as anonymous.
    """
    if not authorization or not authorization.strip():
        return None
    scheme, _, value = authorization.strip().partition(" ")
    if scheme.lower() == "bearer":
        # A bare "Bearer" is malformed, not anonymous
        return value.strip() or authorization.strip()
    return authorization.strip()


class TokenService:
    """Issues and verifies access tokens for one signing secret."""

    def __init__(self, secret: str, ttl_minutes: int = 60):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._serializer = URLSafeSerializer(secret, salt=_TOKEN_SALT)
        self._ttl = timedelta(minutes=ttl_minutes)

    def issue(self, subject_id: str, now: datetime) -> IssuedToken:
        expires_at = now + self._ttl
        token = self._serializer.dumps({"sub": subject_id, "exp": expires_at.timestamp()})
        return IssuedToken(token=token, subject_id=subject_id, expires_at=expires_at)

    def verify(self, credential: str | None, now: datetime) -> str:
        """Return the subject id bound to ``credential`` or raise AuthError."""
        if not credential:
            raise AuthError(AuthError.MISSING_CREDENTIAL, "Authentication required")

        try:
            payload = self._serializer.loads(credential)
        except BadData:
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid access token")

        if not isinstance(payload, dict):
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid access token")
        subject = payload.get("sub")
        exp = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid access token")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid access token")

        try:
            expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise AuthError(AuthError.INVALID_CREDENTIAL, "Invalid access token")
        if now >= expires_at:
            raise AuthError(AuthError.EXPIRED_CREDENTIAL, "Access token expired")
        return subject
