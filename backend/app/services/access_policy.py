"""Retrieval access policy.

A stored record maps to exactly one AccessRule:

    OpenAccess        public, no password
    OwnerOnly         private, no password, has owner
    PasswordOnly      password, no owner
    OwnerOrPassword   password and owner (owner bypasses the password)

The availability window is checked before the rule and applies to everyone,
owners included.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Union

from app.models.file_record import FileRecord, Visibility
from app.services.clock import as_utc
from app.services.errors import AccessDenied


@dataclass(frozen=True)
class AccessProof:
    """What the requester presented: a verified subject and/or a password."""
    subject_id: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class OpenAccess:
    pass


@dataclass(frozen=True)
class OwnerOnly:
    owner_id: str


@dataclass(frozen=True)
class PasswordOnly:
    password_hash: str


@dataclass(frozen=True)
class OwnerOrPassword:
    owner_id: str
    password_hash: str


AccessRule = Union[OpenAccess, OwnerOnly, PasswordOnly, OwnerOrPassword]


@dataclass(frozen=True)
class Granted:
    pass


@dataclass(frozen=True)
class Denied:
    reason: str


Decision = Union[Granted, Denied]


def rule_for(record: FileRecord) -> AccessRule:
    if record.visibility == Visibility.PUBLIC and record.password_hash is None:
        return OpenAccess()
    if record.password_hash is None:
        if not record.owner_id:
            # Rejected at upload time; a row like this has no possible reader.
            raise ValueError(f"File {record.id} is private with neither owner nor password")
        return OwnerOnly(record.owner_id)
    if not record.owner_id:
        return PasswordOnly(record.password_hash)
    return OwnerOrPassword(record.owner_id, record.password_hash)


def within_window(record: FileRecord, now: datetime) -> bool:
    available_from = as_utc(record.available_from)
    available_to = as_utc(record.available_to)
    if available_from is not None and now < available_from:
        return False
    if available_to is not None and now > available_to:
        return False
    return True


def authorize(
    record: FileRecord,
    proof: AccessProof,
    now: datetime,
    check_password: Callable[[str, str], bool],
) -> Decision:
    """Decide whether ``proof`` grants access to ``record`` at ``now``.

    ``check_password(plaintext, password_hash)`` is the hasher's verify call.
    """
    if not within_window(record, now):
        return Denied(AccessDenied.OUTSIDE_AVAILABILITY_WINDOW)

    rule = rule_for(record)
    is_owner = False
    password_ok = False
    if isinstance(rule, (OwnerOnly, OwnerOrPassword)):
        is_owner = proof.subject_id is not None and proof.subject_id == rule.owner_id
    if isinstance(rule, (PasswordOnly, OwnerOrPassword)) and not is_owner:
        password_ok = bool(proof.password) and check_password(proof.password, rule.password_hash)

    if isinstance(rule, OpenAccess):
        return Granted()
    elif isinstance(rule, OwnerOnly):
        return Granted() if is_owner else Denied(AccessDenied.INSUFFICIENT_PROOF)
    elif isinstance(rule, PasswordOnly):
        return Granted() if password_ok else Denied(AccessDenied.INSUFFICIENT_PROOF)
    elif isinstance(rule, OwnerOrPassword):
        return Granted() if is_owner or password_ok else Denied(AccessDenied.INSUFFICIENT_PROOF)
    raise TypeError(f"Unhandled access rule: {rule!r}")
