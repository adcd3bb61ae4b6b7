from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from sessionguard.services._shared.errors import ConflictError


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Read-model for a user as seen by the token lifecycle.

    :ivar id: Surrogate identifier.
    :ivar email: Login email, also the token subject.
    :ivar nickname: Display name.
    """

    id: int
    email: str
    nickname: str


def normalize_email(email: str) -> str:
    """Lowercase and trim an email so lookups are case-insensitive."""
    return email.strip().lower()


class UserStore(Protocol):
    """
    Collaborator owning user identities.

    The token service only needs :meth:`find_subject`; the account service
    also creates and authenticates users.
    """

    def find_subject(self, identifier: str) -> UserRecord | None:
        """Return the user for a token subject, or ``None`` when unknown."""

    def create(self, *, email: str, password: str, nickname: str) -> UserRecord:
        """
        Persist a new user with a hashed password.

        :raises ConflictError: When the email is already registered.
        """

    def authenticate(self, email: str, password: str) -> UserRecord | None:
        """Return the user when the password matches, otherwise ``None``."""


@dataclass
class _StoredUser:
    record: UserRecord
    password_hash: str


class InMemoryUserStore(UserStore):
    """Dictionary-backed user store used in unit tests."""

    def __init__(self) -> None:
        self._users: dict[str, _StoredUser] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def find_subject(self, identifier: str) -> UserRecord | None:
        stored = self._users.get(normalize_email(identifier))
        return stored.record if stored else None

    def create(self, *, email: str, password: str, nickname: str) -> UserRecord:
        key = normalize_email(email)
        with self._lock:
            if key in self._users:
                raise ConflictError("User", "email already registered")
            self._seq += 1
            record = UserRecord(id=self._seq, email=key, nickname=nickname)
            self._users[key] = _StoredUser(record, generate_password_hash(password))
            return record

    def authenticate(self, email: str, password: str) -> UserRecord | None:
        stored = self._users.get(normalize_email(email))
        if stored is None or not check_password_hash(stored.password_hash, password):
            return None
        return stored.record

    def remove(self, email: str) -> None:
        """Drop a user (simulates an account deletion in tests)."""
        with self._lock:
            self._users.pop(normalize_email(email), None)
