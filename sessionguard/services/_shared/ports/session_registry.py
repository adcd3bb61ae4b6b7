from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Callable
from typing import Protocol


def token_fingerprint(token: str) -> str:
    """Stable key material for a token (the raw string never becomes a key)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionRegistry(Protocol):
    """
    Shared ``token -> subject`` registry with TTLs mirroring token expiry.

    Single source of truth for revocation: a live token must have a record.
    Implementations raise
    :class:`~sessionguard.services._shared.errors.RegistryUnavailableError`
    when the backing store cannot be reached; they never answer "missing"
    for an outage.
    """

    def put(self, token: str, subject: str, ttl_seconds: int) -> None:
        """Upsert the record with its TTL atomically."""

    def get(self, token: str) -> str | None:
        """Return the recorded subject, or ``None`` when absent."""

    def delete(self, token: str) -> None:
        """Remove the record. Deleting a missing record is not an error."""

    def delete_all_for_subject(self, subject: str) -> int:
        """
        Best-effort "log out everywhere".

        :returns: Number of records removed.
        """

    def replace(self, old_token: str, new_token: str, subject: str, ttl_seconds: int) -> None:
        """Atomically delete ``old_token`` and put ``new_token``."""

    def ping(self) -> bool:
        """Return ``True`` when the store answers."""


class InMemorySessionRegistry(SessionRegistry):
    """
    Simple in-process registry.

    .. note::
       Uses a threading lock to mimic single-key atomicity of the real store.
       Used by unit tests and by development runs without ``REDIS_URL``.
    """

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._records: dict[str, tuple[str, float]] = {}
        self._by_subject: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    # ------------------------- helpers -------------------------

    def _now(self) -> float:
        return self._clock() if self._clock else time.time()

    def _live(self, key: str) -> tuple[str, float] | None:
        record = self._records.get(key)
        if record is None:
            return None
        if record[1] <= self._now():
            self._records.pop(key, None)
            return None
        return record

    def _put_locked(self, token: str, subject: str, ttl_seconds: int) -> None:
        key = token_fingerprint(token)
        self._records[key] = (subject, self._now() + max(1, int(ttl_seconds)))
        index = self._by_subject.setdefault(subject, set())
        index.difference_update([k for k in index if self._live(k) is None])
        index.add(key)

    def _delete_locked(self, token: str) -> None:
        key = token_fingerprint(token)
        record = self._records.pop(key, None)
        if record is not None:
            self._by_subject.get(record[0], set()).discard(key)

    # -------------------------- API ----------------------------

    def put(self, token: str, subject: str, ttl_seconds: int) -> None:
        with self._lock:
            self._put_locked(token, subject, ttl_seconds)

    def get(self, token: str) -> str | None:
        with self._lock:
            record = self._live(token_fingerprint(token))
            return record[0] if record else None

    def delete(self, token: str) -> None:
        with self._lock:
            self._delete_locked(token)

    def delete_all_for_subject(self, subject: str) -> int:
        with self._lock:
            keys = self._by_subject.pop(subject, set())
            removed = 0
            for key in keys:
                if self._live(key) is not None:
                    removed += 1
                self._records.pop(key, None)
            return removed

    def replace(self, old_token: str, new_token: str, subject: str, ttl_seconds: int) -> None:
        with self._lock:
            self._delete_locked(old_token)
            self._put_locked(new_token, subject, ttl_seconds)

    def ping(self) -> bool:
        return True
