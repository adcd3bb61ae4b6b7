# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, cast

import redis  # type: ignore[import-untyped]
from redis.backoff import ExponentialBackoff  # type: ignore[import-untyped]
from redis.retry import Retry  # type: ignore[import-untyped]

from sessionguard.services._shared.errors import RegistryUnavailableError
from sessionguard.services._shared.ports import SessionRegistry, token_fingerprint


def build_redis_client(config: Mapping[str, Any]) -> redis.Redis:
    """
    Build a Redis client with short socket timeouts and bounded retries.

    A slow or absent Redis must surface quickly as an outage instead of
    stalling request threads.
    """
    retry = Retry(
        ExponentialBackoff(
            cap=float(config.get("REDIS_RETRY_BACKOFF_CAP", 0.2)),
            base=float(config.get("REDIS_RETRY_BACKOFF_BASE", 0.02)),
        ),
        int(config.get("REDIS_RETRY_ATTEMPTS", 2)),
    )
    return redis.Redis.from_url(
        config["REDIS_URL"],
        socket_timeout=float(config.get("REDIS_SOCKET_TIMEOUT", 0.5)),
        socket_connect_timeout=float(config.get("REDIS_CONNECT_TIMEOUT", 0.5)),
        retry=retry,
        decode_responses=False,
    )


def _s(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisSessionRegistry(SessionRegistry):
    """
    Redis-backed session registry.

    Layout::

        <prefix>:<sha256(token)>   -> subject      (string, EX = token TTL)
        <prefix>:u:<subject>       -> {sha256...}  (set, EX >= longest member TTL)

    :param r: A Redis client (already connected).
    :param prefix: Key namespace.
    """

    r: redis.Redis
    prefix: str = "sess"

    # -------------------- helpers --------------------

    def _k(self, token: str) -> str:
        return self._kf(token_fingerprint(token))

    def _kf(self, fingerprint: str) -> str:
        return f"{self.prefix}:{fingerprint}"

    def _ku(self, subject: str) -> str:
        return f"{self.prefix}:u:{subject}"

    @staticmethod
    @contextmanager
    def _guard(operation: str) -> Iterator[None]:
        try:
            yield
        except redis.RedisError as exc:
            raise RegistryUnavailableError(operation, str(exc)) from exc

    def _index_state(self, key_u: str) -> tuple[list[str], int]:
        """Return the index members whose record is gone and the longest live TTL."""
        members = [cast(str, _s(m)) for m in self.r.smembers(key_u)]
        if not members:
            return [], 0
        pipe = self.r.pipeline(transaction=False)
        for fp in members:
            pipe.ttl(self._kf(fp))
        ttls = cast(list[int], pipe.execute())
        stale = [fp for fp, ttl in zip(members, ttls) if ttl == -2]
        return stale, max((ttl for ttl in ttls if ttl > 0), default=0)

    def _write(self, token: str, subject: str, ttl_seconds: int, *, old_token: str | None = None) -> None:
        """
        Store ``token`` (dropping ``old_token``) and keep the subject index tidy.

        The index loses members whose record already expired and never
        expires before the longest-lived record it points to.
        """
        ttl = max(1, int(ttl_seconds))
        key_u = self._ku(subject)
        # Optimistic locking on the index; concurrent writers retry
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key_u)
                    stale, longest = self._index_state(key_u)

                    p.multi()
                    if old_token is not None:
                        p.delete(self._k(old_token))
                        stale.append(token_fingerprint(old_token))
                    p.set(self._k(token), subject, ex=ttl)
                    if stale:
                        p.srem(key_u, *stale)
                    p.sadd(key_u, token_fingerprint(token))
                    p.expire(key_u, max(ttl, longest))
                    p.execute()
                return
            except redis.WatchError:
                continue

    # -------------------- API ------------------------

    def put(self, token: str, subject: str, ttl_seconds: int) -> None:
        with self._guard("put"):
            self._write(token, subject, ttl_seconds)

    def get(self, token: str) -> str | None:
        with self._guard("get"):
            return _s(self.r.get(self._k(token)))

    def delete(self, token: str) -> None:
        with self._guard("delete"):
            key = self._k(token)
            subject = _s(self.r.get(key))
            with self.r.pipeline(transaction=True) as p:
                p.delete(key)
                if subject is not None:
                    p.srem(self._ku(subject), token_fingerprint(token))
                p.execute()

    def delete_all_for_subject(self, subject: str) -> int:
        with self._guard("delete_all_for_subject"):
            key_u = self._ku(subject)
            fingerprints = [_s(m) for m in self.r.smembers(key_u)]
            pipe = self.r.pipeline(transaction=True)
            for fp in fingerprints:
                pipe.delete(self._kf(cast(str, fp)))
            pipe.delete(key_u)
            out = cast(list[int], pipe.execute())
            # last reply is the index deletion
            return sum(out[:-1])

    def replace(self, old_token: str, new_token: str, subject: str, ttl_seconds: int) -> None:
        with self._guard("replace"):
            self._write(new_token, subject, ttl_seconds, old_token=old_token)

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except redis.RedisError:
            return False
