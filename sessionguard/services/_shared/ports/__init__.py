"""
sessionguard.services._shared.ports
===================================

Collection of *ports* (hexagonal interfaces) the token lifecycle depends on.

Modules
-------
- :mod:`session_registry`:
    Defines :class:`~.SessionRegistry`, the shared ``token -> subject`` store
    used for revocation, plus :class:`~.InMemorySessionRegistry`.

- :mod:`user_store`:
    Defines :class:`~.UserStore` and :class:`~.UserRecord`, the collaborator
    that owns user identities, plus :class:`~.InMemoryUserStore`.

Concrete adapters (Redis, SQLAlchemy) implement these interfaces under
``sessionguard.infra``.
"""

from __future__ import annotations

from .session_registry import InMemorySessionRegistry, SessionRegistry, token_fingerprint
from .user_store import InMemoryUserStore, UserRecord, UserStore, normalize_email

__all__ = [
    "SessionRegistry",
    "InMemorySessionRegistry",
    "token_fingerprint",
    "UserStore",
    "UserRecord",
    "InMemoryUserStore",
    "normalize_email",
]
