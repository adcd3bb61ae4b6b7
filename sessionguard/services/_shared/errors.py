"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between adapters,
the user store and application services.

Token outcomes are *not* exceptions: the codec and the token service return
:class:`~sessionguard.services.tokens.dto.TokenFailure` values instead. What
lives here are the failures that abort a command (signup, issuance, logout).

The translation to HTTP responses (RFC 7807) is handled by
``sessionguard/core/errors.py`` and the API layer.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to :class:`~sessionguard.core.errors.APIError`.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


class InvalidCredentialsError(ServiceError):
    """Raised when an email/password pair does not match a stored user."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


@dataclass(slots=True)
class RegistryUnavailableError(ServiceError):
    """
    Raised when the session registry cannot be reached (or timed out).

    Never interpreted as "not revoked" nor as "revoked": validation turns it
    into ``TokenFailure.REGISTRY_UNAVAILABLE`` and commands propagate it.

    :param operation: Registry operation that failed (``put``, ``get``...).
    :type operation: str
    :param reason: Short description of the underlying client error.
    :type reason: str
    """

    operation: str
    reason: str = ""

    def __str__(self) -> str:  # pragma: no cover
        return f"Session registry unavailable during {self.operation}: {self.reason}"
