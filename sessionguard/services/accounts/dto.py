# sessionguard/services/accounts/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SignUpIn:
    """
    Input DTO for sign-up.

    :param email: User email (normalized by the store).
    :type email: str
    :param password: Raw password (hashed by the store).
    :type password: str
    :param nickname: Display name.
    :type nickname: str
    """

    email: str
    password: str
    nickname: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str
