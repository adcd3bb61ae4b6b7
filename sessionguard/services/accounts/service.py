"""
AccountService
==============

Entry points that create credentials: sign-up and login. Both end by asking
the :class:`~sessionguard.services.tokens.TokenService` for a fresh pair.
"""

from __future__ import annotations

import logging

from sessionguard.services._shared.errors import InvalidCredentialsError
from sessionguard.services._shared.ports import UserRecord, UserStore
from sessionguard.services.accounts.dto import LoginIn, SignUpIn
from sessionguard.services.tokens import TokenPair, TokenService

logger = logging.getLogger(__name__)


class AccountService:
    """
    Orchestrates user creation/authentication and token issuance.

    :param users: User store owning identities and password hashes.
    :param tokens: Token lifecycle service.
    """

    def __init__(self, users: UserStore, tokens: TokenService) -> None:
        self.users = users
        self.tokens = tokens

    def sign_up(self, dto: SignUpIn) -> tuple[UserRecord, TokenPair]:
        """
        Register a user and issue its first token pair.

        :raises ConflictError: When the email is already registered.
        :raises RegistryUnavailableError: When tokens cannot be recorded.
        """
        user = self.users.create(email=dto.email, password=dto.password, nickname=dto.nickname)
        logger.info("User signed up", extra={"event": "signup"})
        return user, self.tokens.issue_access_and_refresh(user.email)

    def login(self, dto: LoginIn) -> tuple[UserRecord, TokenPair]:
        """
        Verify credentials and issue a token pair.

        :raises InvalidCredentialsError: On unknown email or wrong password.
        """
        user = self.users.authenticate(dto.email, dto.password)
        if user is None:
            raise InvalidCredentialsError()
        return user, self.tokens.issue_access_and_refresh(user.email)
