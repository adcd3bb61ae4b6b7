from __future__ import annotations

from .dto import LoginIn, SignUpIn
from .service import AccountService

__all__ = ["AccountService", "LoginIn", "SignUpIn"]
