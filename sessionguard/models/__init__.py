"""Persistent models (imported at startup so metadata is complete)."""

from __future__ import annotations

from .user import User

__all__ = ["User"]
