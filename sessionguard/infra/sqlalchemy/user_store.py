"""SQLAlchemy-backed :class:`~sessionguard.services._shared.ports.UserStore`."""

from __future__ import annotations

from dataclasses import dataclass

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from sessionguard.models import User
from sessionguard.services._shared.errors import ConflictError
from sessionguard.services._shared.ports import UserRecord, UserStore, normalize_email


def _to_record(user: User) -> UserRecord:
    return UserRecord(id=user.id, email=user.email, nickname=user.nickname)


@dataclass(slots=True)
class SqlAlchemyUserStore(UserStore):
    """
    User store on the application database.

    :param db: Flask-SQLAlchemy extension (session is request-scoped).
    """

    db: SQLAlchemy

    def _by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == normalize_email(email))
        return self.db.session.execute(stmt).scalar_one_or_none()

    def find_subject(self, identifier: str) -> UserRecord | None:
        user = self._by_email(identifier)
        return _to_record(user) if user else None

    def create(self, *, email: str, password: str, nickname: str) -> UserRecord:
        if self._by_email(email) is not None:
            raise ConflictError("User", "email already registered")
        user = User(email=email, nickname=nickname)
        user.password = password
        self.db.session.add(user)
        try:
            self.db.session.commit()
        except IntegrityError as exc:
            self.db.session.rollback()
            raise ConflictError("User", "email already registered") from exc
        return _to_record(user)

    def authenticate(self, email: str, password: str) -> UserRecord | None:
        user = self._by_email(email)
        if user is None or not user.verify_password(password):
            return None
        return _to_record(user)
