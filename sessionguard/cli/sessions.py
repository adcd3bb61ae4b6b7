"""Flask CLI commands for database setup and session administration."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from sessionguard.core.extensions import db, get_token_service
from sessionguard.services._shared.errors import RegistryUnavailableError
from sessionguard.services._shared.ports import normalize_email

LOGGER = logging.getLogger(__name__)


@click.group("sessions")
def sessions_cli() -> None:
    """Database and session registry administration."""


@sessions_cli.command("init-db")
@with_appcontext
def init_db() -> None:
    """Create the users table if it does not exist."""
    db.create_all()
    click.echo("Database initialized.")


@sessions_cli.command("revoke-all")
@click.argument("email")
@with_appcontext
def revoke_all(email: str) -> None:
    """Log EMAIL out of every session."""
    try:
        removed = get_token_service().revoke_all(normalize_email(email))
    except RegistryUnavailableError as exc:
        raise click.ClickException(f"Session registry unavailable: {exc.reason}") from exc
    LOGGER.info("Sessions revoked from CLI")
    click.echo(f"Revoked {removed} session(s) for {normalize_email(email)}.")
