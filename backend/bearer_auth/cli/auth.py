"""Flask CLI commands for schema bootstrap and token administration."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from bearer_auth.core.extensions import db
from bearer_auth.services.auth.dto import normalize_email
from bearer_auth.services.tokens.dto import RevocationReason, TokenPurpose
from bearer_auth.services.wiring import get_auth_service

LOGGER = logging.getLogger(__name__)

PURPOSE_CHOICE = click.Choice([p.value for p in TokenPurpose], case_sensitive=False)


def _ensure_non_production() -> None:
    """Abort destructive commands when running in production."""
    config = current_app.config
    if not config.get("DEBUG") and not config.get("TESTING"):
        raise click.UsageError("Dropping tables is restricted to non-production environments.")


def _purpose(value: str | None) -> TokenPurpose | None:
    return TokenPurpose(value.lower()) if value else None


def _reason(reason: RevocationReason | None) -> str:
    return reason.value if reason else "-"


@click.group("auth")
def auth_cli() -> None:
    """Token store administration commands."""


@auth_cli.command("create-schema")
@click.option("--drop", is_flag=True, help="Drop existing tables first (non-production only).")
@click.option("--yes", is_flag=True, help="Skip the destructive confirmation prompt.")
@with_appcontext
def create_schema_command(drop: bool, yes: bool) -> None:
    """Create the users and user_tokens tables if they do not exist."""
    if drop:
        _ensure_non_production()
        if not yes:
            click.confirm("This will drop every table. Continue?", abort=True)
        db.drop_all()
        LOGGER.warning("schema.dropped")
    db.create_all()
    click.echo("Schema ready.")


@auth_cli.command("tokens")
@click.argument("email")
@click.option("--purpose", type=PURPOSE_CHOICE, default=None, help="Only one purpose.")
@with_appcontext
def tokens_command(email: str, purpose: str | None) -> None:
    """Print the token audit trail of EMAIL in creation order."""
    records = get_auth_service().tokens.history(normalize_email(email), _purpose(purpose))
    if not records:
        click.echo("(no tokens)")
        return
    for rec in records:
        state = "active" if rec.active else f"revoked:{_reason(rec.revoked_reason)}"
        created = rec.created_at.isoformat(timespec="seconds") if rec.created_at else "-"
        click.echo(f"{rec.seq:>6}  {rec.purpose.value:<8} {state:<20} {created}")


@auth_cli.command("revoke")
@click.argument("email")
@click.option("--purpose", type=PURPOSE_CHOICE, default=None, help="Only one purpose.")
@with_appcontext
def revoke_command(email: str, purpose: str | None) -> None:
    """Revoke every active token of EMAIL (operator logout)."""
    count = get_auth_service().tokens.revoke_all(normalize_email(email), _purpose(purpose))
    click.echo(f"Revoked {count} token(s).")
