"""Flask CLI commands for refresh-credential maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from authcore.services.auth.wiring import build_auth_service, get_components

LOGGER = logging.getLogger(__name__)


@click.group("tokens")
def tokens_cli() -> None:
    """Refresh-credential maintenance commands."""


@tokens_cli.command("reap")
@with_appcontext
def reap_command() -> None:
    """Delete every expired refresh record once and print the count."""
    out = build_auth_service().delete_expired_tokens()
    LOGGER.info("expired refresh records deleted", extra={"deleted": out.deleted})
    click.echo(f"Deleted {out.deleted} expired refresh token(s).")


@tokens_cli.command("revoke-user")
@click.argument("user_id", type=int)
@with_appcontext
def revoke_user_command(user_id: int) -> None:
    """Delete every refresh record of USER_ID (sign out everywhere)."""
    deleted = build_auth_service().logout_all(user_id)
    click.echo(f"Revoked {deleted} refresh token(s) for user {user_id}.")


@tokens_cli.command("list")
@click.argument("user_id", type=int)
@with_appcontext
def list_command(user_id: int) -> None:
    """List refresh records of USER_ID (ids and expiries only)."""
    records = get_components().store.list_user_tokens(user_id)
    if not records:
        click.echo("  (none)")
        return
    for rec in records:
        click.echo(
            f"  id={rec.id}  session={rec.session_id}  "
            f"expires_at={rec.expires_at.isoformat()}  "
            f"session_expires_at={rec.session_expires_at.isoformat()}"
        )
