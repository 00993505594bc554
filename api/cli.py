"""
Flask CLI commands:
- flask seed-users   -> create the default admin and user accounts if missing
- flask purge-tokens -> delete expired refresh tokens once
"""
import logging

import click
from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_USERS = (
    ("admin", "admin123", ["admin", "user"]),
    ("user", "user123", ["user"]),
)


def register_commands(app):
    @app.cli.command("seed-users")
    def seed_users():
        """Create the default accounts."""
        matcher = current_app.extensions["credential_matcher"]
        for username, password, roles in DEFAULT_USERS:
            if matcher.exists(username):
                click.echo(f"{username} already exists")
                continue
            matcher.register(username, password, roles)
            click.echo(f"Default user created: {username}/{password}")

    @app.cli.command("purge-tokens")
    def purge_tokens():
        """Delete refresh tokens past their expiry."""
        count = current_app.extensions["refresh_engine"].purge_expired()
        click.echo(f"Purged {count} expired refresh token(s)")
