"""Command-line interface for chatauth.

This module provides operational commands: configuration summary, schema
creation, startup checks and session housekeeping.
"""

import asyncio
from datetime import timedelta
from typing import NoReturn
from urllib.parse import urlsplit, urlunsplit

import click

from chatauth import __version__
from chatauth.core.config import Settings, get_settings
from chatauth.core.exceptions import ConfigError, InfrastructureError
from chatauth.core.logging import configure_logging, get_logger


def _load_settings() -> Settings:
    """Load settings or exit with the configuration problem."""
    try:
        settings = get_settings()
    except ConfigError as e:
        click.echo(f"ERROR: {e}", err=True)
        raise SystemExit(1)
    configure_logging(settings)
    return settings


def _mask(value: str | None) -> str:
    if not value:
        return "(not set)"
    return f"{value[:2]}{'*' * 6}"


def _redact_url(url: str) -> str:
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


def _seconds(delta: timedelta) -> str:
    return f"{int(delta.total_seconds())}s"


@click.group()
@click.version_option(version=__version__, prog_name="chatauth")
def cli() -> None:
    """chatauth - authentication backend for the chat application."""


@cli.command()
def info() -> None:
    """Display configuration with secrets masked."""
    settings = _load_settings()

    database_url = _redact_url(settings.database_url)
    redis_url = _redact_url(settings.redis_url)
    smtp = f"{settings.smtp_host}:{settings.smtp_port}" if settings.smtp_configured else "(log only)"
    sender = settings.from_email or "(not set)"

    click.echo(f"""
chatauth v{__version__}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Frontend URL: {settings.frontend_url}

Stores:
  Database:     {database_url}
  Redis:        {redis_url}

Tokens:
  Access TTL:   {_seconds(settings.jwt_expires_in)}
  Refresh TTL:  {_seconds(settings.jwt_refresh_expires_in)}
  Access key:   {_mask(settings.jwt_secret)}
  Refresh key:  {_mask(settings.jwt_refresh_secret)}
  Hash cost:    {settings.bcrypt_rounds}

Email:
  SMTP:         {smtp}
  From:         {sender}

Rate limit:
  Window:       {settings.rate_limit_window_ms} ms
  Max requests: {settings.rate_limit_max_requests}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Drop existing tables first and skip the confirmation prompt",
)
def init_db(force: bool) -> None:
    """Create the users and user_sessions tables.

    Use this only in development. In production, manage the schema with
    migrations instead.
    """
    from chatauth.infrastructure.persistence.database import DatabaseManager

    settings = _load_settings()

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        db = DatabaseManager(settings.database_url, echo=settings.db_echo)
        try:
            if force:
                await db.drop_tables()
            await db.create_tables()
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
def check() -> None:
    """Verify that the database, Redis and the SMTP relay are reachable."""
    from chatauth.container import Container

    settings = _load_settings()
    container = Container.from_settings(settings)

    async def run_checks() -> bool:
        healthy = True
        try:
            try:
                await container.startup()
                click.echo("Database: ok")
                click.echo("Redis:    ok")
            except InfrastructureError as e:
                click.echo(f"Stores:   FAILED ({e})", err=True)
                healthy = False

            ok, error = await container.email_service.test_connection()
            if ok:
                click.echo("Email:    ok")
            else:
                click.echo(f"Email:    FAILED ({error})", err=True)
                healthy = False
        finally:
            await container.shutdown()
        return healthy

    if not asyncio.run(run_checks()):
        raise SystemExit(1)


@cli.command()
def purge_sessions() -> None:
    """Delete sessions whose refresh token has expired."""
    from chatauth.infrastructure.persistence.database import DatabaseManager
    from chatauth.infrastructure.persistence.repositories import SessionRepository

    settings = _load_settings()
    logger = get_logger(__name__)

    async def purge() -> int:
        db = DatabaseManager(settings.database_url, echo=settings.db_echo)
        try:
            async with db.session() as session:
                removed = await SessionRepository(session).delete_expired()
                await session.commit()
            return removed
        finally:
            await db.disconnect()

    removed = asyncio.run(purge())
    logger.info("Expired sessions purged", count=removed)
    click.echo(f"Removed {removed} expired session(s).")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `chatauth` command is run
    or when using `python -m chatauth`.
    """
    cli()


if __name__ == "__main__":
    main()
