"""
Command-line interface for yt-account-sync.

This module implements the CLI using Click, providing the commands to
connect a Google account and import its YouTube data into the local store.
rich-click is used for the output colors.

Commands:
    ytsync login [--login-hint EMAIL]        Sign in (native first, then browser)
    ytsync logout                            Forget the stored Google credentials
    ytsync status                            Connection state and local counts
    ytsync import-subscriptions              Import subscribed channels
    ytsync import-playlists [--with-items]   Import playlists (and their videos)
    ytsync import-playlist <playlist-id>     Import one playlist and its videos
    ytsync import-likes                      Import liked videos
    ytsync import-history                    Import watch history
    ytsync subscriptions                     List local subscriptions
    ytsync subscribe <channel-id> --name N   Subscribe locally
    ytsync unsubscribe <channel-id>          Unsubscribe locally
    ytsync import-channels <file>            Subscribe locally to channel ids from a file
    ytsync feed-channels                     Channel ids for a feed backend

Global options:
    --config <path>                          config.yaml to use (default: ./config.yaml)
    --verbose                                Show debug messages on the console

Usage:
    # Connect the account, then import everything
    ytsync login
    ytsync import-subscriptions
    ytsync import-playlists --with-items
    ytsync import-likes

Exit codes:
    1   Configuration error
    2   Database error
    3   Not signed in, or Google rejected the credentials
    4   Any other yt-account-sync error
    130 Interrupted by user
"""

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import rich_click as click

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.COMMAND_GROUPS = {
    "ytsync": [
        {
            "name": "Account",
            "commands": ["login", "logout", "status"],
        },
        {
            "name": "Import",
            "commands": [
                "import-subscriptions",
                "import-playlists",
                "import-playlist",
                "import-likes",
                "import-history",
            ],
        },
        {
            "name": "Local Subscriptions",
            "commands": [
                "subscriptions",
                "subscribe",
                "unsubscribe",
                "import-channels",
                "feed-channels",
            ],
        },
    ],
}

from yt_account_sync import __version__
from yt_account_sync.auth import (
    AuthSession,
    ExternalFlowStarted,
    Failed,
    NativeSuccess,
    RedirectListener,
    build_auth_session,
)
from yt_account_sync.core import (
    AccountSyncError,
    AuthenticationRequiredError,
    Config,
    ConfigError,
    Database,
    DatabaseError,
    YouTubeApiError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from yt_account_sync.sync import ImportEngine
from yt_account_sync.youtube import YouTubeDataClient

logger = get_logger(__name__)


LOGIN_HINT_MESSAGE = "Run `ytsync login` to connect your Google account"


@dataclass
class _App:
    """Everything a command needs, built once per invocation."""
    config: Config
    database: Database
    session: AuthSession
    engine: ImportEngine


@click.group()
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Path to config.yaml (default: ./config.yaml)"
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show debug messages on the console"
)
@click.version_option(__version__, "--version", "-v", prog_name="ytsync")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """
    yt-account-sync: Import your YouTube account data locally.

    Connects a Google account with read-only YouTube access and imports
    subscriptions, playlists, liked videos and watch history into a local
    SQLite store.

    \b
    FIRST RUN:
        ytsync login                          # Sign in with Google
        ytsync import-subscriptions           # Import subscribed channels
        ytsync import-playlists --with-items  # Import playlists and videos

    \b
    LOCAL SUBSCRIPTIONS:
        ytsync subscribe UC... --name "Channel"
        ytsync unsubscribe UC...

        Local subscriptions are never sent to YouTube.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


# =============================================================================
# Account commands
# =============================================================================

@cli.command()
@click.option(
    "--login-hint",
    type=str,
    default=None,
    metavar="<email>",
    help="Preselect this Google account on the consent page"
)
@click.pass_context
def login(ctx: click.Context, login_hint: Optional[str]) -> None:
    """Sign in to Google (native credential first, then browser)."""
    _run(ctx, lambda app: _login(app, login_hint), auth_hint=False)


@cli.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Forget the stored Google credentials."""
    def action(app: _App) -> None:
        app.session.sign_out()
        click.echo("Signed out of Google account")

    _run(ctx, action)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the connection state and local counts."""
    _run(ctx, _print_status)


# =============================================================================
# Import commands
# =============================================================================

@cli.command("import-subscriptions")
@click.pass_context
def import_subscriptions(ctx: click.Context) -> None:
    """Import the channels you are subscribed to."""
    def action(app: _App) -> None:
        count = app.engine.import_subscriptions()
        click.echo(f"Imported {count} subscriptions")

    _run(ctx, action)


@cli.command("import-playlists")
@click.option(
    "--with-items",
    is_flag=True,
    help="Also import the videos of every playlist"
)
@click.pass_context
def import_playlists(ctx: click.Context, with_items: bool) -> None:
    """Import your playlists."""
    def action(app: _App) -> None:
        count = app.engine.import_playlists(include_items=with_items)
        click.echo(f"Imported {count} playlists")

    _run(ctx, action)


@cli.command("import-playlist")
@click.argument("playlist_id", metavar="<playlist-id>")
@click.pass_context
def import_playlist(ctx: click.Context, playlist_id: str) -> None:
    """Import one playlist by id, including playlists you do not own."""
    def action(app: _App) -> None:
        count = app.engine.import_playlist(playlist_id)
        click.echo(f"Imported {count} videos from playlist {playlist_id}")

    _run(ctx, action)


@cli.command("import-likes")
@click.pass_context
def import_likes(ctx: click.Context) -> None:
    """Import your liked videos."""
    def action(app: _App) -> None:
        count = app.engine.import_liked_videos()
        click.echo(f"Imported {count} liked videos")

    _run(ctx, action)


@cli.command("import-history")
@click.pass_context
def import_history(ctx: click.Context) -> None:
    """Import your watch history (if Google still exposes it)."""
    def action(app: _App) -> None:
        count = app.engine.import_watch_history()
        click.echo(f"Imported {count} videos from watch history")

    _run(ctx, action)


# =============================================================================
# Local subscription commands
# =============================================================================

@cli.command()
@click.pass_context
def subscriptions(ctx: click.Context) -> None:
    """List local subscriptions."""
    def action(app: _App) -> None:
        records = app.engine.get_subscriptions()
        if not records:
            click.echo("No subscriptions yet")
            return
        for record in records:
            marker = " [verified]" if record.verified else ""
            click.echo(f"{record.channel_id}  {record.name}{marker}  ({record.source})")

    _run(ctx, action)


@cli.command()
@click.argument("channel_id", metavar="<channel-id>")
@click.option("--name", required=True, help="Channel display name")
@click.option("--avatar", "avatar_url", default=None, metavar="<url>", help="Channel avatar URL")
@click.pass_context
def subscribe(ctx: click.Context, channel_id: str, name: str, avatar_url: Optional[str]) -> None:
    """Subscribe to a channel locally (nothing is sent to YouTube)."""
    def action(app: _App) -> None:
        app.engine.subscribe(channel_id, name, avatar_url=avatar_url)
        click.echo(f"Subscribed to {name}")

    _run(ctx, action)


@cli.command()
@click.argument("channel_id", metavar="<channel-id>")
@click.pass_context
def unsubscribe(ctx: click.Context, channel_id: str) -> None:
    """Unsubscribe from a channel locally."""
    def action(app: _App) -> None:
        if app.engine.unsubscribe(channel_id):
            click.echo(f"Unsubscribed from {channel_id}")
        else:
            click.echo(f"Not subscribed to {channel_id}")

    _run(ctx, action)


@cli.command("import-channels")
@click.argument("source", metavar="<file>", type=click.File("r", encoding="utf-8"))
@click.pass_context
def import_channels(ctx: click.Context, source) -> None:
    """Subscribe locally to every channel id in a file (one per line, - for stdin)."""
    channel_ids = [line.strip() for line in source if line.strip()]

    def action(app: _App) -> None:
        count = app.engine.import_channel_ids(channel_ids)
        click.echo(f"Added {count} of {len(channel_ids)} channels to local subscriptions")

    _run(ctx, action, auth_hint=False)


@cli.command("feed-channels")
@click.pass_context
def feed_channels(ctx: click.Context) -> None:
    """Print the channel ids of your Google subscriptions."""
    def action(app: _App) -> None:
        for channel_id in app.engine.get_feed_channel_ids():
            click.echo(channel_id)

    _run(ctx, action)


# =============================================================================
# Orchestration
# =============================================================================

def _run(ctx: click.Context, action: Callable[[_App], None], auth_hint: bool = True) -> None:
    """
    Execute one command with the application set up around it.

    This is the orchestration function every command goes through:
    1. Loads configuration
    2. Sets up logging
    3. Initializes database, auth session and import engine
    4. Runs the command
    5. Maps errors to a message and an exit code

    Args:
        ctx: Click context holding the global options.
        action: The command body.
        auth_hint: Print the `ytsync login` hint on authentication errors.

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    database: Database | None = None

    try:
        config = load_config(ctx.obj.get("config_path"))

        config.storage.directory.mkdir(parents=True, exist_ok=True)
        setup_logging(config.storage.directory, verbose=ctx.obj.get("verbose", False))
        logger.debug(f"ytsync {ctx.info_name} starting")

        database = Database(config.storage.database_path)
        app = _build_app(config, database)

        action(app)

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except DatabaseError as e:
        click.echo(f"Database error: {e.message}", err=True)
        logger.error(f"Database error: {e.message}", exc_info=True)
        sys.exit(2)

    except AuthenticationRequiredError as e:
        click.echo(f"Authentication error: {e.message}", err=True)
        if auth_hint:
            click.echo(LOGIN_HINT_MESSAGE, err=True)
        logger.error(f"Authentication error: {e.message}")
        sys.exit(3)

    except YouTubeApiError as e:
        click.echo(f"YouTube error: {e.message}", err=True)
        if e.is_auth_error:
            click.echo(LOGIN_HINT_MESSAGE, err=True)
            logger.error(f"YouTube error: {e.message}")
            sys.exit(3)
        if e.is_rate_limit:
            click.echo("YouTube API quota exhausted, try again later", err=True)
        logger.error(f"YouTube error: {e.message}", exc_info=True)
        sys.exit(4)

    except AccountSyncError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        if database is not None:
            database.close()
        shutdown_logging()


def _build_app(config: Config, database: Database) -> _App:
    """
    Wire the auth session, YouTube client and import engine together.

    The YouTube client refreshes through the session when Google answers
    401, so an access token revoked before its expiry is retried once.
    """
    session = build_auth_session(config)
    client = YouTubeDataClient(timeout=config.http.timeout, on_unauthorized=session.force_refresh)
    engine = ImportEngine(database, session, client, show_progress=True)
    return _App(config=config, database=database, session=session, engine=engine)


def _login(app: _App, login_hint: Optional[str]) -> None:
    """
    Run the sign-in flow.

    The redirect listener is bound before anything else so the browser
    can never be sent to a port nobody is listening on.

    Raises:
        AuthenticationRequiredError: If sign-in failed, timed out or the
                                     redirect port is unavailable.
    """
    session = app.session
    listener = RedirectListener(port=app.config.google.redirect_port)

    try:
        listener.start()
    except OSError as e:
        raise AuthenticationRequiredError(
            f"Cannot listen for the sign-in redirect on {listener.redirect_uri}: {e}",
            details={"port": listener.port}
        ) from e

    try:
        outcome = session.sign_in(login_hint)

        match outcome:
            case NativeSuccess(email=email):
                click.echo(f"Signed in as {email or 'unknown account'}")

            case ExternalFlowStarted(authorization_url=authorization_url):
                click.echo("Complete the sign-in in your browser.")
                if authorization_url:
                    click.echo(f"If it did not open, visit:\n{authorization_url}")
                _wait_for_redirect(app, listener)

            case Failed(reason=reason):
                raise AuthenticationRequiredError(f"Google sign-in failed: {reason}")

    finally:
        listener.stop()


def _wait_for_redirect(app: _App, listener: RedirectListener) -> None:
    session = app.session
    wait_timeout = app.config.sign_in.wait_timeout

    try:
        result = listener.wait(timeout=wait_timeout)
    except KeyboardInterrupt:
        session.cancel_external_flow()
        raise

    if result is None:
        session.cancel_external_flow()
        raise AuthenticationRequiredError(
            f"No sign-in redirect received within {wait_timeout:g} seconds",
            details={"wait_timeout": wait_timeout}
        )

    if not session.complete_redirect(result):
        raise AuthenticationRequiredError(
            f"Google sign-in failed: {result.error or 'authorization code was rejected'}"
        )

    click.echo(f"Signed in as {session.account_email or 'unknown account'}")


def _print_status(app: _App) -> None:
    """
    Print the account connection state and local statistics.

    Output:
        Google account line, token expiry, then a count per collection.
    """
    record = app.session.credentials()

    click.echo("=" * 60)
    if record.access_token:
        click.echo(f"Google account:    {record.email or 'connected'}")
        expiry = datetime.fromtimestamp(record.expiry_ms / 1000) if record.expiry_ms else None
        click.echo(f"Token expires:     {expiry:%Y-%m-%d %H:%M:%S}" if expiry else "Token expires:     unknown")
        click.echo(f"Can refresh:       {'yes' if record.refresh_token else 'no'}")
    else:
        click.echo("Google account:    not connected")

    stats = app.database.get_stats()
    click.echo("=" * 60)
    click.echo(f"Subscriptions:     {stats['subscriptions']}")
    click.echo(f"Playlists:         {stats['playlists']}")
    click.echo(f"Liked videos:      {stats['liked_videos']}")
    click.echo(f"Watch history:     {stats['watch_history']}")
    click.echo("=" * 60)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `ytsync` from the command line.
    It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
