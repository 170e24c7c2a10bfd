"""
yt-account-sync: Connect a Google account and import its YouTube data locally.

This package signs the user in to Google, keeps a valid OAuth access token
and imports the account's YouTube collections into a local SQLite store.

Architecture:
    Sign-in goes native first and falls back to the browser:

    NATIVE (auth/sign_in.py): Identity token from the environment
        - Exchanged for API tokens with the JWT bearer grant

    BROWSER (auth/sign_in.py, auth/redirect.py): Consent flow
        - Consent page opened in the system browser
        - Loopback listener captures the authorization code
        - Code exchanged for access and refresh tokens

    Once signed in, every API call asks the AccessTokenSupplier for a
    bearer token, which is refreshed five minutes before it expires.

    IMPORT (sync/): Reconcile remote collections with the local store
        - Subscriptions, playlists, playlist items
        - Liked videos and watch history via the channel's related playlists
        - Every collection walked 50 items per page, capped at 500

Modules:
    core/       - Configuration, database, credential file, logging, exceptions
    auth/       - Sign-in, token exchange, refresh, AuthSession state machine
    youtube/    - YouTube Data API client, models, pagination
    sync/       - Local records and the import engine
    cli.py      - Command-line interface

Usage:
    Command Line:
        ytsync login
        ytsync import-subscriptions
        ytsync import-playlists --with-items
        ytsync status

    Python API:
        from yt_account_sync.core import load_config, Database
        from yt_account_sync.auth import build_auth_session
        from yt_account_sync.youtube import YouTubeDataClient
        from yt_account_sync.sync import ImportEngine
"""

__version__ = "0.1.0"
__author__ = "yt-account-sync contributors"
