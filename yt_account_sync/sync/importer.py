"""
Import engine: Google account collections into the local store.

Workflow for every import:
    1. Require a valid access token (AuthenticationRequiredError otherwise)
    2. Walk the remote collection with fetch_all() (capped at 500 items)
    3. Convert each remote item into a local record, skipping items
       without a stable identifier
    4. Upsert the records; re-running an import updates rows in place
    5. Return the number of distinct identifiers processed in this run

All pages are fetched before the first upsert, so a failing page leaves
the local store exactly as it was before the run.

Subscribe, unsubscribe and import_channel_ids are local operations only.
The account is used to import existing data; nothing is ever written
back to YouTube.
"""

from typing import Callable, Iterable, TypeVar

from tqdm import tqdm

from yt_account_sync.auth.session import AuthSession
from yt_account_sync.core.database import (
    LIKED_VIDEOS_KEY,
    SOURCE_LOCAL,
    WATCH_HISTORY_KEY,
    Database,
)
from yt_account_sync.core.logger import get_logger
from yt_account_sync.sync.records import LocalPlaylist, LocalPlaylistItem, LocalSubscription
from yt_account_sync.youtube.client import YouTubeDataClient
from yt_account_sync.youtube.models import Page
from yt_account_sync.youtube.pagination import MAX_ITEMS, fetch_all

logger = get_logger(__name__)

T = TypeVar("T")


class ImportEngine:
    """
    Reconciles remote account collections with the local Database.

    Attributes:
        show_progress: Display tqdm progress bars while storing records.
    """

    def __init__(
        self,
        database: Database,
        session: AuthSession,
        client: YouTubeDataClient,
        show_progress: bool = False
    ) -> None:
        self._database = database
        self._session = session
        self._client = client
        self.show_progress = show_progress

    # =========================================================================
    # Remote imports
    # =========================================================================

    def import_subscriptions(self) -> int:
        """
        Import the account's subscriptions.

        Returns:
            Number of distinct channels processed in this run.

        Raises:
            AuthenticationRequiredError: No valid Google credential.
            YouTubeApiError: A page could not be fetched.
        """
        items = self._fetch(self._client.list_subscriptions)

        processed: set[str] = set()
        for item in self._progress(items, "Subscriptions", "channel"):
            record = LocalSubscription.from_remote(item)
            if record is None:
                logger.debug(f"Skipping subscription without channel id: {item.title!r}")
                continue
            self._database.upsert_subscription(record.to_database_dict())
            processed.add(record.channel_id)

        logger.info(f"Imported {len(processed)} subscriptions from Google account")
        return len(processed)

    def import_playlists(self, include_items: bool = False) -> int:
        """
        Import the account's playlists.

        Args:
            include_items: Also import the videos of every playlist. Each
                           playlist's items are a separate run; an error
                           stops the command but keeps the playlists
                           imported before it.

        Returns:
            Number of distinct playlists processed.
        """
        items = self._fetch(self._client.list_playlists)

        processed: list[str] = []
        for item in self._progress(items, "Playlists", "playlist"):
            record = LocalPlaylist.from_remote(item)
            if record is None:
                logger.debug(f"Skipping playlist without id: {item.title!r}")
                continue
            self._database.upsert_playlist(record.to_database_dict())
            if record.playlist_id not in processed:
                processed.append(record.playlist_id)

        logger.info(f"Imported {len(processed)} playlists from Google account")

        if include_items:
            for playlist_id in processed:
                self.import_playlist_items(playlist_id)

        return len(processed)

    def import_playlist_items(self, playlist_id: str, playlist_key: str | None = None) -> int:
        """
        Import the videos of one playlist.

        Args:
            playlist_id: Google playlist id to read.
            playlist_key: Local key to file the items under. Defaults to
                          playlist_id.

        Returns:
            Number of distinct videos processed.
        """
        key = playlist_key or playlist_id
        items = self._fetch(
            lambda bearer, cursor: self._client.list_playlist_items(bearer, playlist_id, cursor)
        )

        processed: set[str] = set()
        for item in self._progress(items, "Videos", "video"):
            record = LocalPlaylistItem.from_remote(item, key)
            if record is None:
                logger.debug(f"Skipping playlist item without video id: {item.title!r}")
                continue
            self._database.upsert_playlist_item(record.to_database_dict())
            processed.add(record.video_id)

        logger.info(f"Imported {len(processed)} videos into {key}")
        return len(processed)

    def import_playlist(self, playlist_id: str) -> int:
        """
        Import any playlist by id, with its details and videos.

        Works for playlists the account does not own. Details are looked
        up first so the playlist row carries title, thumbnail and count;
        if Google does not return them only the videos are imported.

        Returns:
            Number of distinct videos processed.
        """
        bearer = self._session.require_access_token()
        details = self._client.get_playlist(bearer, playlist_id)
        record = LocalPlaylist.from_remote(details) if details else None

        count = self.import_playlist_items(playlist_id)

        if record is None:
            logger.warning(f"No details returned for playlist {playlist_id}, stored its videos only")
        else:
            self._database.upsert_playlist(record.to_database_dict())
        return count

    def import_liked_videos(self) -> int:
        return self._import_related_playlist("likes", LIKED_VIDEOS_KEY)

    def import_watch_history(self) -> int:
        """
        Import watch history through the channel's watchHistory playlist.

        Google stopped exposing watch history for most accounts; in that
        case nothing is imported and 0 is returned.
        """
        return self._import_related_playlist("watchHistory", WATCH_HISTORY_KEY)

    def get_feed_channel_ids(self) -> list[str]:
        """
        Channel ids of the remote subscriptions, for a feed backend.

        Capped at 500 channels. Nothing is stored locally.
        """
        items = self._fetch(self._client.list_subscriptions)

        channel_ids: list[str] = []
        seen: set[str] = set()
        for item in items:
            if item.channel_id and item.channel_id not in seen:
                seen.add(item.channel_id)
                channel_ids.append(item.channel_id)
        return channel_ids

    def _import_related_playlist(self, name: str, playlist_key: str) -> int:
        bearer = self._session.require_access_token()
        channel = self._client.get_my_channel(bearer)

        playlist_id = channel.related_playlists.get(name) if channel else None
        if not playlist_id:
            logger.warning(f"Google account has no accessible '{name}' playlist, nothing to import")
            return 0

        return self.import_playlist_items(playlist_id, playlist_key=playlist_key)

    def _fetch(self, list_page: Callable[[str, str | None], Page[T]]) -> list[T]:
        # Fails fast before any request when the user is signed out
        self._session.require_access_token()

        # Each page asks for the token again so a refresh mid-walk is picked up
        return fetch_all(
            lambda cursor: list_page(self._session.require_access_token(), cursor),
            max_items=MAX_ITEMS
        )

    def _progress(self, items: list[T], desc: str, unit: str) -> Iterable[T]:
        return tqdm(items, desc=desc, unit=unit, disable=not self.show_progress, leave=False)

    # =========================================================================
    # Local subscriptions
    # =========================================================================

    def subscribe(
        self,
        channel_id: str,
        name: str,
        avatar_url: str | None = None,
        verified: bool = False
    ) -> None:
        """Add a subscription to the local store only."""
        record = LocalSubscription(
            channel_id=channel_id,
            name=name,
            avatar_url=avatar_url,
            verified=verified,
            source=SOURCE_LOCAL,
        )
        self._database.upsert_subscription(record.to_database_dict())
        logger.info(f"Subscribed locally to {name or channel_id}")

    def unsubscribe(self, channel_id: str) -> bool:
        """Remove a subscription from the local store. Returns True if it existed."""
        removed = self._database.delete_subscription(channel_id)
        if removed:
            logger.info(f"Unsubscribed locally from {channel_id}")
        return removed

    def import_channel_ids(self, channel_ids: Iterable[str]) -> int:
        """
        Add many channels to the local store at once, e.g. from an export.

        Channels already present keep their stored name and avatar.

        Returns:
            Number of channels newly added.
        """
        added: set[str] = set()
        for channel_id in channel_ids:
            channel_id = channel_id.strip()
            if not channel_id or channel_id in added or self._database.is_subscribed(channel_id):
                continue
            record = LocalSubscription(channel_id=channel_id, source=SOURCE_LOCAL)
            self._database.upsert_subscription(record.to_database_dict())
            added.add(channel_id)

        logger.info(f"Added {len(added)} channels to local subscriptions")
        return len(added)

    def is_subscribed(self, channel_id: str) -> bool:
        return self._database.is_subscribed(channel_id)

    def get_subscriptions(self) -> list[LocalSubscription]:
        return [LocalSubscription.from_database_row(row) for row in self._database.get_subscriptions()]

    def get_subscription_channel_ids(self) -> list[str]:
        return self._database.get_subscription_channel_ids()
