"""
YouTube Data API access for yt-account-sync.

    - client: Read-only Data API v3 client with a single 401 retry
    - models: Remote resources (subscriptions, playlists, playlist items)
    - pagination: fetch_all(), the capped cursor walk used for every collection
"""

from yt_account_sync.youtube.client import MAX_RESULTS, YouTubeDataClient
from yt_account_sync.youtube.models import (
    MyChannel,
    Page,
    RemotePlaylist,
    RemotePlaylistItem,
    RemoteSubscription,
    Thumbnails,
)
from yt_account_sync.youtube.pagination import MAX_ITEMS, fetch_all

__all__ = [
    "MAX_ITEMS",
    "MAX_RESULTS",
    "MyChannel",
    "Page",
    "RemotePlaylist",
    "RemotePlaylistItem",
    "RemoteSubscription",
    "Thumbnails",
    "YouTubeDataClient",
    "fetch_all",
]
