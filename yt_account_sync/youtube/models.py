"""
Data models for YouTube Data API resources.

These frozen dataclasses hold the parts of the API responses that the
import engine needs. They only live between fetch and reconcile; the
durable form is in yt_account_sync.sync.records.

Design Decisions:
    - Identifier fields that Google sometimes omits are Optional; the
      import engine skips items without them instead of failing
    - Parsing is lenient: a missing snippet yields empty strings
    - Page is generic over the item type so one pagination walk serves
      every collection

Usage:
    page = Page.from_api(response_json, RemoteSubscription.from_api)
    for subscription in page.items:
        print(subscription.channel_id, subscription.thumbnails.best_url())
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")


# Highest resolution first
THUMBNAIL_PREFERENCE = ("maxres", "standard", "high", "medium", "default")


@dataclass(frozen=True)
class Thumbnails:
    """
    Thumbnail URLs keyed by YouTube size name.

    Attributes:
        urls: Mapping like {"default": "https://i.ytimg.com/...", "high": ...}.
    """
    urls: dict[str, str] = field(default_factory=dict)

    def best_url(self) -> str | None:
        """URL of the highest resolution thumbnail offered, if any."""
        for size in THUMBNAIL_PREFERENCE:
            url = self.urls.get(size)
            if url:
                return url
        return None

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "Thumbnails":
        urls = {}
        for size, thumbnail in (data or {}).items():
            if isinstance(thumbnail, dict) and thumbnail.get("url"):
                urls[size] = thumbnail["url"]
        return cls(urls=urls)


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One page of a paginated collection.

    Attributes:
        items: Items in the order Google returned them.
        next_cursor: nextPageToken, or None on the last page.
    """
    items: list[T]
    next_cursor: str | None = None

    @classmethod
    def from_api(
        cls,
        data: dict[str, Any],
        parse_item: Callable[[dict[str, Any]], T]
    ) -> "Page[T]":
        items = [parse_item(item) for item in data.get("items") or [] if isinstance(item, dict)]
        return cls(items=items, next_cursor=data.get("nextPageToken"))


@dataclass(frozen=True)
class RemoteSubscription:
    """
    A subscription of the signed-in user (youtube#subscription).

    Attributes:
        subscription_id: Id of the subscription resource itself.
        channel_id: Subscribed channel (snippet.resourceId.channelId).
        title: Channel title.
        description: Channel description.
        thumbnails: Channel avatar sizes.
    """
    subscription_id: str | None
    channel_id: str | None
    title: str
    description: str = ""
    thumbnails: Thumbnails = field(default_factory=Thumbnails)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemoteSubscription":
        snippet = data.get("snippet") or {}
        resource_id = snippet.get("resourceId") or {}
        return cls(
            subscription_id=data.get("id"),
            channel_id=resource_id.get("channelId"),
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            thumbnails=Thumbnails.from_api(snippet.get("thumbnails")),
        )


@dataclass(frozen=True)
class RemotePlaylist:
    """A playlist owned by the signed-in user (youtube#playlist)."""
    playlist_id: str | None
    title: str
    description: str = ""
    channel_id: str | None = None
    channel_title: str | None = None
    item_count: int | None = None
    thumbnails: Thumbnails = field(default_factory=Thumbnails)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemotePlaylist":
        snippet = data.get("snippet") or {}
        content_details = data.get("contentDetails") or {}
        item_count = content_details.get("itemCount")
        return cls(
            playlist_id=data.get("id"),
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            channel_id=snippet.get("channelId"),
            channel_title=snippet.get("channelTitle"),
            item_count=int(item_count) if item_count is not None else None,
            thumbnails=Thumbnails.from_api(snippet.get("thumbnails")),
        )


@dataclass(frozen=True)
class RemotePlaylistItem:
    """
    One entry of a playlist (youtube#playlistItem).

    channel_id/channel_title describe the video's uploader when Google
    provides videoOwnerChannel*, otherwise the playlist owner.
    """
    item_id: str | None
    playlist_id: str | None
    video_id: str | None
    title: str
    channel_id: str | None = None
    channel_title: str | None = None
    position: int | None = None
    published_at: str | None = None
    thumbnails: Thumbnails = field(default_factory=Thumbnails)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RemotePlaylistItem":
        snippet = data.get("snippet") or {}
        resource_id = snippet.get("resourceId") or {}
        content_details = data.get("contentDetails") or {}
        position = snippet.get("position")
        return cls(
            item_id=data.get("id"),
            playlist_id=snippet.get("playlistId"),
            video_id=resource_id.get("videoId") or content_details.get("videoId"),
            title=snippet.get("title") or "",
            channel_id=snippet.get("videoOwnerChannelId") or snippet.get("channelId"),
            channel_title=snippet.get("videoOwnerChannelTitle") or snippet.get("channelTitle"),
            position=int(position) if position is not None else None,
            published_at=content_details.get("videoPublishedAt") or snippet.get("publishedAt"),
            thumbnails=Thumbnails.from_api(snippet.get("thumbnails")),
        )


@dataclass(frozen=True)
class MyChannel:
    """
    The signed-in user's own channel.

    Attributes:
        related_playlists: Special playlist ids by name ("likes", "uploads",
                           "watchHistory", ...). Google no longer fills in
                           every entry for every account.
    """
    channel_id: str | None
    title: str
    related_playlists: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "MyChannel":
        snippet = data.get("snippet") or {}
        content_details = data.get("contentDetails") or {}
        related = content_details.get("relatedPlaylists") or {}
        return cls(
            channel_id=data.get("id"),
            title=snippet.get("title") or "",
            related_playlists={k: v for k, v in related.items() if isinstance(v, str) and v},
        )
