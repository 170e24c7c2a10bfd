"""
Local records: the durable form of imported account data.

Each record knows how to build itself from a remote item (returning None
when the item lacks its stable identifier) and how to convert to and from
the dictionaries the Database works with.
"""

from dataclasses import asdict, dataclass
from typing import Any

from yt_account_sync.core.database import SOURCE_GOOGLE, SOURCE_LOCAL
from yt_account_sync.youtube.models import RemotePlaylist, RemotePlaylistItem, RemoteSubscription


@dataclass(frozen=True)
class LocalSubscription:
    """
    A channel the user follows, keyed by channel id.

    Attributes:
        source: "google" when imported, "local" when added by hand.
    """
    channel_id: str
    name: str = ""
    avatar_url: str | None = None
    verified: bool = False
    source: str = SOURCE_LOCAL

    @classmethod
    def from_remote(cls, item: RemoteSubscription) -> "LocalSubscription | None":
        if not item.channel_id:
            return None
        return cls(
            channel_id=item.channel_id,
            name=item.title,
            avatar_url=item.thumbnails.best_url(),
            # The Data API does not expose channel verification in the snippet
            verified=False,
            source=SOURCE_GOOGLE,
        )

    @classmethod
    def from_database_row(cls, row: dict[str, Any]) -> "LocalSubscription":
        return cls(
            channel_id=row["channel_id"],
            name=row.get("name") or "",
            avatar_url=row.get("avatar_url"),
            verified=bool(row.get("verified")),
            source=row.get("source") or SOURCE_LOCAL,
        )

    def to_database_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LocalPlaylist:
    playlist_id: str
    title: str = ""
    description: str = ""
    thumbnail_url: str | None = None
    item_count: int | None = None
    channel_id: str | None = None
    channel_title: str | None = None

    @classmethod
    def from_remote(cls, item: RemotePlaylist) -> "LocalPlaylist | None":
        if not item.playlist_id:
            return None
        return cls(
            playlist_id=item.playlist_id,
            title=item.title,
            description=item.description,
            thumbnail_url=item.thumbnails.best_url(),
            item_count=item.item_count,
            channel_id=item.channel_id,
            channel_title=item.channel_title,
        )

    def to_database_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LocalPlaylistItem:
    """
    A video inside a playlist, keyed by (playlist_id, video_id).

    playlist_id is the local key the item is filed under, which for liked
    videos and watch history is a pseudo playlist id, not Google's.
    """
    playlist_id: str
    video_id: str
    title: str = ""
    channel_id: str | None = None
    channel_title: str | None = None
    thumbnail_url: str | None = None
    position: int | None = None
    published_at: str | None = None

    @classmethod
    def from_remote(
        cls,
        item: RemotePlaylistItem,
        playlist_key: str
    ) -> "LocalPlaylistItem | None":
        if not item.video_id:
            return None
        return cls(
            playlist_id=playlist_key,
            video_id=item.video_id,
            title=item.title,
            channel_id=item.channel_id,
            channel_title=item.channel_title,
            thumbnail_url=item.thumbnails.best_url(),
            position=item.position,
            published_at=item.published_at,
        )

    def to_database_dict(self) -> dict[str, Any]:
        return asdict(self)
