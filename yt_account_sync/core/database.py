"""
Thread-safe SQLite local store for yt-account-sync.

Everything imported from the Google account ends up here, keyed by the
stable YouTube identifier so that re-running an import updates rows in
place instead of duplicating them.

Schema:
    subscriptions:   One row per channel id (name, avatar, source)
    playlists:       One row per playlist id (title, thumbnail, item count)
    playlist_items:  One row per (playlist id, video id)

Liked videos and watch history are stored as playlist items under the
LIKED_VIDEOS_KEY and WATCH_HISTORY_KEY pseudo playlist ids.

Usage:
    db = Database(storage_dir / "database.db")

    db.upsert_subscription({"channel_id": "UC...", "name": "Channel"})
    db.is_subscribed("UC...")
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator

from yt_account_sync.core.exceptions import DatabaseError


DATABASE_VERSION = 1
LIKED_VIDEOS_KEY = "__liked_videos__"
WATCH_HISTORY_KEY = "__watch_history__"

SOURCE_GOOGLE = "google"
SOURCE_LOCAL = "local"


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS subscriptions (
    channel_id TEXT PRIMARY KEY,
    name TEXT,
    avatar_url TEXT,
    verified INTEGER DEFAULT 0,
    source TEXT NOT NULL,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS playlists (
    playlist_id TEXT PRIMARY KEY,
    title TEXT,
    description TEXT,
    thumbnail_url TEXT,
    item_count INTEGER,
    channel_id TEXT,
    channel_title TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS playlist_items (
    playlist_id TEXT NOT NULL,
    video_id TEXT NOT NULL,
    title TEXT,
    channel_id TEXT,
    channel_title TEXT,
    thumbnail_url TEXT,
    position INTEGER,
    published_at TEXT,
    created_at TEXT,
    updated_at TEXT,
    PRIMARY KEY (playlist_id, video_id)
);

CREATE INDEX IF NOT EXISTS idx_playlist_items_playlist ON playlist_items(playlist_id);
"""

_SUBSCRIPTION_FIELDS = ("channel_id", "name", "avatar_url", "verified", "source")
_PLAYLIST_FIELDS = (
    "playlist_id", "title", "description", "thumbnail_url",
    "item_count", "channel_id", "channel_title",
)
_PLAYLIST_ITEM_FIELDS = (
    "playlist_id", "video_id", "title", "channel_id", "channel_title",
    "thumbnail_url", "position", "published_at",
)


class Database:
    """
    Thread-safe SQLite database for imported account data.

    Uses a single persistent connection with thread locking for safety.
    All public methods acquire self._lock before executing.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        if not db_path.parent.exists():
            raise DatabaseError(
                f"Parent directory does not exist: {db_path.parent}",
                details={"path": str(db_path.parent)}
            )

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                details={"path": str(db_path)}
            ) from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield the persistent connection, translating SQLite failures.

        The connection is created once and reused for all operations.
        Leaving the block commits; an error rolls back and is re-raised
        as DatabaseError.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # Thread safety is handled with _lock
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")

        try:
            yield self._conn
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise DatabaseError(
                f"Database operation failed: {e}",
                details={"path": str(self.db_path), "original_error": str(e)}
            ) from e

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(_SCHEMA_SQL)

            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()

            if row is None:
                conn.execute(
                    "INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,)
                )
            elif row[0] != DATABASE_VERSION:
                raise DatabaseError(
                    f"Database version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _pick(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
        return {field: data.get(field) for field in fields}

    # =========================================================================
    # Subscription Operations
    # =========================================================================

    def upsert_subscription(self, data: dict[str, Any]) -> None:
        """
        Insert a subscription or update the existing row for its channel id.

        Args:
            data: Must contain 'channel_id'. Optional keys: 'name',
                  'avatar_url', 'verified', 'source' (default 'local').
        """
        row = self._pick(data, _SUBSCRIPTION_FIELDS)
        row["verified"] = 1 if row["verified"] else 0
        row["source"] = row["source"] or SOURCE_LOCAL
        now = self._now_iso()

        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO subscriptions
                        (channel_id, name, avatar_url, verified, source, created_at, updated_at)
                    VALUES
                        (:channel_id, :name, :avatar_url, :verified, :source, :now, :now)
                    ON CONFLICT(channel_id) DO UPDATE SET
                        name = excluded.name,
                        avatar_url = excluded.avatar_url,
                        verified = excluded.verified,
                        source = excluded.source,
                        updated_at = excluded.updated_at
                """, {**row, "now": now})

    def delete_subscription(self, channel_id: str) -> bool:
        """Remove a subscription. Returns True if a row was deleted."""
        with self._lock:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM subscriptions WHERE channel_id = ?", (channel_id,)
                )
                return cursor.rowcount > 0

    def is_subscribed(self, channel_id: str) -> bool:
        with self._lock:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT 1 FROM subscriptions WHERE channel_id = ?", (channel_id,)
                ).fetchone()
                return row is not None

    def get_subscriptions(self) -> list[dict[str, Any]]:
        """Return all subscriptions ordered by name."""
        with self._lock:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM subscriptions ORDER BY name COLLATE NOCASE, channel_id"
                ).fetchall()

        result = []
        for row in rows:
            data = dict(row)
            data["verified"] = bool(data["verified"])
            result.append(data)
        return result

    def get_subscription_channel_ids(self) -> list[str]:
        with self._lock:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT channel_id FROM subscriptions ORDER BY channel_id"
                ).fetchall()
                return [row[0] for row in rows]

    # =========================================================================
    # Playlist Operations
    # =========================================================================

    def upsert_playlist(self, data: dict[str, Any]) -> None:
        """
        Insert a playlist or update the existing row for its playlist id.

        Args:
            data: Must contain 'playlist_id'. Other playlist columns are optional.
        """
        row = self._pick(data, _PLAYLIST_FIELDS)
        now = self._now_iso()

        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO playlists
                        (playlist_id, title, description, thumbnail_url, item_count,
                         channel_id, channel_title, created_at, updated_at)
                    VALUES
                        (:playlist_id, :title, :description, :thumbnail_url, :item_count,
                         :channel_id, :channel_title, :now, :now)
                    ON CONFLICT(playlist_id) DO UPDATE SET
                        title = excluded.title,
                        description = excluded.description,
                        thumbnail_url = excluded.thumbnail_url,
                        item_count = excluded.item_count,
                        channel_id = excluded.channel_id,
                        channel_title = excluded.channel_title,
                        updated_at = excluded.updated_at
                """, {**row, "now": now})

    def get_playlists(self) -> list[dict[str, Any]]:
        with self._lock:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM playlists ORDER BY title COLLATE NOCASE, playlist_id"
                ).fetchall()
                return [dict(row) for row in rows]

    # =========================================================================
    # Playlist Item Operations
    # =========================================================================

    def upsert_playlist_item(self, data: dict[str, Any]) -> None:
        """
        Insert a playlist item or update the existing (playlist, video) row.

        Args:
            data: Must contain 'playlist_id' and 'video_id'.
        """
        row = self._pick(data, _PLAYLIST_ITEM_FIELDS)
        now = self._now_iso()

        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO playlist_items
                        (playlist_id, video_id, title, channel_id, channel_title,
                         thumbnail_url, position, published_at, created_at, updated_at)
                    VALUES
                        (:playlist_id, :video_id, :title, :channel_id, :channel_title,
                         :thumbnail_url, :position, :published_at, :now, :now)
                    ON CONFLICT(playlist_id, video_id) DO UPDATE SET
                        title = excluded.title,
                        channel_id = excluded.channel_id,
                        channel_title = excluded.channel_title,
                        thumbnail_url = excluded.thumbnail_url,
                        position = excluded.position,
                        published_at = excluded.published_at,
                        updated_at = excluded.updated_at
                """, {**row, "now": now})

    def get_playlist_items(self, playlist_id: str) -> list[dict[str, Any]]:
        """Return the items of a playlist in playlist order."""
        with self._lock:
            with self._get_connection() as conn:
                rows = conn.execute("""
                    SELECT * FROM playlist_items
                    WHERE playlist_id = ?
                    ORDER BY position IS NULL, position, video_id
                """, (playlist_id,)).fetchall()
                return [dict(row) for row in rows]

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, int]:
        """Row counts used by the status command."""
        with self._lock:
            with self._get_connection() as conn:
                subscriptions = conn.execute("SELECT COUNT(*) FROM subscriptions").fetchone()[0]
                playlists = conn.execute("SELECT COUNT(*) FROM playlists").fetchone()[0]
                liked = conn.execute(
                    "SELECT COUNT(*) FROM playlist_items WHERE playlist_id = ?",
                    (LIKED_VIDEOS_KEY,)
                ).fetchone()[0]
                history = conn.execute(
                    "SELECT COUNT(*) FROM playlist_items WHERE playlist_id = ?",
                    (WATCH_HISTORY_KEY,)
                ).fetchone()[0]

        return {
            "subscriptions": subscriptions,
            "playlists": playlists,
            "liked_videos": liked,
            "watch_history": history,
        }
