# tests/test_importer.py
"""Test importing account data into the local store"""

from unittest.mock import Mock

import pytest

from yt_account_sync.auth.session import AuthSession
from yt_account_sync.core.database import LIKED_VIDEOS_KEY, SOURCE_GOOGLE, WATCH_HISTORY_KEY
from yt_account_sync.core.exceptions import AuthenticationRequiredError, YouTubeApiError
from yt_account_sync.sync.importer import ImportEngine
from yt_account_sync.sync.records import LocalSubscription
from yt_account_sync.youtube.client import YouTubeDataClient
from yt_account_sync.youtube.models import (
    MyChannel,
    Page,
    RemotePlaylist,
    RemotePlaylistItem,
    RemoteSubscription,
)

from conftest import playlist_item, subscription_item


def subscription_pages(channel_ids, page_size=50):
    """Split channel ids into API pages keyed by cursor"""
    items = [RemoteSubscription.from_api(subscription_item(cid)) for cid in channel_ids]
    chunks = [items[i:i + page_size] for i in range(0, len(items), page_size)] or [[]]
    pages = {}
    for index, chunk in enumerate(chunks):
        cursor = None if index == 0 else f"page{index}"
        next_cursor = f"page{index + 1}" if index + 1 < len(chunks) else None
        pages[cursor] = Page(items=chunk, next_cursor=next_cursor)
    return lambda bearer, page_token=None: pages[page_token]


@pytest.fixture
def session():
    session = Mock(spec=AuthSession)
    session.require_access_token.return_value = "Bearer AT1"
    return session


@pytest.fixture
def client():
    return Mock(spec=YouTubeDataClient)


@pytest.fixture
def engine(database, session, client):
    return ImportEngine(database, session, client)


class TestImportSubscriptions:
    """Test import_subscriptions()"""

    def test_import_twice_is_idempotent(self, engine, client, database):
        """10 items imported twice give 10 rows and count 10 both times"""
        client.list_subscriptions.side_effect = subscription_pages([f"UC{i}" for i in range(10)])

        assert engine.import_subscriptions() == 10
        assert engine.import_subscriptions() == 10
        assert len(database.get_subscriptions()) == 10

    def test_multiple_pages(self, engine, client, session):
        """Every page is imported and the token is asked for per page"""
        client.list_subscriptions.side_effect = subscription_pages([f"UC{i}" for i in range(120)])

        assert engine.import_subscriptions() == 120
        assert client.list_subscriptions.call_count == 3
        # One upfront check plus one per page
        assert session.require_access_token.call_count == 4

    def test_items_without_channel_id_are_skipped(self, engine, client, database):
        """Items missing their stable id are not stored or counted"""
        client.list_subscriptions.return_value = Page(items=[
            RemoteSubscription.from_api(subscription_item("UC1")),
            RemoteSubscription.from_api(subscription_item(None)),
            RemoteSubscription.from_api(subscription_item("UC2")),
        ])

        assert engine.import_subscriptions() == 2
        assert database.get_subscription_channel_ids() == ["UC1", "UC2"]

    def test_duplicate_ids_counted_once(self, engine, client):
        """The count is of distinct identifiers"""
        client.list_subscriptions.return_value = Page(items=[
            RemoteSubscription.from_api(subscription_item("UC1")),
            RemoteSubscription.from_api(subscription_item("UC1")),
        ])
        assert engine.import_subscriptions() == 1

    def test_best_thumbnail_and_source(self, engine, client, database):
        """Stored avatar is the best thumbnail, source is google"""
        client.list_subscriptions.return_value = Page(items=[
            RemoteSubscription.from_api(subscription_item("UC1", thumbnails={
                "default": {"url": "d"},
                "medium": {"url": "m"},
                "high": {"url": "h"},
            })),
        ])

        engine.import_subscriptions()

        row = database.get_subscriptions()[0]
        assert row["avatar_url"] == "h"
        assert row["source"] == SOURCE_GOOGLE

    def test_signed_out(self, engine, client, session):
        """No account raises before any request"""
        session.require_access_token.side_effect = AuthenticationRequiredError("not connected")

        with pytest.raises(AuthenticationRequiredError):
            engine.import_subscriptions()
        client.list_subscriptions.assert_not_called()

    def test_failing_page_stores_nothing(self, engine, client, database):
        """A page error leaves the local store untouched"""
        first = Page(items=[RemoteSubscription.from_api(subscription_item("UC1"))], next_cursor="page1")
        client.list_subscriptions.side_effect = [first, YouTubeApiError("boom", status_code=500)]

        with pytest.raises(YouTubeApiError):
            engine.import_subscriptions()
        assert database.get_subscriptions() == []


class TestImportPlaylists:
    """Test playlist imports"""

    def test_import_playlists(self, engine, client, database, sample_playlist_data):
        """Playlists are stored with their best thumbnail"""
        client.list_playlists.return_value = Page(items=[RemotePlaylist.from_api(sample_playlist_data)])

        assert engine.import_playlists() == 1

        playlist = database.get_playlists()[0]
        assert playlist["playlist_id"] == "PL1"
        assert playlist["thumbnail_url"] == "https://i.ytimg.com/pl/high.jpg"
        assert playlist["item_count"] == 12
        client.list_playlist_items.assert_not_called()

    def test_import_playlists_with_items(self, engine, client, database, sample_playlist_data):
        """include_items imports each playlist's videos"""
        client.list_playlists.return_value = Page(items=[RemotePlaylist.from_api(sample_playlist_data)])
        client.list_playlist_items.return_value = Page(items=[
            RemotePlaylistItem.from_api(playlist_item("v1", position=0)),
            RemotePlaylistItem.from_api(playlist_item("v2", position=1)),
        ])

        engine.import_playlists(include_items=True)

        client.list_playlist_items.assert_called_once_with("Bearer AT1", "PL1", None)
        assert [row["video_id"] for row in database.get_playlist_items("PL1")] == ["v1", "v2"]

    def test_playlist_items_skip_missing_video(self, engine, client, database):
        """Deleted or private videos without id are skipped"""
        client.list_playlist_items.return_value = Page(items=[
            RemotePlaylistItem.from_api(playlist_item("v1")),
            RemotePlaylistItem.from_api(playlist_item(None)),
        ])

        assert engine.import_playlist_items("PL1") == 1
        row = database.get_playlist_items("PL1")[0]
        assert row["channel_id"] == "UCuploader"
        assert row["thumbnail_url"] == "https://i.ytimg.com/vi/v1/hqdefault.jpg"


class TestImportPlaylistById:
    """Test import_playlist()"""

    def test_details_and_items_are_stored(self, engine, client, database, sample_playlist_data):
        """A playlist the user does not own gets its row and its videos"""
        client.get_playlist.return_value = RemotePlaylist.from_api(sample_playlist_data)
        client.list_playlist_items.return_value = Page(items=[
            RemotePlaylistItem.from_api(playlist_item("v1")),
            RemotePlaylistItem.from_api(playlist_item("v2", position=1)),
        ])

        assert engine.import_playlist("PL1") == 2

        client.get_playlist.assert_called_once_with("Bearer AT1", "PL1")
        playlist = database.get_playlists()[0]
        assert playlist["playlist_id"] == "PL1"
        assert playlist["title"] == sample_playlist_data["snippet"]["title"]
        assert playlist["thumbnail_url"] == "https://i.ytimg.com/pl/high.jpg"
        assert playlist["item_count"] == 12
        assert len(database.get_playlist_items("PL1")) == 2

    def test_missing_details_keeps_items(self, engine, client, database):
        """Without details only the videos are stored"""
        client.get_playlist.return_value = None
        client.list_playlist_items.return_value = Page(items=[
            RemotePlaylistItem.from_api(playlist_item("v1")),
        ])

        assert engine.import_playlist("PL1") == 1
        assert database.get_playlists() == []
        assert len(database.get_playlist_items("PL1")) == 1

    def test_failing_items_store_nothing(self, engine, client, database, sample_playlist_data):
        """The playlist row is not written when its videos cannot be fetched"""
        client.get_playlist.return_value = RemotePlaylist.from_api(sample_playlist_data)
        client.list_playlist_items.side_effect = YouTubeApiError("boom", status_code=500)

        with pytest.raises(YouTubeApiError):
            engine.import_playlist("PL1")
        assert database.get_playlists() == []


class TestRelatedPlaylists:
    """Test liked videos and watch history"""

    def test_import_liked_videos(self, engine, client, database):
        """Liked videos go under the liked pseudo playlist"""
        client.get_my_channel.return_value = MyChannel(
            channel_id="UCme", title="Me", related_playlists={"likes": "LLme"}
        )
        client.list_playlist_items.return_value = Page(items=[
            RemotePlaylistItem.from_api(playlist_item("v1", playlist_id="LLme")),
        ])

        assert engine.import_liked_videos() == 1

        client.list_playlist_items.assert_called_once_with("Bearer AT1", "LLme", None)
        assert [row["video_id"] for row in database.get_playlist_items(LIKED_VIDEOS_KEY)] == ["v1"]
        assert database.get_playlist_items("LLme") == []

    def test_watch_history_unavailable(self, engine, client, database):
        """A missing watchHistory playlist imports nothing"""
        client.get_my_channel.return_value = MyChannel(
            channel_id="UCme", title="Me", related_playlists={"likes": "LLme"}
        )

        assert engine.import_watch_history() == 0
        client.list_playlist_items.assert_not_called()
        assert database.get_playlist_items(WATCH_HISTORY_KEY) == []

    def test_no_channel(self, engine, client):
        """An account without a channel imports nothing"""
        client.get_my_channel.return_value = None
        assert engine.import_liked_videos() == 0


class TestFeedChannels:
    """Test get_feed_channel_ids()"""

    def test_ids_are_capped_and_not_stored(self, engine, client, database):
        """At most 500 ids in remote order, nothing written locally"""
        client.list_subscriptions.side_effect = subscription_pages([f"UC{i:04d}" for i in range(700)])

        channel_ids = engine.get_feed_channel_ids()

        assert len(channel_ids) == 500
        assert channel_ids[:2] == ["UC0000", "UC0001"]
        assert database.get_subscriptions() == []


class TestLocalSubscriptions:
    """Test local-only subscription operations"""

    def test_subscribe_never_calls_remote(self, engine, client, session):
        """Local operations touch neither the API nor the account"""
        engine.subscribe("UC1", "One", avatar_url="https://a", verified=True)
        assert engine.is_subscribed("UC1")
        assert engine.get_subscription_channel_ids() == ["UC1"]
        assert engine.unsubscribe("UC1")

        assert client.mock_calls == []
        assert session.mock_calls == []

    def test_get_subscriptions(self, engine):
        """Local subscriptions come back as records"""
        engine.subscribe("UC1", "One", avatar_url="https://a", verified=True)

        assert engine.get_subscriptions() == [LocalSubscription(
            channel_id="UC1", name="One", avatar_url="https://a", verified=True, source="local"
        )]

    def test_import_channel_ids(self, engine, client, session, database):
        """Bulk import adds new channels only and never calls Google"""
        engine.subscribe("UC1", "Known", avatar_url="https://a")

        added = engine.import_channel_ids(["UC1", "UC2", " UC3 ", "", "UC2"])

        assert added == 2
        assert database.get_subscription_channel_ids() == ["UC1", "UC2", "UC3"]
        known = [s for s in engine.get_subscriptions() if s.channel_id == "UC1"][0]
        assert known.name == "Known"
        assert known.avatar_url == "https://a"
        assert client.mock_calls == []
        assert session.mock_calls == []

    def test_unsubscribe_unknown(self, engine):
        """Unsubscribing from an unknown channel returns False"""
        assert not engine.unsubscribe("UC404")

    def test_import_updates_local_subscription(self, engine, client, database):
        """Importing a locally added channel marks it as from google"""
        engine.subscribe("UC1", "Local name")
        client.list_subscriptions.return_value = Page(items=[
            RemoteSubscription.from_api(subscription_item("UC1", title="Remote name")),
        ])

        engine.import_subscriptions()

        rows = database.get_subscriptions()
        assert len(rows) == 1
        assert rows[0]["name"] == "Remote name"
        assert rows[0]["source"] == SOURCE_GOOGLE
