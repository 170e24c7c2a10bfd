"""Test configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path
from unittest.mock import Mock

from yt_account_sync.auth.credentials import CredentialStore
from yt_account_sync.core.database import Database
from yt_account_sync.core.kv_store import JsonKeyValueStore

# Fixed "now" for every clock-dependent test: 2024-01-01T00:00:00Z
NOW_MS = 1_704_067_200_000


class FakeClock:
    """Callable clock returning a settable epoch time in milliseconds"""

    def __init__(self, now_ms: int = NOW_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


def make_response(status_code=200, json_data=None, content=None, reason="OK"):
    """Build a Mock requests.Response"""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    if content is None:
        content = b"{}" if json_data is not None else b""
    response.content = content
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def clock():
    """Controllable clock starting at NOW_MS"""
    return FakeClock()


@pytest.fixture
def kv_store(temp_dir):
    """Key-value store in a temporary credentials.json"""
    return JsonKeyValueStore(temp_dir / "credentials.json")


@pytest.fixture
def credential_store(kv_store, clock):
    """Credential store using the fake clock"""
    return CredentialStore(kv_store, clock=clock)


@pytest.fixture
def database(temp_dir):
    """Fresh SQLite database"""
    db = Database(temp_dir / "database.db")
    yield db
    db.close()


@pytest.fixture
def config_file(temp_dir):
    """Minimal config.yaml pointing storage at the temporary directory"""
    path = temp_dir / "config.yaml"
    path.write_text(
        "google:\n"
        "  client_id: \"test-client.apps.googleusercontent.com\"\n"
        "  redirect_port: 8765\n"
        "storage:\n"
        f"  directory: \"{(temp_dir / 'storage').as_posix()}\"\n",
        encoding="utf-8"
    )
    return path


def subscription_item(channel_id, title=None, thumbnails=None):
    """Sample youtube#subscription resource"""
    snippet = {
        "title": title or f"Channel {channel_id}",
        "description": "",
        "thumbnails": thumbnails or {
            "default": {"url": f"https://yt3.ggpht.com/{channel_id}/default.jpg"},
        },
    }
    if channel_id is not None:
        snippet["resourceId"] = {"kind": "youtube#channel", "channelId": channel_id}
    return {"kind": "youtube#subscription", "id": f"sub-{channel_id}", "snippet": snippet}


def playlist_item(video_id, position=0, playlist_id="PL1"):
    """Sample youtube#playlistItem resource"""
    snippet = {
        "playlistId": playlist_id,
        "position": position,
        "title": f"Video {video_id}",
        "channelId": "UCowner",
        "channelTitle": "Owner",
        "videoOwnerChannelId": "UCuploader",
        "videoOwnerChannelTitle": "Uploader",
        "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"}},
    }
    content_details = {}
    if video_id is not None:
        snippet["resourceId"] = {"kind": "youtube#video", "videoId": video_id}
        content_details = {"videoId": video_id, "videoPublishedAt": "2023-05-01T10:00:00Z"}
    return {
        "kind": "youtube#playlistItem",
        "id": f"item-{video_id}",
        "snippet": snippet,
        "contentDetails": content_details,
    }


@pytest.fixture
def sample_playlist_data():
    """Sample youtube#playlist resource"""
    return {
        "kind": "youtube#playlist",
        "id": "PL1",
        "snippet": {
            "title": "Road trip",
            "description": "Songs for the car",
            "channelId": "UCme",
            "channelTitle": "Me",
            "thumbnails": {
                "default": {"url": "https://i.ytimg.com/pl/default.jpg"},
                "medium": {"url": "https://i.ytimg.com/pl/medium.jpg"},
                "high": {"url": "https://i.ytimg.com/pl/high.jpg"},
            },
        },
        "contentDetails": {"itemCount": 12},
    }
