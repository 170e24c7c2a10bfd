"""
YouTube Data API v3 client.

Read-only wrapper for the collections yt-account-sync imports. Every
method takes the bearer value to send ("Bearer <token>") and returns
parsed models; list methods return one Page so that pagination stays in
yt_account_sync.youtube.pagination.

Endpoints:
    GET subscriptions   part=snippet,contentDetails  mine=true
    GET playlists       part=snippet,contentDetails  mine=true
    GET playlists       part=snippet,contentDetails  id=...
    GET playlistItems   part=snippet,contentDetails  playlistId=...
    GET channels        part=snippet,contentDetails  mine=true

Unauthorized responses:
    When an on_unauthorized callback is given and Google answers 401,
    the callback is asked for a fresh bearer value and the request is
    sent once more. A second 401 raises YouTubeApiError(is_auth_error=True).
"""

from typing import Any, Callable

import requests

from yt_account_sync.core.exceptions import YouTubeApiError
from yt_account_sync.core.logger import get_logger
from yt_account_sync.youtube.models import (
    MyChannel,
    Page,
    RemotePlaylist,
    RemotePlaylistItem,
    RemoteSubscription,
)

logger = get_logger(__name__)


YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3/"
MAX_RESULTS = 50
DEFAULT_TIMEOUT = 30.0

_PARTS = "snippet,contentDetails"
_RATE_LIMIT_REASONS = {"quotaExceeded", "rateLimitExceeded", "userRateLimitExceeded"}


class YouTubeDataClient:
    """
    Blocking client for the YouTube Data API.

    Attributes:
        timeout: Seconds before a request is abandoned.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        on_unauthorized: Callable[[], str | None] | None = None
    ) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout
        self._on_unauthorized = on_unauthorized

    def list_subscriptions(
        self,
        bearer: str,
        page_token: str | None = None
    ) -> Page[RemoteSubscription]:
        data = self._get("subscriptions", bearer, {
            "part": _PARTS,
            "mine": "true",
            "maxResults": MAX_RESULTS,
            "pageToken": page_token,
        })
        return Page.from_api(data, RemoteSubscription.from_api)

    def list_playlists(
        self,
        bearer: str,
        page_token: str | None = None
    ) -> Page[RemotePlaylist]:
        data = self._get("playlists", bearer, {
            "part": _PARTS,
            "mine": "true",
            "maxResults": MAX_RESULTS,
            "pageToken": page_token,
        })
        return Page.from_api(data, RemotePlaylist.from_api)

    def get_playlist(self, bearer: str, playlist_id: str) -> RemotePlaylist | None:
        """A single playlist by id, or None if Google does not return it."""
        data = self._get("playlists", bearer, {"part": _PARTS, "id": playlist_id})
        items = data.get("items") or []
        if not items:
            return None
        return RemotePlaylist.from_api(items[0])

    def list_playlist_items(
        self,
        bearer: str,
        playlist_id: str,
        page_token: str | None = None
    ) -> Page[RemotePlaylistItem]:
        data = self._get("playlistItems", bearer, {
            "part": _PARTS,
            "playlistId": playlist_id,
            "maxResults": MAX_RESULTS,
            "pageToken": page_token,
        })
        return Page.from_api(data, RemotePlaylistItem.from_api)

    def get_my_channel(self, bearer: str) -> MyChannel | None:
        """The signed-in user's channel, or None if the account has none."""
        data = self._get("channels", bearer, {"part": _PARTS, "mine": "true"})
        items = data.get("items") or []
        if not items:
            return None
        return MyChannel.from_api(items[0])

    def _get(self, endpoint: str, bearer: str, params: dict[str, Any]) -> dict[str, Any]:
        url = YOUTUBE_API_BASE + endpoint
        params = {key: value for key, value in params.items() if value is not None}

        response = self._send(url, bearer, params)

        if response.status_code == 401 and self._on_unauthorized is not None:
            logger.info("Google rejected the access token, retrying with a refreshed one")
            fresh_bearer = self._on_unauthorized()
            if fresh_bearer is not None:
                response = self._send(url, bearer=fresh_bearer, params=params)

        if not response.ok:
            raise self._error_from_response(endpoint, url, response)

        try:
            data = response.json()
        except ValueError as e:
            raise YouTubeApiError(
                f"YouTube API returned invalid JSON for {endpoint}",
                details={"url": url, "original_error": str(e)},
                status_code=response.status_code
            ) from e

        if not isinstance(data, dict):
            raise YouTubeApiError(
                f"YouTube API returned an unexpected response for {endpoint}",
                details={"url": url},
                status_code=response.status_code
            )
        return data

    def _send(self, url: str, bearer: str, params: dict[str, Any]) -> requests.Response:
        logger.debug(f"GET {url} {params}")
        try:
            return self._session.get(
                url,
                params=params,
                headers={"Authorization": bearer, "Accept": "application/json"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise YouTubeApiError(
                f"YouTube API request failed: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e

    @staticmethod
    def _error_from_response(
        endpoint: str,
        url: str,
        response: requests.Response
    ) -> YouTubeApiError:
        message = response.reason or f"HTTP {response.status_code}"
        reasons: set[str] = set()

        try:
            error = response.json().get("error") or {}
            message = error.get("message") or message
            reasons = {e.get("reason") for e in error.get("errors") or [] if isinstance(e, dict)}
        except (ValueError, AttributeError):
            # Non-JSON error body, keep the HTTP reason
            pass

        reasons.discard(None)
        return YouTubeApiError(
            f"YouTube API error on {endpoint}: {message}",
            details={
                "url": url,
                "status_code": response.status_code,
                "reasons": sorted(reasons),
            },
            status_code=response.status_code,
            is_auth_error=response.status_code == 401,
            is_rate_limit=response.status_code == 429 or bool(reasons & _RATE_LIMIT_REASONS)
        )
