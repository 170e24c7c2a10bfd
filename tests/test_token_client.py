# tests/test_token_client.py
"""Test the Google token endpoint client"""

import urllib.parse
from unittest.mock import Mock

import pytest
import requests

from yt_account_sync.auth.models import EXCHANGE_FAILED
from yt_account_sync.auth.token_client import (
    AUTHORIZATION_ENDPOINT,
    JWT_BEARER_GRANT_TYPE,
    TOKEN_ENDPOINT,
    USERINFO_ENDPOINT,
    YOUTUBE_READONLY_SCOPE,
    TokenExchangeClient,
    build_authorization_url,
)
from yt_account_sync.core.exceptions import TokenExchangeError

from conftest import make_response


@pytest.fixture
def http_session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(http_session):
    return TokenExchangeClient(session=http_session, timeout=12)


class TestBuildAuthorizationUrl:
    """Test build_authorization_url()"""

    def test_parameters(self):
        """Consent URL carries every required parameter"""
        url = build_authorization_url("cid", "http://127.0.0.1:8765/oauth2callback")

        parsed = urllib.parse.urlparse(url)
        query = urllib.parse.parse_qs(parsed.query)
        assert url.startswith(AUTHORIZATION_ENDPOINT + "?")
        assert query == {
            "client_id": ["cid"],
            "redirect_uri": ["http://127.0.0.1:8765/oauth2callback"],
            "response_type": ["code"],
            "scope": [YOUTUBE_READONLY_SCOPE],
            "access_type": ["offline"],
            "prompt": ["consent"],
        }

    def test_values_are_percent_encoded(self):
        """Reserved characters never appear raw in the query"""
        url = build_authorization_url("cid", "http://127.0.0.1:8765/oauth2callback")
        query = url.split("?", 1)[1]
        assert "redirect_uri=http%3A%2F%2F127.0.0.1%3A8765%2Foauth2callback" in query
        assert " " not in query and "+" not in query

    def test_login_hint(self):
        """login_hint is appended when given"""
        url = build_authorization_url("cid", "http://x", login_hint="me@example.com")
        assert "login_hint=me%40example.com" in url


class TestExchangeAuthorizationCode:
    """Test the authorization_code grant"""

    def test_success(self, client, http_session):
        """Tokens are parsed from the JSON body"""
        http_session.post.return_value = make_response(json_data={
            "access_token": "AT1", "refresh_token": "RT1", "expires_in": 3600,
            "token_type": "Bearer",
        })

        response = client.exchange_authorization_code("abc123", "cid", "http://redirect")

        assert response.is_success
        assert response.access_token == "AT1"
        assert response.refresh_token == "RT1"
        assert response.expires_in == 3600
        http_session.post.assert_called_once_with(
            TOKEN_ENDPOINT,
            data={
                "code": "abc123",
                "client_id": "cid",
                "grant_type": "authorization_code",
                "redirect_uri": "http://redirect",
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=12
        )

    def test_client_secret_is_sent(self, http_session):
        """client_secret is added to the form when configured"""
        client = TokenExchangeClient(session=http_session, client_secret="shh")
        http_session.post.return_value = make_response(json_data={"access_token": "AT1"})

        client.exchange_authorization_code("abc123", "cid", "http://redirect")

        assert http_session.post.call_args.kwargs["data"]["client_secret"] == "shh"

    def test_google_error_is_returned(self, client, http_session):
        """HTTP 400 with an OAuth error comes back as error fields"""
        http_session.post.return_value = make_response(
            400, json_data={"error": "invalid_grant", "error_description": "Bad Request"}
        )

        response = client.exchange_authorization_code("abc123", "cid", "http://redirect")

        assert not response.is_success
        assert response.error == "invalid_grant"
        assert response.failure_reason == "Bad Request"

    def test_http_error_without_body_error(self, client, http_session):
        """A failing status without an OAuth error becomes http_<status>"""
        http_session.post.return_value = make_response(
            503, json_data={"access_token": "ignored"}, reason="Service Unavailable"
        )

        response = client.exchange_authorization_code("abc123", "cid", "http://redirect")

        assert response.error == "http_503"
        assert response.access_token is None

    def test_transport_failure_raises(self, client, http_session):
        """Network errors raise TokenExchangeError"""
        http_session.post.side_effect = requests.ConnectionError("offline")
        with pytest.raises(TokenExchangeError, match="offline"):
            client.exchange_authorization_code("abc123", "cid", "http://redirect")

    def test_empty_body_raises(self, client, http_session):
        """An empty body raises TokenExchangeError"""
        http_session.post.return_value = make_response(200, content=b"")
        with pytest.raises(TokenExchangeError, match="empty"):
            client.exchange_authorization_code("abc123", "cid", "http://redirect")

    def test_undecodable_body_raises(self, client, http_session):
        """A non-JSON body raises TokenExchangeError"""
        http_session.post.return_value = make_response(
            200, json_data=ValueError("no json"), content=b"<html>"
        )
        with pytest.raises(TokenExchangeError, match="unreadable"):
            client.exchange_authorization_code("abc123", "cid", "http://redirect")


class TestRefreshAndAssertion:
    """Test the grants that never raise"""

    def test_refresh_form(self, client, http_session):
        """refresh_token grant form"""
        http_session.post.return_value = make_response(json_data={"access_token": "AT2", "expires_in": 3599})

        response = client.refresh("RT1", "cid")

        assert response.access_token == "AT2"
        assert response.refresh_token is None
        assert http_session.post.call_args.kwargs["data"] == {
            "refresh_token": "RT1",
            "client_id": "cid",
            "grant_type": "refresh_token",
        }

    def test_refresh_transport_failure(self, client, http_session):
        """Network errors become an exchange_failed response"""
        http_session.post.side_effect = requests.Timeout("timed out")

        response = client.refresh("RT1", "cid")

        assert not response.is_success
        assert response.error == EXCHANGE_FAILED
        assert "timed out" in response.failure_reason

    def test_refresh_empty_body(self, client, http_session):
        """An empty body becomes an exchange_failed response"""
        http_session.post.return_value = make_response(200, content=b"")
        assert client.refresh("RT1", "cid").error == EXCHANGE_FAILED

    def test_assertion_form(self, client, http_session):
        """JWT bearer grant form"""
        http_session.post.return_value = make_response(json_data={"access_token": "AT1"})

        client.exchange_identity_assertion("id.token.jwt", "cid")

        assert http_session.post.call_args.kwargs["data"] == {
            "grant_type": JWT_BEARER_GRANT_TYPE,
            "assertion": "id.token.jwt",
            "client_id": "cid",
            "scope": YOUTUBE_READONLY_SCOPE,
        }

    def test_assertion_transport_failure(self, client, http_session):
        """Network errors become an exchange_failed response"""
        http_session.post.side_effect = requests.ConnectionError("offline")

        response = client.exchange_identity_assertion("id.token.jwt", "cid")

        assert response.error == EXCHANGE_FAILED


class TestFetchAccountEmail:
    """Test fetch_account_email()"""

    def test_email(self, client, http_session):
        """The e-mail is read from userinfo"""
        http_session.get.return_value = make_response(json_data={"email": "me@example.com"})

        assert client.fetch_account_email("AT1") == "me@example.com"
        http_session.get.assert_called_once_with(
            USERINFO_ENDPOINT,
            headers={"Authorization": "Bearer AT1"},
            timeout=12
        )

    def test_failure_returns_none(self, client, http_session):
        """Any failure yields None"""
        http_session.get.side_effect = requests.ConnectionError("offline")
        assert client.fetch_account_email("AT1") is None

    def test_http_error_returns_none(self, client, http_session):
        """raise_for_status failures yield None"""
        response = make_response(401, json_data={})
        response.raise_for_status.side_effect = requests.HTTPError("401")
        http_session.get.return_value = response
        assert client.fetch_account_email("AT1") is None
