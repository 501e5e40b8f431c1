"""Tests for OAuth endpoints and grants."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from pdcli.auth.provider import (
    CLASSIC_AUTH_URL,
    CLASSIC_TOKEN_URL,
    SCOPED_AUTH_URL,
    SCOPED_TOKEN_URL,
    GrantError,
    OAuthProvider,
    get_oauth_endpoints,
    token_from_response,
)
from pdcli.config import OAuthType


class TestGetOAuthEndpoints:
    """Tests for endpoint selection."""

    @pytest.mark.parametrize(
        "oauth_type, expected",
        [
            (OAuthType.CLASSIC, (CLASSIC_AUTH_URL, CLASSIC_TOKEN_URL)),
            (OAuthType.SCOPED, (SCOPED_AUTH_URL, SCOPED_TOKEN_URL)),
            (None, (CLASSIC_AUTH_URL, CLASSIC_TOKEN_URL)),
        ],
    )
    def test_endpoint_pairs(self, oauth_type, expected):
        endpoints = get_oauth_endpoints(oauth_type)
        assert (endpoints.authorize_url, endpoints.token_url) == expected

    def test_hosts(self):
        assert "app.pagerduty.com" in CLASSIC_TOKEN_URL
        assert "identity.pagerduty.com" in SCOPED_TOKEN_URL


class TestAuthorizationURL:
    """Tests for the authorization URL."""

    def test_parameters(self):
        provider = OAuthProvider(
            OAuthType.SCOPED,
            "client-123",
            "secret",
            redirect_url="http://localhost:8080/callback",
        )
        url = httpx.URL(provider.authorization_url("state-1", ["incidents.read", "services.read"]))

        assert f"{url.scheme}://{url.host}{url.path}" == SCOPED_AUTH_URL
        assert url.params["response_type"] == "code"
        assert url.params["client_id"] == "client-123"
        assert url.params["redirect_uri"] == "http://localhost:8080/callback"
        assert url.params["scope"] == "incidents.read services.read"
        assert url.params["state"] == "state-1"
        assert "client_secret" not in url.params


class TestGrants:
    """Tests for token endpoint grants."""

    def test_exchange_code(self, token_endpoint):
        provider = OAuthProvider(
            OAuthType.CLASSIC,
            "client-123",
            "secret-456",
            redirect_url="http://localhost:8080/callback",
            http_client=token_endpoint.client(),
        )
        token = provider.exchange_code("the-code")

        assert token.access_token == "new-access"
        assert token.refresh_token == "new-refresh"
        assert token.expiry is not None
        assert str(token_endpoint.requests[0].url) == CLASSIC_TOKEN_URL
        assert token_endpoint.forms[0] == {
            "grant_type": "authorization_code",
            "code": "the-code",
            "redirect_uri": "http://localhost:8080/callback",
            "client_id": "client-123",
            "client_secret": "secret-456",
        }

    def test_refresh_keeps_refresh_token_when_omitted(self, make_token_endpoint):
        endpoint = make_token_endpoint(payload={"access_token": "fresh", "expires_in": 60})
        provider = OAuthProvider(OAuthType.SCOPED, "id", "secret", http_client=endpoint.client())

        token = provider.refresh("old-refresh")

        assert token.access_token == "fresh"
        assert token.refresh_token == "old-refresh"
        assert str(endpoint.requests[0].url) == SCOPED_TOKEN_URL
        assert endpoint.forms[0]["grant_type"] == "refresh_token"
        assert endpoint.forms[0]["refresh_token"] == "old-refresh"

    def test_provider_error(self, make_token_endpoint):
        endpoint = make_token_endpoint(
            status_code=400,
            payload={"error": "invalid_grant", "error_description": "code expired"},
        )
        provider = OAuthProvider(None, "id", "secret", http_client=endpoint.client())

        with pytest.raises(GrantError) as exc_info:
            provider.exchange_code("stale")
        assert "invalid_grant" in str(exc_info.value)
        assert "code expired" in str(exc_info.value)
        assert exc_info.value.status_code == 400

    def test_missing_access_token(self, make_token_endpoint):
        endpoint = make_token_endpoint(payload={"token_type": "bearer"})
        provider = OAuthProvider(None, "id", "secret", http_client=endpoint.client())
        with pytest.raises(GrantError):
            provider.exchange_code("code")

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        provider = OAuthProvider(None, "id", "secret", http_client=client)
        with pytest.raises(GrantError) as exc_info:
            provider.refresh("r")
        assert "Request failed" in str(exc_info.value)


class TestTokenFromResponse:
    """Tests for token_from_response."""

    def test_expiry_from_expires_in(self):
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        token = token_from_response({"access_token": "a", "expires_in": 3600}, now=now)
        assert token.expiry == now + timedelta(hours=1)

    def test_no_expiry(self):
        token = token_from_response({"access_token": "a"})
        assert token.expiry is None
        assert token.token_type == "Bearer"
        assert token.refresh_token is None

    def test_granted_scopes(self):
        token = token_from_response({"access_token": "a", "scope": "read write"})
        assert token.scopes == ["read", "write"]
