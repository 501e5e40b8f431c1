"""PagerDuty OAuth endpoints and token grants using httpx."""

from datetime import datetime, timedelta, timezone
from typing import Any, NamedTuple

import httpx

from pdcli.config import OAuthType
from pdcli.core.logging import get_logger
from pdcli.auth.token_store import StoredToken

logger = get_logger(__name__)

# Classic OAuth apps (app.pagerduty.com)
CLASSIC_AUTH_URL = "https://app.pagerduty.com/oauth/authorize"
CLASSIC_TOKEN_URL = "https://app.pagerduty.com/oauth/token"

# Scoped OAuth apps (identity.pagerduty.com)
SCOPED_AUTH_URL = "https://identity.pagerduty.com/oauth/authorize"
SCOPED_TOKEN_URL = "https://identity.pagerduty.com/oauth/token"


class OAuthEndpoints(NamedTuple):
    """Authorization and token URLs of one OAuth app family."""

    authorize_url: str
    token_url: str


def get_oauth_endpoints(oauth_type: OAuthType | None) -> OAuthEndpoints:
    """Return the endpoint pair for the application type.

    Anything other than a scoped app uses the classic endpoints.
    """
    if oauth_type == OAuthType.SCOPED:
        return OAuthEndpoints(SCOPED_AUTH_URL, SCOPED_TOKEN_URL)
    return OAuthEndpoints(CLASSIC_AUTH_URL, CLASSIC_TOKEN_URL)


class GrantError(Exception):
    """A token grant was rejected or could not be sent."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OAuthProvider:
    """Client for the PagerDuty OAuth token endpoint.

    Client credentials are sent as form parameters.
    """

    def __init__(
        self,
        oauth_type: OAuthType | None,
        client_id: str,
        client_secret: str,
        redirect_url: str | None = None,
        http_client: httpx.Client | None = None,
        timeout: int = 30,
    ):
        self.endpoints = get_oauth_endpoints(oauth_type)
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self._http_client = http_client
        self._timeout = timeout

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
            )
        return self._http_client

    def authorization_url(self, state: str, scopes: list[str] | tuple[str, ...]) -> str:
        """Build the URL the user authorizes the app at."""
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "state": state,
        }
        if self.redirect_url:
            params["redirect_uri"] = self.redirect_url
        if scopes:
            params["scope"] = " ".join(scopes)
        return str(httpx.URL(self.endpoints.authorize_url, params=params))

    def exchange_code(self, code: str) -> StoredToken:
        """Trade an authorization code for a token."""
        data = {"grant_type": "authorization_code", "code": code}
        if self.redirect_url:
            data["redirect_uri"] = self.redirect_url
        return self._grant(data)

    def refresh(self, refresh_token: str) -> StoredToken:
        """Obtain a new access token from a refresh token.

        The old refresh token is kept when the response carries none.
        """
        token = self._grant({"grant_type": "refresh_token", "refresh_token": refresh_token})
        if not token.refresh_token:
            token = token.model_copy(update={"refresh_token": refresh_token})
        return token

    def _grant(self, data: dict[str, str]) -> StoredToken:
        form = {**data, "client_id": self.client_id, "client_secret": self.client_secret}
        logger.debug(f"Requesting {data['grant_type']} grant from {self.endpoints.token_url}")

        try:
            response = self.client.post(self.endpoints.token_url, data=form)
        except httpx.RequestError as e:
            raise GrantError(f"Request failed: {e}")

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            raise GrantError(_describe_error(response, payload), status_code=response.status_code)
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise GrantError("server response missing access_token", status_code=response.status_code)

        return token_from_response(payload)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            self._http_client.close()
            self._http_client = None


def _describe_error(response: httpx.Response, payload: Any) -> str:
    if isinstance(payload, dict) and payload.get("error"):
        message = str(payload["error"])
        if payload.get("error_description"):
            message = f"{message}: {payload['error_description']}"
        return f"{message} (HTTP {response.status_code})"
    return f"HTTP {response.status_code}: {response.text or response.reason_phrase}"


def token_from_response(payload: dict[str, Any], now: datetime | None = None) -> StoredToken:
    """Build a token from a token endpoint response."""
    expiry = None
    expires_in = payload.get("expires_in")
    if expires_in:
        now = now or datetime.now(timezone.utc)
        expiry = now + timedelta(seconds=int(expires_in))

    scope = payload.get("scope")
    return StoredToken(
        access_token=payload["access_token"],
        token_type=payload.get("token_type") or "Bearer",
        refresh_token=payload.get("refresh_token") or None,
        expiry=expiry,
        scopes=scope.split() if isinstance(scope, str) else [],
    )
