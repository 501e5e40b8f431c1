"""PagerDuty API client using httpx."""

from typing import Any, Generator

import httpx

from pdcli.auth.token_source import TokenSource
from pdcli.core.exceptions import PagerDutyError
from pdcli.core.logging import get_logger

logger = get_logger(__name__)

BASE_URL = "https://api.pagerduty.com"


class StaticTokenAuth(httpx.Auth):
    """API token authentication."""

    def __init__(self, token: str):
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Token token={self._token}"
        yield request


class OAuthTokenAuth(httpx.Auth):
    """Bearer authentication with a token taken from a token source."""

    def __init__(self, source: TokenSource):
        self._source = source

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._source.token()
        request.headers["Authorization"] = f"Bearer {token.access_token}"
        yield request


class PagerDutyClient:
    """Client for PagerDuty REST API v2."""

    def __init__(
        self,
        auth: httpx.Auth,
        base_url: str = BASE_URL,
        timeout: int = 30,
        transport: httpx.BaseTransport | None = None,
    ):
        self._auth = auth
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    @property
    def auth(self) -> httpx.Auth:
        return self._auth

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Content-Type": "application/json",
                "Accept": "application/vnd.pagerduty+json;version=2",
            }

            self._client = httpx.Client(
                base_url=self._base_url,
                headers=headers,
                auth=self._auth,
                timeout=self._timeout,
                transport=self._transport,
            )

            logger.debug("Created PagerDuty client")

        return self._client

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make an API request."""
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()

            if response.content:
                return response.json()
            return None

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            try:
                error_data = e.response.json()
                error = error_data.get("error", {})
                message = error.get("message", str(e))
                errors = error.get("errors", [])
                if errors:
                    message = f"{message}: {', '.join(errors)}"
            except (ValueError, AttributeError):
                message = e.response.text or str(e)

            raise PagerDutyError(message, status_code=status_code)

        except httpx.RequestError as e:
            raise PagerDutyError(f"Request failed: {e}")

    def get(self, path: str, **kwargs: Any) -> Any:
        """Make a GET request."""
        return self._request("GET", path, **kwargs)

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "PagerDutyClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # Ability operations
    def list_abilities(self) -> list[str]:
        """List the abilities of the account."""
        result = self.get("/abilities")
        return result.get("abilities", []) if result else []

    def test_ability(self, ability: str) -> bool:
        """Check whether the account has an ability.

        The API answers 204 when the ability is present and 402 when the
        account lacks it.
        """
        try:
            self.get(f"/abilities/{ability}")
        except PagerDutyError as e:
            if e.status_code == 402:
                return False
            raise
        return True
