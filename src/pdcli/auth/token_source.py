"""Token sources backed by the token file."""

import threading
from pathlib import Path
from typing import Protocol

import httpx

from pdcli.auth.provider import GrantError, OAuthProvider
from pdcli.auth.token_store import StoredToken, load_token, resolve_token_path, save_token
from pdcli.config import OAuthType
from pdcli.core.exceptions import (
    ClientIDMismatchError,
    NoRefreshTokenError,
    NoStoredTokenError,
    RefreshError,
    TokenFileMissingError,
    TokenPersistError,
)
from pdcli.core.logging import get_logger

logger = get_logger(__name__)


class TokenSource(Protocol):
    """Anything able to produce a currently usable token."""

    def token(self) -> StoredToken: ...


class RefreshingTokenSource:
    """Refreshes the stored token with its refresh token.

    Every call performs a refresh grant; wrap it in a
    :class:`ReuseTokenSource` to only refresh once the token expired.
    """

    def __init__(
        self,
        oauth_type: OAuthType | None,
        client_id: str,
        client_secret: str,
        scopes: list[str] | tuple[str, ...],
        token_file: str | Path | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.client_id = client_id
        self.scopes = list(scopes)
        self.token_file = resolve_token_path(token_file)
        self._provider = OAuthProvider(
            oauth_type,
            client_id,
            client_secret,
            http_client=http_client,
        )

        try:
            stored = load_token(self.token_file)
        except TokenFileMissingError:
            raise NoStoredTokenError(
                f"No valid token found in {self.token_file}, run 'pd auth login' first"
            )

        if stored.client_id != client_id:
            raise ClientIDMismatchError(
                "Token was created with a different client ID, run 'pd auth login' again"
            )

        self.current = stored

    def token(self) -> StoredToken:
        """Refresh the held token and persist the result."""
        refresh_token = self.current.refresh_token
        if not refresh_token:
            raise NoRefreshTokenError("No refresh token available, run 'pd auth login' again")

        logger.debug("Refreshing OAuth access token")
        try:
            new_token = self._provider.refresh(refresh_token)
        except GrantError as e:
            raise RefreshError(
                f"Failed to refresh token: {e} (run 'pd auth login' to re-authenticate)"
            )

        try:
            new_token = save_token(self.token_file, new_token, self.client_id, self.scopes)
        except TokenPersistError as e:
            logger.warning(f"Failed to save refreshed token: {e}")

        self.current = new_token
        return new_token


class ReuseTokenSource:
    """Caches a token and asks the wrapped source only when it expired."""

    def __init__(self, initial: StoredToken | None, source: TokenSource):
        self._token = initial
        self._source = source
        self._lock = threading.Lock()

    def token(self) -> StoredToken:
        with self._lock:
            if self._token is not None and self._token.is_valid():
                return self._token
            self._token = self._source.token()
            return self._token


def new_auth_code_token_source(
    oauth_type: OAuthType | None,
    client_id: str,
    client_secret: str,
    scopes: list[str] | tuple[str, ...],
    token_file: str | Path | None = None,
    http_client: httpx.Client | None = None,
) -> ReuseTokenSource:
    """Token source for tokens obtained through ``pd auth login``."""
    source = RefreshingTokenSource(
        oauth_type,
        client_id,
        client_secret,
        scopes,
        token_file=token_file,
        http_client=http_client,
    )
    return ReuseTokenSource(source.current, source)
