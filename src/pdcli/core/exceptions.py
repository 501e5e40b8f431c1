"""Custom exceptions for pd."""

from typing import Any


class PdError(Exception):
    """Base exception for all pd errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigError(PdError):
    """Configuration-related errors."""

    pass


class IncompleteOAuthConfigError(ConfigError):
    """Some, but not all, of the OAuth settings were supplied."""

    def __init__(self, missing: list[str]):
        super().__init__(
            "Incomplete OAuth configuration, missing: " + ", ".join(missing)
        )
        self.missing = missing


class NoCredentialsError(ConfigError):
    """Neither an auth token nor an OAuth configuration is available."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No authentication token provided. Use --authtoken or configure OAuth "
            "(--oauth-type, --client-id, --client-secret, --scope)"
        )


class InvalidScopeError(ConfigError):
    """A scope does not belong to the vocabulary of the OAuth app type."""

    def __init__(self, scope: str, oauth_type: str, hint: str):
        super().__init__(f"invalid scope '{scope}' for {oauth_type} OAuth: {hint}")
        self.scope = scope
        self.oauth_type = oauth_type
        self.hint = hint


class AuthenticationError(PdError):
    """Authentication/authorization errors."""

    pass


class MissingOAuthCredentialsError(AuthenticationError):
    """Login was attempted without client id, secret or scopes."""

    pass


class ListenerBindError(AuthenticationError):
    """The local callback listener could not be started."""

    def __init__(self, port: int, reason: str):
        super().__init__(f"Failed to start local server on port {port}: {reason}")
        self.port = port


class BrowserLaunchError(AuthenticationError):
    """The system browser could not be opened."""

    pass


class OAuthProviderError(AuthenticationError):
    """The authorization server redirected back with an error."""

    def __init__(self, error: str, description: str | None = None):
        message = f"OAuth error: {error}"
        if description:
            message = f"{message} - {description}"
        super().__init__(message)
        self.error = error
        self.description = description


class AuthTimeoutError(AuthenticationError):
    """No callback arrived before the login deadline."""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            f"Authentication timed out after {timeout_seconds:g} seconds"
        )
        self.timeout_seconds = timeout_seconds


class TokenExchangeError(AuthenticationError):
    """Exchanging the authorization code for a token failed."""

    pass


class TokenPersistError(AuthenticationError):
    """The token file could not be written."""

    pass


class TokenFileMissingError(AuthenticationError):
    """The token file does not exist."""

    pass


class TokenFileCorruptError(AuthenticationError):
    """The token file exists but cannot be decoded."""

    pass


class NoStoredTokenError(AuthenticationError):
    """No token has been saved yet; the login flow must run first."""

    pass


class ClientIDMismatchError(AuthenticationError):
    """The stored token belongs to a different OAuth client."""

    pass


class NoRefreshTokenError(AuthenticationError):
    """The held token cannot be refreshed."""

    pass


class RefreshError(AuthenticationError):
    """The refresh grant failed."""

    pass


class PagerDutyError(PdError):
    """PagerDuty API errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
