"""OAuth scope vocabularies and configuration validation."""

from enum import Enum
from typing import Iterable

from pdcli.config import OAuthType, PdConfig
from pdcli.core.exceptions import IncompleteOAuthConfigError, InvalidScopeError, NoCredentialsError


class ClassicScope(str, Enum):
    """Scopes for Classic OAuth apps.

    Classic apps only know two broad permission levels which apply to
    every resource the authenticated user can reach.
    """

    READ = "read"
    WRITE = "write"

    def __str__(self) -> str:
        return self.value


CLASSIC_SCOPES = frozenset(s.value for s in ClassicScope)

# Scoped apps may ask for an OpenID identity and account-bound scopes
OPENID_SCOPE = "openid"
ACCOUNT_SCOPE_PREFIX = "as_account-"


def classic_scopes_to_strings(scopes: Iterable[ClassicScope]) -> list[str]:
    """Convert classic scopes to plain strings."""
    return [str(s) for s in scopes]


def validate_classic_scopes(scopes: Iterable[str]) -> None:
    """Reject anything other than ``read`` and ``write``."""
    for scope in scopes:
        if scope not in CLASSIC_SCOPES:
            raise InvalidScopeError(
                scope,
                "Classic",
                "Classic OAuth only supports 'read' and 'write' scopes",
            )


def validate_scoped_scopes(scopes: Iterable[str]) -> None:
    """Require ``resource.permission`` style scopes."""
    for scope in scopes:
        if scope in CLASSIC_SCOPES:
            raise InvalidScopeError(
                scope,
                "Scoped",
                "Use granular scopes like 'incidents.read' or 'services.write' for Scoped OAuth apps",
            )

        if scope.startswith(ACCOUNT_SCOPE_PREFIX) or scope == OPENID_SCOPE:
            continue

        if "." not in scope:
            raise InvalidScopeError(
                scope,
                "Scoped",
                "Scoped OAuth scopes should follow the pattern 'resource.permission' "
                "(e.g., 'incidents.read')",
            )


def validate_scopes(oauth_type: OAuthType | None, scopes: Iterable[str]) -> None:
    """Validate scopes against the vocabulary of the application type.

    An unset type is treated as classic.
    """
    if oauth_type == OAuthType.SCOPED:
        validate_scoped_scopes(scopes)
    else:
        validate_classic_scopes(scopes)


def missing_oauth_fields(config: PdConfig) -> list[str]:
    """Names of the OAuth flags that have no value."""
    fields = {
        "oauth-type": config.oauth_type,
        "client-id": config.client_id,
        "client-secret": config.client_secret,
        "scope": config.scopes,
    }
    return [name for name, value in fields.items() if not value]


def uses_oauth(config: PdConfig) -> bool:
    """True when the OAuth configuration is complete."""
    return not missing_oauth_fields(config)


def validate_config(config: PdConfig) -> None:
    """Check that the configuration yields exactly one usable credential.

    Raises:
        IncompleteOAuthConfigError: some but not all OAuth settings present
        NoCredentialsError: no auth token and no OAuth settings
        InvalidScopeError: a scope does not fit the OAuth app type
    """
    missing = missing_oauth_fields(config)
    if not missing:
        validate_scopes(config.oauth_type, config.scopes)
        return

    if len(missing) < 4:
        raise IncompleteOAuthConfigError(missing)

    if not config.authtoken:
        raise NoCredentialsError()
