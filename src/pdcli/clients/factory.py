"""Builds an authenticated PagerDuty client from the merged configuration."""

import httpx

from pdcli.auth.scopes import uses_oauth, validate_config
from pdcli.auth.token_source import new_auth_code_token_source
from pdcli.clients.pagerduty import OAuthTokenAuth, PagerDutyClient, StaticTokenAuth
from pdcli.config import OAuthType, PdConfig
from pdcli.core.logging import get_logger

logger = get_logger(__name__)


def build_client(
    config: PdConfig,
    http_client: httpx.Client | None = None,
    transport: httpx.BaseTransport | None = None,
) -> PagerDutyClient:
    """Create a client using OAuth when fully configured, else the API token.

    Classic and scoped apps differ only in their endpoints and scope
    vocabulary, the resulting client is the same.

    Args:
        config: Merged configuration
        http_client: HTTP client for the OAuth token endpoint
        transport: Transport for API requests

    Raises:
        ConfigError: the configuration yields no usable credential
        AuthenticationError: the stored OAuth token cannot be used
    """
    validate_config(config)

    if uses_oauth(config):
        oauth = config.oauth_config()
        source = new_auth_code_token_source(
            oauth.application_type,
            oauth.client_id or "",
            oauth.client_secret or "",
            oauth.scopes,
            token_file=oauth.token_file,
            http_client=http_client,
        )
        mode = "scoped" if oauth.application_type == OAuthType.SCOPED else "classic"
        logger.debug(f"Using {mode} OAuth app credentials")
        return PagerDutyClient(OAuthTokenAuth(source), transport=transport)

    logger.debug("Using API token credentials")
    return PagerDutyClient(StaticTokenAuth(config.authtoken or ""), transport=transport)
