"""Authentication commands."""

import click

from pdcli.auth.login import DEFAULT_PORT, AuthorizationCodeFlow
from pdcli.config import PdConfig, merge_config
from pdcli.core.context import PdContext, pass_context
from pdcli.core.exceptions import PdError


@click.group()
def auth() -> None:
    """Authenticate with PagerDuty.

    \b
    Examples:
        pd auth login --client-id ID --client-secret SECRET --scope read
        pd --oauth-type scoped auth login --scope incidents.read
    """
    pass


@auth.command("login")
@click.option("--client-id", default=None, help="OAuth client ID (required)")
@click.option("--client-secret", default=None, help="OAuth client secret (required)")
@click.option(
    "--scope",
    "scopes",
    multiple=True,
    help="OAuth scope (can be specified multiple times)",
)
@click.option(
    "--token-file",
    default=None,
    help="Path to store OAuth token (defaults to ~/.pd-token.json)",
)
@click.option(
    "--port",
    type=click.IntRange(0, 65535),
    default=DEFAULT_PORT,
    show_default=True,
    help="Local port for OAuth callback",
)
@pass_context
def login(
    ctx: PdContext,
    client_id: str | None,
    client_secret: str | None,
    scopes: tuple[str, ...],
    token_file: str | None,
    port: int,
) -> None:
    """Authenticate with PagerDuty using OAuth.

    Opens a browser for you to log in and authorize the application.
    """
    config = merge_config(
        ctx.config,
        PdConfig(
            client_id=client_id,
            client_secret=client_secret,
            scopes=scopes,
            token_file=token_file,
        ),
    )
    flow = AuthorizationCodeFlow(config.oauth_config(), port=port, output=ctx.output)

    try:
        flow.run()
    except PdError as e:
        ctx.output.print_error(str(e))
        raise click.Abort()

    ctx.output.print_success(f"Authentication successful! Token saved to {flow.token_path}")
