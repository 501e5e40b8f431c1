"""Main CLI entry point for pd."""

import sys

import click
from rich.console import Console

from pdcli import __version__
from pdcli.auth.scopes import missing_oauth_fields, uses_oauth
from pdcli.auth.token_store import resolve_token_path
from pdcli.config import OAuthType, PdConfig, load_config
from pdcli.core.context import PdContext, pass_context
from pdcli.core.exceptions import ConfigError, PdError
from pdcli.core.logging import LogLevel
from pdcli.core.output import OutputFormat


CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help"],
    "max_content_width": 120,
}


def print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console = Console()
    console.print(f"pd version {__version__}")
    ctx.exit()


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--authtoken",
    envvar="PAGERDUTY_API_KEY",
    metavar="TOKEN",
    help="PagerDuty API authentication token (default: $PAGERDUTY_API_KEY)",
)
@click.option(
    "--loglevel",
    type=click.Choice([level.value for level in LogLevel], case_sensitive=False),
    help="Logging level",
)
@click.option(
    "-o",
    "--output",
    "output_format",
    type=click.Choice([fmt.value for fmt in OutputFormat], case_sensitive=False),
    help="Output format: json, yaml",
)
@click.option(
    "--oauth-type",
    type=click.Choice([t.value for t in OAuthType], case_sensitive=False),
    help="OAuth application type: classic or scoped",
)
@click.option("--client-id", metavar="ID", help="OAuth client ID")
@click.option("--client-secret", metavar="SECRET", help="OAuth client secret")
@click.option(
    "--scope",
    "scopes",
    multiple=True,
    metavar="SCOPE",
    help="OAuth scope (can be specified multiple times)",
)
@click.option("--token-file", metavar="PATH", help="OAuth token file (default: ~/.pd-token.json)")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    metavar="FILE",
    envvar="PD_CONFIG",
    help="Path to config file (default: ~/.pd.yml)",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.option(
    "--version",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit",
)
@click.pass_context
def cli(
    ctx: click.Context,
    authtoken: str | None,
    loglevel: str | None,
    output_format: str | None,
    oauth_type: str | None,
    client_id: str | None,
    client_secret: str | None,
    scopes: tuple[str, ...],
    token_file: str | None,
    config_file: str | None,
    quiet: bool,
    no_color: bool,
) -> None:
    """pd - PagerDuty command-line client.

    Authenticate with an API token or an OAuth app. Command-line values
    take precedence over the config file.

    \b
    Examples:
        pd --authtoken TOKEN ability list
        pd auth login --client-id ID --client-secret SECRET --scope read
        pd --oauth-type classic --client-id ID --client-secret SECRET --scope read ability list

    \b
    Configuration:
        ~/.pd.yml            User configuration
        PAGERDUTY_API_KEY    API token
    """
    try:
        overrides = PdConfig(
            authtoken=authtoken,
            loglevel=loglevel,
            output_format=output_format,
            oauth_type=oauth_type,
            client_id=client_id,
            client_secret=client_secret,
            scopes=scopes,
            token_file=token_file,
        )
        config = load_config(overrides, config_file)

        ctx.obj = PdContext(config=config, quiet=quiet, color=not no_color)

    except ConfigError as e:
        console = Console(stderr=True)
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)


def register_commands() -> None:
    """Register all command groups."""
    from pdcli.commands.auth import auth
    from pdcli.commands.ability import ability

    cli.add_command(auth)
    cli.add_command(ability)


register_commands()


@cli.command()
@pass_context
def config(ctx: PdContext) -> None:
    """Show current configuration."""
    cfg = ctx.config
    if uses_oauth(cfg):
        auth_mode = f"oauth ({cfg.oauth_type.value})" if cfg.oauth_type else "oauth"
    elif cfg.authtoken:
        auth_mode = "token"
    else:
        auth_mode = "none"

    config_data = {
        "auth": auth_mode,
        "has_authtoken": bool(cfg.authtoken),
        "loglevel": (cfg.loglevel or LogLevel.INFO).value,
        "output_format": ctx.output.format.value,
        "oauth": {
            "type": cfg.oauth_type.value if cfg.oauth_type else None,
            "client_id": cfg.client_id,
            "has_client_secret": bool(cfg.client_secret),
            "scopes": list(cfg.scopes),
            "token_file": str(resolve_token_path(cfg.token_file)),
            "missing": missing_oauth_fields(cfg),
        },
    }
    ctx.output.print_data(config_data)


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except PdError as e:
        console = Console(stderr=True)
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
