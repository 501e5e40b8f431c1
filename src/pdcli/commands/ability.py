"""Ability commands."""

import click

from pdcli.core.context import PdContext, pass_context
from pdcli.core.exceptions import PdError


@click.group()
def ability() -> None:
    """Account abilities.

    \b
    Examples:
        pd ability list
        pd ability test teams
    """
    pass


@ability.command("list")
@pass_context
def list_abilities(ctx: PdContext) -> None:
    """List the abilities of your account."""
    try:
        abilities = ctx.pagerduty.list_abilities()
    except PdError as e:
        ctx.output.print_error(f"Failed to list abilities: {e}")
        raise click.Abort()

    ctx.output.print_data(abilities)


@ability.command("test")
@click.argument("name")
@pass_context
def test_ability(ctx: PdContext, name: str) -> None:
    """Check whether your account has an ability."""
    try:
        available = ctx.pagerduty.test_ability(name)
    except PdError as e:
        ctx.output.print_error(f"Failed to test ability: {e}")
        raise click.Abort()

    if not available:
        ctx.output.print_error(f"Your account does not have the '{name}' ability")
        raise click.exceptions.Exit(1)

    ctx.output.print_success(f"Your account has the '{name}' ability")
