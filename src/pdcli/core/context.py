"""Click context object for sharing state across commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pdcli.config import PdConfig
from pdcli.core.logging import LogLevel, setup_logging
from pdcli.core.output import OutputFormat, OutputFormatter

if TYPE_CHECKING:
    from pdcli.clients.pagerduty import PagerDutyClient


class PdContext:
    """Shared context object for pd commands.

    Holds the merged configuration of one invocation. The API client is
    resolved lazily so that commands which do not talk to the API, such
    as ``pd auth login``, never need credentials.
    """

    def __init__(
        self,
        config: PdConfig | None = None,
        quiet: bool = False,
        color: bool = True,
    ):
        self._config = config or PdConfig()
        setup_logging(self._config.loglevel or LogLevel.INFO, rich_output=color)

        self._output = OutputFormatter(
            format=self._config.output_format or OutputFormat.YAML,
            color=color,
            quiet=quiet,
        )

        self._pagerduty_client: PagerDutyClient | None = None

    @property
    def config(self) -> PdConfig:
        """Get the merged configuration."""
        return self._config

    @property
    def output(self) -> OutputFormatter:
        """Get the output formatter."""
        return self._output

    @property
    def pagerduty(self) -> "PagerDutyClient":
        """Get or create the authenticated PagerDuty client."""
        if self._pagerduty_client is None:
            from pdcli.clients.factory import build_client

            self._pagerduty_client = build_client(self._config)
        return self._pagerduty_client


# Click decorator for passing context
pass_context = click.make_pass_decorator(PdContext, ensure=True)
