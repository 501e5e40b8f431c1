"""API clients for PagerDuty."""

from pdcli.clients.factory import build_client
from pdcli.clients.pagerduty import PagerDutyClient

__all__ = ["build_client", "PagerDutyClient"]
