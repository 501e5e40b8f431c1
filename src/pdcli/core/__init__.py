"""Core utilities and shared components for pd."""

# Note: Import context lazily to avoid circular imports
# Use: from pdcli.core.context import PdContext, pass_context
from pdcli.core.exceptions import PdError, ConfigError, AuthenticationError, PagerDutyError
from pdcli.core.output import OutputFormatter

__all__ = [
    "PdError",
    "ConfigError",
    "AuthenticationError",
    "PagerDutyError",
    "OutputFormatter",
]
