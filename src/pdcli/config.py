"""Configuration management for pd using Pydantic."""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from pdcli.core.exceptions import ConfigError
from pdcli.core.logging import LogLevel, get_logger
from pdcli.core.output import OutputFormat

logger = get_logger(__name__)

CONFIG_FILENAME = ".pd.yml"


class OAuthType(str, Enum):
    """OAuth application families."""

    CLASSIC = "classic"
    SCOPED = "scoped"


class OAuthConfig(BaseModel):
    """OAuth application settings for one command invocation."""

    model_config = ConfigDict(frozen=True)

    application_type: OAuthType | None = None
    client_id: str | None = None
    client_secret: str | None = None
    scopes: tuple[str, ...] = ()
    token_file: str | None = None

    @property
    def effective_type(self) -> OAuthType:
        """Application type, defaulting to classic when unset."""
        return self.application_type or OAuthType.CLASSIC


class PdConfig(BaseModel):
    """Runtime configuration, merged from the config file and flags."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    authtoken: str | None = None
    loglevel: LogLevel | None = None
    output_format: OutputFormat | None = Field(
        default=None,
        validation_alias=AliasChoices("output_format", "outputformat"),
    )
    oauth_type: OAuthType | None = Field(
        default=None,
        validation_alias=AliasChoices("oauth_type", "oauth-type"),
    )
    client_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("client_id", "client-id"),
    )
    client_secret: str | None = Field(
        default=None,
        validation_alias=AliasChoices("client_secret", "client-secret"),
    )
    scopes: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("scopes", "scope"),
    )
    token_file: str | None = Field(
        default=None,
        validation_alias=AliasChoices("token_file", "token-file"),
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def normalize_scopes(cls, v: Any) -> tuple[str, ...]:
        """Accept a space separated string or a list, drop blanks and duplicates."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split()
        elif not isinstance(v, (list, tuple)):
            raise ValueError("scopes must be a string or a list")
        seen: dict[str, None] = {}
        for scope in v:
            scope = str(scope).strip()
            if scope:
                seen.setdefault(scope, None)
        return tuple(seen)

    @field_validator("loglevel", mode="before")
    @classmethod
    def normalize_loglevel(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.lower()
            if v == "warn":
                return LogLevel.WARNING
        return v

    def oauth_config(self) -> OAuthConfig:
        """Project the OAuth related fields."""
        return OAuthConfig(
            application_type=self.oauth_type,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.scopes,
            token_file=self.token_file,
        )


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, tuple, list)):
        return len(value) > 0
    return True


def merge_config(file_config: PdConfig, flag_config: PdConfig) -> PdConfig:
    """Merge flag values over file values.

    A flag only wins when it carries a value; empty flags never clear a
    value coming from the file.
    """
    merged = file_config.model_dump()
    for name, value in flag_config.model_dump().items():
        if _is_set(value):
            merged[name] = value
    return PdConfig.model_validate(merged)


class ConfigLoader:
    """Loads the user configuration file."""

    def load_file(self, config_file: str | Path | None = None) -> PdConfig:
        """Load the config file.

        An explicit ``config_file`` must exist. The default ``~/.pd.yml``
        is optional.
        """
        if config_file:
            path = Path(config_file).expanduser()
            if not path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
        else:
            path = self.default_path()
            if path is None or not path.exists():
                logger.debug("No config file found, using command-line values only")
                return PdConfig()

        data = self._load_yaml_file(path)
        try:
            return PdConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}")

    @staticmethod
    def default_path() -> Path | None:
        """Location of the per-user config file."""
        try:
            return Path.home() / CONFIG_FILENAME
        except RuntimeError as e:
            logger.debug(f"Cannot determine home directory: {e}")
            return None

    def _load_yaml_file(self, path: Path) -> dict[str, Any]:
        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")
        if not isinstance(content, dict):
            raise ConfigError(f"Invalid configuration in {path}: expected a mapping")
        return content


def load_config(
    overrides: PdConfig | dict[str, Any] | None = None,
    config_file: str | Path | None = None,
) -> PdConfig:
    """Load pd configuration.

    Args:
        overrides: Values given on the command line
        config_file: Optional explicit config file path

    Returns:
        Merged configuration
    """
    if overrides is None:
        overrides = PdConfig()
    elif isinstance(overrides, dict):
        overrides = PdConfig.model_validate(overrides)
    file_config = ConfigLoader().load_file(config_file)
    return merge_config(file_config, overrides)
