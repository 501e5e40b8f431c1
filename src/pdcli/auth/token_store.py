"""Token persistence.

The token file is the single source of truth for OAuth credentials
across invocations. It records which client created the token so that
a token is never reused by another OAuth app.
"""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from pdcli.core.exceptions import TokenFileCorruptError, TokenFileMissingError, TokenPersistError
from pdcli.core.logging import get_logger

logger = get_logger(__name__)

TOKEN_FILENAME = ".pd-token.json"

# Tokens are considered expired slightly early to absorb clock skew
EXPIRY_DELTA = timedelta(seconds=10)


class StoredToken(BaseModel):
    """An OAuth token and the client it was issued to."""

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expiry: datetime | None = None
    client_id: str = ""
    scopes: list[str] = Field(default_factory=list)

    def is_valid(self, now: datetime | None = None) -> bool:
        """Whether the access token can be used without refreshing."""
        if not self.access_token:
            return False
        if self.expiry is None:
            return True
        now = now or datetime.now(timezone.utc)
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return expiry - EXPIRY_DELTA > now


def default_token_path() -> Path:
    """``~/.pd-token.json``, or the current directory without a home."""
    try:
        return Path.home() / TOKEN_FILENAME
    except RuntimeError as e:
        logger.warning(f"Failed to get home directory: {e}, using current directory")
        return Path(TOKEN_FILENAME)


def resolve_token_path(path: str | Path | None) -> Path:
    """Use the given path, falling back to the default location."""
    if path:
        return Path(path).expanduser()
    return default_token_path()


def save_token(
    path: str | Path,
    token: StoredToken,
    client_id: str,
    scopes: list[str] | tuple[str, ...],
) -> StoredToken:
    """Write the token, owned by ``client_id``, readable by the owner only.

    Any existing file is overwritten.
    """
    record = token.model_copy(update={"client_id": client_id, "scopes": list(scopes)})
    path = Path(path)
    data = record.model_dump_json(indent=2)

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(data)
        # os.open only applies the mode to new files
        os.chmod(path, 0o600)
    except OSError as e:
        raise TokenPersistError(f"Failed to write token file {path}: {e}")

    logger.debug(f"Saved token to {path}")
    return record


def load_token(path: str | Path) -> StoredToken:
    """Read a token written by :func:`save_token`.

    Raises:
        TokenFileMissingError: the file does not exist
        TokenFileCorruptError: the file cannot be read or parsed
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        raise TokenFileMissingError(f"Token file not found: {path}")
    except OSError as e:
        raise TokenFileCorruptError(f"Cannot read token file {path}: {e}")

    try:
        return StoredToken.model_validate_json(data)
    except ValidationError as e:
        raise TokenFileCorruptError(f"Failed to parse token file {path}: {e}")
