"""Pytest fixtures for pd tests."""

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Generator
from urllib.parse import parse_qs

import httpx
import pytest
from click.testing import CliRunner

from pdcli.config import OAuthConfig, OAuthType, PdConfig


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Isolate tests from the user's environment and home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in ("PAGERDUTY_API_KEY", "PD_CONFIG"):
        monkeypatch.delenv(var, raising=False)
    yield home


@pytest.fixture
def home_dir(clean_env: Path) -> Path:
    return clean_env


@pytest.fixture
def token_file(tmp_path: Path) -> Path:
    return tmp_path / "token.json"


@pytest.fixture
def classic_oauth(token_file: Path) -> OAuthConfig:
    return OAuthConfig(
        application_type=OAuthType.CLASSIC,
        client_id="client-123",
        client_secret="secret-456",
        scopes=("read", "write"),
        token_file=str(token_file),
    )


@pytest.fixture
def oauth_pd_config(token_file: Path) -> PdConfig:
    return PdConfig(
        oauth_type=OAuthType.CLASSIC,
        client_id="client-123",
        client_secret="secret-456",
        scopes=("read",),
        token_file=str(token_file),
    )


def write_token_file(path: Path, **overrides: Any) -> dict[str, Any]:
    """Write a token file the way ``pd auth login`` does."""
    record: dict[str, Any] = {
        "access_token": "access-abc",
        "token_type": "Bearer",
        "refresh_token": "refresh-xyz",
        "expiry": (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat(),
        "client_id": "client-123",
        "scopes": ["read", "write"],
    }
    record.update(overrides)
    path.write_text(json.dumps(record))
    os.chmod(path, 0o600)
    return record


class TokenEndpoint:
    """Fake OAuth token endpoint recording every grant request."""

    def __init__(self, status_code: int = 200, payload: dict[str, Any] | None = None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {
            "access_token": "new-access",
            "refresh_token": "new-refresh",
            "token_type": "bearer",
            "expires_in": 3600,
        }
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def forms(self) -> list[dict[str, str]]:
        return [
            {k: v[0] for k, v in parse_qs(r.content.decode()).items()}
            for r in self.requests
        ]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint()


@pytest.fixture
def make_token_endpoint() -> Callable[..., TokenEndpoint]:
    return TokenEndpoint


@pytest.fixture
def write_token() -> Callable[..., dict[str, Any]]:
    return write_token_file
