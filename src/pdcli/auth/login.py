"""Browser based OAuth authorization-code login.

A loopback HTTP listener is started for a single login attempt. The
user authorizes in the browser, the provider redirects back to
``/callback`` and the first verdict (code, provider error or timeout)
ends the wait. The listener is always torn down once a verdict is in.
"""

import queue
import secrets
import socket
import threading
import webbrowser
from dataclasses import dataclass
from enum import Enum
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any, Callable
from urllib.parse import parse_qs, urlparse

import httpx

from pdcli.auth.provider import GrantError, OAuthProvider
from pdcli.auth.scopes import validate_scopes
from pdcli.auth.token_store import StoredToken, resolve_token_path, save_token
from pdcli.config import OAuthConfig
from pdcli.core.exceptions import (
    AuthTimeoutError,
    BrowserLaunchError,
    ListenerBindError,
    MissingOAuthCredentialsError,
    OAuthProviderError,
    TokenExchangeError,
    TokenPersistError,
)
from pdcli.core.logging import StructuredLogger
from pdcli.core.output import OutputFormatter

logger = StructuredLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT = 5 * 60
CALLBACK_PATH = "/callback"

SUCCESS_PAGE = (
    b"<html><body><h1>Authentication Successful!</h1>"
    b"<p>You can close this window and return to the terminal.</p></body></html>"
)
FAILURE_PAGE = (
    b"<html><body><h1>Authentication Failed</h1>"
    b"<p>You can close this window.</p></body></html>"
)


class FlowState(str, Enum):
    """Progress of a login attempt."""

    IDLE = "idle"
    LISTENER_STARTED = "listener_started"
    AWAITING_REDIRECT = "awaiting_redirect"
    CODE_RECEIVED = "code_received"
    ERROR_RECEIVED = "error_received"
    TIMED_OUT = "timed_out"
    EXCHANGING = "exchanging"
    PERSISTED = "persisted"
    EXCHANGE_FAILED = "exchange_failed"
    PERSIST_FAILED = "persist_failed"


class CallbackKind(str, Enum):
    CODE = "code"
    PROVIDER_ERROR = "provider_error"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of waiting for the redirect."""

    kind: CallbackKind
    code: str | None = None
    error: str | None = None
    description: str | None = None


class CallbackServer(HTTPServer):
    """Loopback server handing the first callback verdict to the waiting flow."""

    def __init__(self, host: str, port: int, state: str):
        # Same address the browser tries first for the redirect host.
        self.address_family = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)[0][0]
        super().__init__((host, port), CallbackHandler)
        self.expected_state = state
        self.results: "queue.Queue[CallbackResult]" = queue.Queue(maxsize=1)

    def offer(self, result: CallbackResult) -> bool:
        """Hand over a verdict; later ones are dropped."""
        try:
            self.results.put_nowait(result)
            return True
        except queue.Full:
            return False


class CallbackHandler(BaseHTTPRequestHandler):
    server_version = "pd-auth/1.0"
    server: CallbackServer

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path != CALLBACK_PATH:
            self.send_response(404)
            self.end_headers()
            return

        result = self._parse(parse_qs(parsed.query))
        self.server.offer(result)

        self.send_response(200)
        self.send_header("Content-Type", "text/html")
        self.end_headers()
        self.wfile.write(SUCCESS_PAGE if result.kind == CallbackKind.CODE else FAILURE_PAGE)

    def _parse(self, query: dict[str, list[str]]) -> CallbackResult:
        code = query.get("code", [""])[0]
        if code:
            state = query.get("state", [""])[0]
            if state != self.server.expected_state:
                return CallbackResult(
                    CallbackKind.PROVIDER_ERROR,
                    error="invalid_state",
                    description="state parameter does not match the login request",
                )
            return CallbackResult(CallbackKind.CODE, code=code)

        error = query.get("error", [""])[0]
        if error:
            return CallbackResult(
                CallbackKind.PROVIDER_ERROR,
                error=error,
                description=query.get("error_description", [""])[0] or None,
            )
        return CallbackResult(
            CallbackKind.PROVIDER_ERROR,
            error="missing_code",
            description="no authorization code received",
        )

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug(f"callback: {format % args}")


def open_browser(url: str) -> None:
    """Open ``url`` in the default browser.

    Raises:
        BrowserLaunchError: no browser could be started
    """
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        raise BrowserLaunchError(f"Failed to open browser: {e}")
    if not opened:
        raise BrowserLaunchError("No usable browser found")


class AuthorizationCodeFlow:
    """One interactive login attempt."""

    def __init__(
        self,
        oauth: OAuthConfig,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        host: str = DEFAULT_HOST,
        browser: Callable[[str], None] = open_browser,
        output: OutputFormatter | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.oauth = oauth
        self.port = port
        self.timeout = timeout
        self.host = host
        self.browser = browser
        self.output = output or OutputFormatter()
        self.http_client = http_client
        self.state = FlowState.IDLE
        self.redirect_url: str | None = None
        self.token_path: Path = resolve_token_path(oauth.token_file)
        self._log = logger.bind(oauth_type=oauth.effective_type.value)

    def _transition(self, state: FlowState) -> None:
        self._log.debug("Login state changed", previous=self.state.value, state=state.value)
        self.state = state

    def validate(self) -> None:
        """Check the settings needed before anything is started."""
        if not self.oauth.client_id or not self.oauth.client_secret:
            raise MissingOAuthCredentialsError("OAuth client-id and client-secret are required")
        if not self.oauth.scopes:
            raise MissingOAuthCredentialsError("At least one OAuth scope is required")
        validate_scopes(self.oauth.application_type, self.oauth.scopes)

    def run(self) -> StoredToken:
        """Authorize in the browser, exchange the code and persist the token."""
        self.validate()

        state = secrets.token_urlsafe(24)
        try:
            server = CallbackServer(self.host, self.port, state)
        except OSError as e:
            raise ListenerBindError(self.port, str(e))

        bound_port = server.server_address[1]
        self.redirect_url = f"http://localhost:{bound_port}{CALLBACK_PATH}"
        self._transition(FlowState.LISTENER_STARTED)

        thread = threading.Thread(target=server.serve_forever, name="pd-auth-callback", daemon=True)
        thread.start()

        provider = OAuthProvider(
            self.oauth.application_type,
            self.oauth.client_id or "",
            self.oauth.client_secret or "",
            redirect_url=self.redirect_url,
            http_client=self.http_client,
        )
        try:
            result = self._await_redirect(server, provider.authorization_url(state, self.oauth.scopes))
        finally:
            server.shutdown()
            server.server_close()
            thread.join()
            self._log.debug("Callback listener closed", port=bound_port)

        if result.kind == CallbackKind.TIMEOUT:
            self._transition(FlowState.TIMED_OUT)
            raise AuthTimeoutError(self.timeout)
        if result.kind == CallbackKind.PROVIDER_ERROR:
            self._transition(FlowState.ERROR_RECEIVED)
            raise OAuthProviderError(result.error or "unknown_error", result.description)

        self._transition(FlowState.CODE_RECEIVED)
        try:
            return self._exchange(provider, result.code or "")
        finally:
            if self.http_client is None:
                provider.close()

    def _await_redirect(self, server: CallbackServer, authorize_url: str) -> CallbackResult:
        self.output.print_info("Opening browser for authentication...")
        self.output.print(f"If the browser doesn't open, visit this URL:\n{authorize_url}\n")

        try:
            self.browser(authorize_url)
        except BrowserLaunchError as e:
            self.output.print_warning(f"{e}, open the URL above manually")

        self._transition(FlowState.AWAITING_REDIRECT)
        self.output.print_info("Waiting for authentication...")
        try:
            return server.results.get(timeout=self.timeout)
        except queue.Empty:
            return CallbackResult(CallbackKind.TIMEOUT)

    def _exchange(self, provider: OAuthProvider, code: str) -> StoredToken:
        self._transition(FlowState.EXCHANGING)
        try:
            token = provider.exchange_code(code)
        except GrantError as e:
            self._transition(FlowState.EXCHANGE_FAILED)
            raise TokenExchangeError(f"Failed to exchange code for token: {e}")

        try:
            record = save_token(
                self.token_path,
                token,
                self.oauth.client_id or "",
                self.oauth.scopes,
            )
        except TokenPersistError:
            self._transition(FlowState.PERSIST_FAILED)
            raise
        self._transition(FlowState.PERSISTED)
        self._log.info("Token saved", path=str(self.token_path))
        return record
