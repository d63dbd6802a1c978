"""Local callback listener for the CLI login flow.

:class:`CallbackListener` binds an ephemeral port on the loopback
interface and serves the redirect back from the IMS login site. Each
request is checked against the :class:`~ims_oauth.flow.pending.PendingLogin`
it was started for:

* ``OPTIONS`` -- CORS preflight, never settles the login.
* ``GET`` -- ``code``, ``code_type`` and a JSON ``state`` in the query
  string; the browser is redirected to the login site's success or error
  page.
* ``POST`` -- the same parameters as an URL-encoded form body; answered
  with a small JSON document the login site acts on.
* anything else -- ``405 Method Not Allowed``, never settles the login.

Every response carries CORS headers limited to the login site's origin.
The HTTP response is written before the login is settled so the browser
always gets its page, even when the caller tears the listener down
immediately afterwards.
"""

from __future__ import annotations

import json
import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Mapping, Optional, Union
from urllib.parse import parse_qs, urlparse

from ims_oauth.config import get_cli_env
from ims_oauth.exceptions import HTTPError, ImsOAuthError, TransportError
from ims_oauth.flow.pending import PendingLogin
from ims_oauth.flow.urls import login_error_url, login_success_url, provider_origin
from ims_oauth.models import CallbackResult, CodeType, Environment

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"
ALLOWED_METHODS = ("OPTIONS", "GET", "POST")
PROTOCOL_VERSION = 2
MAX_BODY_BYTES = 64 * 1024


def string_to_json(value: Optional[str]) -> dict[str, Any]:
    """Parse *value* as a JSON object, returning ``{}`` when that is not possible."""
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def code_transform(code: str, code_type: Optional[str]) -> Union[str, dict[str, Any]]:
    """Turn the callback ``code`` into the value the login resolves with.

    An ``access_token`` code is a JSON document (for example
    ``{"token": "...", "expiry": 123}``) and is decoded; any other code is
    an opaque authorization code and returned unchanged.

    Raises:
        TransportError: If an access token is not a JSON object.
    """
    if code_type != CodeType.ACCESS_TOKEN.value:
        return code
    try:
        token = json.loads(code)
    except ValueError as exc:
        raise TransportError(f"Malformed access token in callback: {exc}") from exc
    if not isinstance(token, dict):
        raise TransportError(
            f"Malformed access token in callback: expected an object, got {type(token).__name__}"
        )
    return token


def evaluate_callback(
    params: Mapping[str, str],
    expected_id: str,
) -> Union[CallbackResult, ImsOAuthError]:
    """Decide what a set of callback parameters means for a pending login.

    Args:
        params: Single-valued ``code``, ``code_type``, ``state`` (and
            possibly ``error``) parameters.
        expected_id: The session id of the pending login.

    Returns:
        A :class:`~ims_oauth.models.CallbackResult` when ``state.id``
        matches and a code is present, otherwise the error to reject the
        login with. Never raises.
    """
    code = params.get("code")
    raw_code_type = params.get("code_type")
    state = string_to_json(params.get("state"))

    if not code or state.get("id") != expected_id:
        if code and "id" in state:
            logger.debug("State id %r does not match %r", state.get("id"), expected_id)
        return HTTPError(code or params.get("error"))

    try:
        value = code_transform(code, raw_code_type)
    except TransportError as exc:
        return exc

    code_type = (
        CodeType.ACCESS_TOKEN
        if raw_code_type == CodeType.ACCESS_TOKEN.value
        else CodeType.AUTH_CODE
    )
    return CallbackResult(code=value, code_type=code_type, state=state)


def _single_values(params: Mapping[str, list[str]]) -> dict[str, str]:
    return {key: values[0] for key, values in params.items() if values}


class CallbackServer(HTTPServer):
    """Single-threaded HTTP server bound to one pending login."""

    def __init__(
        self,
        pending: PendingLogin,
        env: Environment,
        host: str = LOOPBACK_HOST,
        port: int = 0,
    ) -> None:
        self.pending = pending
        self.env = env
        self.origin = provider_origin(env)
        super().__init__((host, port), CallbackHandler)


class CallbackHandler(BaseHTTPRequestHandler):
    """Request handler implementing the callback protocol of the login site."""

    server: CallbackServer

    def do_OPTIONS(self) -> None:
        self.send_response(200)
        self._send_cors_headers()
        self.send_header("Access-Control-Allow-Methods", ", ".join(ALLOWED_METHODS))
        self.send_header("Access-Control-Allow-Headers", "*")
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self) -> None:
        params = _single_values(parse_qs(urlparse(self.path).query))
        outcome = evaluate_callback(params, self.server.pending.expected_id)

        if isinstance(outcome, CallbackResult):
            self._send_redirect(login_success_url(self.server.env))
        else:
            self._send_redirect(login_error_url(outcome.message, self.server.env))
        self._settle(outcome)

    def do_POST(self) -> None:
        outcome: Union[CallbackResult, ImsOAuthError]
        try:
            params = _single_values(parse_qs(self._read_body()))
        except TransportError as exc:
            outcome = exc
        else:
            outcome = evaluate_callback(params, self.server.pending.expected_id)

        if isinstance(outcome, CallbackResult):
            self._send_json(200, {
                "protocol_version": PROTOCOL_VERSION,
                "redirect": login_success_url(self.server.env),
                "error": False,
            })
        else:
            self._send_json(400, {
                "protocol_version": PROTOCOL_VERSION,
                "redirect": login_error_url(outcome.message, self.server.env),
                "error": True,
                "message": outcome.message,
            })
        self._settle(outcome)

    def __getattr__(self, name: str) -> Any:
        # BaseHTTPRequestHandler dispatches to do_<METHOD>; answer every
        # method without a handler of its own with 405.
        if name.startswith("do_"):
            return self._send_method_not_allowed
        raise AttributeError(name)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _settle(self, outcome: Union[CallbackResult, ImsOAuthError]) -> None:
        pending = self.server.pending
        if isinstance(outcome, CallbackResult):
            pending.resolve(outcome.code)
        else:
            pending.reject(outcome)

    def _read_body(self) -> str:
        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            raise TransportError("Invalid Content-Length in callback request") from None
        if length < 0 or length > MAX_BODY_BYTES:
            raise TransportError(f"Callback body of {length} bytes rejected")
        try:
            return self.rfile.read(length).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TransportError(f"Callback body is not valid UTF-8: {exc}") from exc

    def _send_cors_headers(self) -> None:
        self.send_header("Access-Control-Allow-Origin", self.server.origin)
        self.send_header("Vary", "Origin")

    def _send_redirect(self, location: str) -> None:
        self.send_response(302)
        self._send_cors_headers()
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _send_json(self, status: int, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self._send_cors_headers()
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_method_not_allowed(self) -> None:
        allowed = ", ".join(ALLOWED_METHODS)
        body = f"Method {self.command} not allowed. Supported methods: {allowed}\n".encode("utf-8")
        self.send_response(405)
        self._send_cors_headers()
        self.send_header("Allow", allowed)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)


class CallbackListener:
    """Owns the callback server and its serving thread for one login attempt.

    The server binds port 0 so concurrent attempts never share a port.
    :meth:`close` may be called from any thread, including the serving
    thread itself (a request handler settling the login), and only the
    first call has an effect.

    Args:
        pending: The login attempt this listener settles.
        env: IMS environment whose login site is trusted for CORS and
            redirects; defaults to the configured environment.
        host: Interface to bind; loopback by default.
        port: Port to bind; ``0`` picks a free ephemeral port.
    """

    def __init__(
        self,
        pending: PendingLogin,
        env: Optional[Union[str, Environment]] = None,
        host: str = LOOPBACK_HOST,
        port: int = 0,
    ) -> None:
        self.pending = pending
        self.env = get_cli_env(env)
        self._host = host
        self._port = port
        self._server: Optional[CallbackServer] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._closed = False
        self._stopped = threading.Event()

    @property
    def port(self) -> int:
        """The bound port. Only valid after :meth:`start`."""
        if self._server is None:
            raise RuntimeError("Callback listener has not been started")
        return self._server.server_address[1]

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> int:
        """Bind the port and start serving on a daemon thread.

        Returns:
            The bound port.

        Raises:
            TransportError: If the port cannot be bound.
        """
        try:
            self._server = CallbackServer(self.pending, self.env, self._host, self._port)
        except OSError as exc:
            self._stopped.set()
            raise TransportError(f"Could not start the login callback server: {exc}") from exc

        port = self.port
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.1},
            name=f"ims-oauth-callback-{port}",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Login callback server running at http://%s:%d/", self._host, port)
        return port

    def close(self) -> None:
        """Stop serving and release the port."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

        if self._server is None:
            self._stopped.set()
        elif threading.current_thread() is self._thread:
            # shutdown() waits for serve_forever() to return, which cannot
            # happen while this thread is still inside a request handler.
            threading.Thread(target=self._shutdown, daemon=True).start()
        else:
            self._shutdown()

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Block until the port is released. Returns ``False`` on timeout."""
        return self._stopped.wait(timeout)

    def _shutdown(self) -> None:
        assert self._server is not None
        try:
            self._server.shutdown()
            self._server.server_close()
        finally:
            self._stopped.set()
            logger.debug("Login callback server on port %d closed", self._server.server_address[1])
