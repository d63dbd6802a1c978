"""Interactive CLI login: listener, browser, correlation and timeout in one call.

:func:`login` refuses to run under CI, starts a
:class:`~ims_oauth.flow.listener.CallbackListener` on an ephemeral
loopback port, sends the user to the IMS login site with the port and a
fresh session id, and blocks until the matching callback arrives or the
timeout fires. The listener's port is released before :func:`login`
returns, whichever way it returns.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from ims_oauth.config import get_cli_env
from ims_oauth.exceptions import CIUnsupportedError, ImsOAuthError, TransportError
from ims_oauth.flow.browser import open_url
from ims_oauth.flow.environment import is_ci
from ims_oauth.flow.listener import CallbackListener
from ims_oauth.flow.nonce import random_id
from ims_oauth.flow.pending import PendingLogin
from ims_oauth.flow.urls import auth_site_url
from ims_oauth.models import CliLoginConfig, SessionState
from ims_oauth.output import OutputManager, get_output

logger = logging.getLogger(__name__)

CLOSE_GRACE_SECONDS = 5.0


def login(
    config: CliLoginConfig,
    *,
    open_browser: Callable[..., Any] = open_url,
    ci_detector: Callable[[], bool] = is_ci,
    output: Optional[OutputManager] = None,
) -> Union[str, dict[str, Any]]:
    """Run the CLI login flow and return what the login site sent back.

    In bare mode only the login URL is written (to stdout); otherwise the
    URL goes to stderr with instructions and a spinner runs until the
    login settles.

    Args:
        config: CLI login settings (client id, scope, environment, timeout,
            bare output, browser handling, forced re-login).
        open_browser: Called as ``open_browser(url, app=config.browser)``
            unless ``config.open`` is false. A ``False`` return is reported
            as a warning and the login keeps waiting.
        ci_detector: Returns ``True`` when running under CI.
        output: Output manager; defaults to the global one.

    Returns:
        The authorization code, or the decoded access token when the
        login site answered with ``code_type=access_token``.

    Raises:
        CIUnsupportedError: Before any socket or browser is touched, when
            ``ci_detector()`` is true.
        ConfigError: If the environment is unknown.
        TransportError: If the listener cannot bind or a callback was
            unreadable.
        HTTPError: If a callback's state did not match or carried no code.
        LoginTimeoutError: If nothing valid arrived within the timeout.
    """
    if ci_detector():
        raise CIUnsupportedError()

    out = output or get_output()
    env = get_cli_env(config.env)
    session_id = random_id()
    pending = PendingLogin(session_id, timeout=config.timeout)
    listener = CallbackListener(pending, env)

    try:
        port = listener.start()
    except TransportError as exc:
        pending.reject(exc)
        raise
    pending.add_cleanup(listener.close)

    try:
        state = SessionState(
            id=session_id,
            port=port,
            client_id=config.client_id,
            scope=config.scope,
            redirect_uri=config.redirect_uri,
        )
        url = auth_site_url(state.query_params(), env, force_login=config.force_login)
        logger.debug("Login %s waiting on port %d", session_id, port)

        if config.bare:
            out.print_data(url)
        else:
            out.info("Visit this url to log in:")
            out.url(url)

        if config.open and open_browser(url, app=config.browser) is False:
            out.warning("Could not open a browser; open the url above to log in")

        return _wait(pending, out, bare=config.bare)
    finally:
        if not pending.done:
            pending.reject(TransportError("Login aborted"))
        if not listener.wait_closed(CLOSE_GRACE_SECONDS):
            logger.warning("Login callback server on port %d did not shut down", port)


def _wait(pending: PendingLogin, out: OutputManager, bare: bool) -> Union[str, dict[str, Any]]:
    if bare:
        return pending.wait()

    try:
        with out.status("Logging in"):
            result = pending.wait()
    except ImsOAuthError as exc:
        out.failure(f"Login failed: {exc.message}")
        raise
    out.success("Login successful")
    return result
