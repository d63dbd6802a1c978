"""Browser collaborators used by the login flows.

* :func:`open_url` opens the login URL in the system browser (or in a
  named browser application) for the CLI flow.
* :class:`SubprocessLauncher` drives a dedicated login window for the
  browser-redirect flow: a helper program loads the login page, watches
  for the redirect to the registered callback URL and reports the
  authorization code on stdout.

Launcher contract (argv and streams)::

    <command...> <auth_url> <callback_url> <force:true|false>

    exit 0, stdout: {"code": "...", "state": "<echoed state>"}
    exit 1, stderr: {"message": "...", "state": "..."}
"""

from __future__ import annotations

import logging
import subprocess
import threading
import webbrowser
from concurrent.futures import Future
from typing import Optional, Protocol, Sequence

from ims_oauth.exceptions import AuthError, HTTPError, TransportError
from ims_oauth.flow.listener import string_to_json

logger = logging.getLogger(__name__)


def open_url(url: str, app: Optional[str] = None) -> bool:
    """Open *url* in a browser without blocking the caller.

    Args:
        url: The URL to open.
        app: Browser name known to :mod:`webbrowser` (e.g. ``"firefox"``)
            or a command line containing ``%s``; ``None`` uses the default.

    Returns:
        ``False`` if the requested browser is not available, ``True``
        once the open has been handed to a background thread.
    """
    try:
        controller = webbrowser.get(app) if app else webbrowser.get()
    except webbrowser.Error as exc:
        logger.warning("Cannot open browser %r: %s", app, exc)
        return False

    threading.Thread(target=controller.open, args=(url,), daemon=True).start()
    return True


class WindowLauncher(Protocol):
    """A login window the browser-redirect flow can launch and terminate."""

    def launch(
        self,
        auth_url: str,
        callback_url: str,
        force: bool = False,
        state: Optional[str] = None,
    ) -> "Future[str]":
        ...

    def terminate(self) -> None:
        ...


class SubprocessLauncher:
    """Run an external login-window program and collect its result.

    Args:
        command: The program and leading arguments, e.g.
            ``["electron", "/opt/ims-login-window"]``.
    """

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise TransportError("Login window command is empty")
        self.command = list(command)
        self._process: Optional[subprocess.Popen[str]] = None

    def launch(
        self,
        auth_url: str,
        callback_url: str,
        force: bool = False,
        state: Optional[str] = None,
    ) -> "Future[str]":
        """Start the login window.

        When *state* is given, the window must echo it back with the code.

        Returns:
            A future resolving to the authorization code, or failing with
            :class:`~ims_oauth.exceptions.AuthError` carrying the reason
            the window reported (including the user closing it), or with
            :class:`~ims_oauth.exceptions.HTTPError` when the echoed state
            does not match.

        Raises:
            TransportError: If the program cannot be started.
        """
        future: Future[str] = Future()
        future.set_running_or_notify_cancel()
        args = [*self.command, auth_url, callback_url, "true" if force else "false"]
        try:
            process = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
            )
        except OSError as exc:
            raise TransportError(f"Could not launch login window {self.command[0]}: {exc}") from exc

        self._process = process
        threading.Thread(target=self._collect, args=(process, future, state), daemon=True).start()
        return future

    def terminate(self) -> None:
        """Kill the login window if it is still running."""
        process, self._process = self._process, None
        if process is not None and process.poll() is None:
            process.kill()

    def _collect(
        self,
        process: "subprocess.Popen[str]",
        future: "Future[str]",
        state: Optional[str],
    ) -> None:
        stdout, stderr = process.communicate()
        logger.debug("Login window exited with status %s", process.returncode)
        if process.returncode == 0:
            result = string_to_json(stdout)
            code = result.get("code")
            if not code:
                future.set_exception(AuthError("No authorization code received from the login window"))
            elif state is not None and result.get("state") != state:
                logger.debug("Login window state %r does not match %r", result.get("state"), state)
                future.set_exception(HTTPError(code))
            else:
                future.set_result(code)
            return

        message = (
            string_to_json(stderr).get("message")
            or stderr.strip()
            or f"Login window exited with status {process.returncode}"
        )
        future.set_exception(AuthError(message))
