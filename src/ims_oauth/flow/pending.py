"""Single-resolution correlator for one in-flight login attempt.

A :class:`PendingLogin` is created per login attempt and shared by the
callback listener (which resolves or rejects it), the timeout timer (which
times it out) and the caller (which waits on it). Exactly one of those
transitions wins; every later one is a no-op. The winning transition
cancels the timer and runs the registered cleanup callbacks, normally the
listener's ``close()``, exactly once.

Example::

    pending = PendingLogin(expected_id="1a2b3c4d", timeout=120)
    pending.add_cleanup(listener.close)
    code = pending.wait()
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Optional

from ims_oauth.exceptions import LoginTimeoutError
from ims_oauth.models import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class LoginState(str, enum.Enum):
    """Lifecycle of a :class:`PendingLogin`. Every state but ``PENDING`` is terminal."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"


class PendingLogin:
    """Outcome slot, timeout timer and cleanup registry for one login attempt.

    The timer starts as soon as the object is constructed. The listener
    thread and the timer thread may race to settle the login, so every
    transition is taken under a lock; the cleanup callbacks run outside it.

    Args:
        expected_id: The session id a callback's ``state.id`` must match.
        timeout: Seconds to wait for a callback before timing out.
    """

    def __init__(
        self,
        expected_id: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.expected_id = expected_id
        self.timeout = timeout
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._state = LoginState.PENDING
        self._value: Any = None
        self._error: Optional[BaseException] = None
        self._cleanups: list[Callable[[], None]] = []
        self._timer = threading.Timer(timeout, self.time_out)
        self._timer.daemon = True
        self._timer.start()

    @property
    def state(self) -> LoginState:
        return self._state

    @property
    def done(self) -> bool:
        """Whether the login reached a terminal state."""
        return self._state is not LoginState.PENDING

    def add_cleanup(self, callback: Callable[[], None]) -> None:
        """Register *callback* to run once the login settles.

        Runs *callback* immediately when the login has already settled.
        """
        with self._lock:
            if self._state is LoginState.PENDING:
                self._cleanups.append(callback)
                return
        self._run_cleanup(callback)

    def resolve(self, value: Any) -> bool:
        """Settle the login successfully with *value* (a code or token).

        Returns:
            ``True`` if this call settled the login, ``False`` if it was
            already settled.
        """
        return self._settle(LoginState.RESOLVED, value=value)

    def reject(self, error: BaseException) -> bool:
        """Settle the login with *error*. Returns ``True`` if this call settled it."""
        return self._settle(LoginState.REJECTED, error=error)

    def time_out(self) -> bool:
        """Settle the login with a :class:`~ims_oauth.exceptions.LoginTimeoutError`."""
        return self._settle(LoginState.TIMED_OUT, error=LoginTimeoutError(self.timeout))

    def wait(self, timeout: Optional[float] = None) -> Any:
        """Block until the login settles and return its value.

        Args:
            timeout: Optional bound on the wait, independent of the login
                timeout. ``None`` waits for the login's own timer.

        Returns:
            The value passed to :meth:`resolve`.

        Raises:
            The error the login was rejected with, or
            :class:`~ims_oauth.exceptions.LoginTimeoutError`.
            ``TimeoutError`` if *timeout* elapses first.
        """
        if not self._done.wait(timeout):
            raise TimeoutError("Login still pending")
        if self._error is not None:
            raise self._error
        return self._value

    def _settle(
        self,
        state: LoginState,
        value: Any = None,
        error: Optional[BaseException] = None,
    ) -> bool:
        with self._lock:
            if self._state is not LoginState.PENDING:
                logger.debug(
                    "Ignoring %s for login %s: already %s",
                    state.value, self.expected_id, self._state.value,
                )
                return False
            self._state = state
            self._value = value
            self._error = error
            cleanups, self._cleanups = self._cleanups, []

        logger.debug("Login %s %s", self.expected_id, state.value)
        self._timer.cancel()
        for callback in cleanups:
            self._run_cleanup(callback)
        self._done.set()
        return True

    def _run_cleanup(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Cleanup for login %s failed", self.expected_id)
