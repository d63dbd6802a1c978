"""Browser OAuth plugin -- authorization code flow through a login window.

The plugin asks IMS for the sign-in URL, opens it in a
:class:`~ims_oauth.flow.browser.WindowLauncher` that watches for the
redirect to ``callback_url``, and exchanges the code it reports for an
access token.
"""

from __future__ import annotations

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Mapping, Optional, Sequence

from ims_oauth.auth.base import LoginPlugin
from ims_oauth.exceptions import ConfigError, LoginTimeoutError
from ims_oauth.flow.browser import SubprocessLauncher, WindowLauncher
from ims_oauth.flow.nonce import random_id
from ims_oauth.ims import ImsClient
from ims_oauth.models import BrowserLoginConfig

logger = logging.getLogger(__name__)


def login_state() -> str:
    """Return a fresh ``state`` value for one authorize request."""
    return f"oauth-imslogin-{random_id()}"


class BrowserOAuthPlugin(LoginPlugin):
    """Log in through a dedicated login window.

    Args:
        launcher_factory: Builds the window launcher from the configured
            ``launcher_command``. Defaults to
            :class:`~ims_oauth.flow.browser.SubprocessLauncher`.
    """

    config_model = BrowserLoginConfig

    def __init__(
        self,
        launcher_factory: Optional[Callable[[Sequence[str]], WindowLauncher]] = None,
    ) -> None:
        self._launcher_factory = launcher_factory

    @property
    def flow_type(self) -> str:
        return "browser"

    def _launcher(self, config: BrowserLoginConfig) -> WindowLauncher:
        command = config.launcher_command or []
        if self._launcher_factory is not None:
            return self._launcher_factory(command)
        if not command:
            raise ConfigError(
                "The browser login flow needs 'launcher_command' to open a login window"
            )
        return SubprocessLauncher(command)

    def ims_login(self, ims: ImsClient, config: Mapping[str, Any]) -> dict[str, Any]:
        """Return the token response for the code the login window reports.

        Raises:
            LoginTimeoutError: If the window reports nothing within
                ``timeout`` seconds; the window is killed.
            AuthError: If the window reports an error or the token
                exchange fails.
            HTTPError: If the window echoes a different ``state``.
        """
        browser_config = self.can_support(config)
        assert isinstance(browser_config, BrowserLoginConfig)

        launcher = self._launcher(browser_config)
        state = login_state()
        url = ims.get_susi_url(
            browser_config.client_id,
            browser_config.scope,
            browser_config.callback_url,
            state,
        )
        logger.debug("Opening login window for %s", url)
        future = launcher.launch(url, browser_config.callback_url, browser_config.force, state)
        try:
            code = future.result(timeout=browser_config.timeout)
        except FutureTimeoutError as exc:
            launcher.terminate()
            raise LoginTimeoutError(browser_config.timeout) from exc

        return ims.get_access_token(
            code,
            browser_config.client_id,
            browser_config.client_secret,
            browser_config.scope,
        )
