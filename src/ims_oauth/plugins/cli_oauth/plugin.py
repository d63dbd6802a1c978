"""CLI OAuth plugin -- runs :func:`ims_oauth.flow.login.login`."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Union

from ims_oauth.auth.base import LoginPlugin
from ims_oauth.flow.browser import open_url
from ims_oauth.flow.environment import is_ci
from ims_oauth.flow.login import login
from ims_oauth.ims import ImsClient
from ims_oauth.models import CliLoginConfig


class CliOAuthPlugin(LoginPlugin):
    """Log in through the local callback listener.

    Requires only ``$cli.bare-output`` in the configuration, so it is the
    catch-all flow and should be registered last.

    Args:
        open_browser: Replaces :func:`~ims_oauth.flow.browser.open_url`.
        ci_detector: Replaces :func:`~ims_oauth.flow.environment.is_ci`.
    """

    config_model = CliLoginConfig

    def __init__(
        self,
        open_browser: Callable[..., Any] = open_url,
        ci_detector: Callable[[], bool] = is_ci,
    ) -> None:
        self._open_browser = open_browser
        self._ci_detector = ci_detector

    @property
    def flow_type(self) -> str:
        return "cli"

    def ims_login(
        self,
        ims: Optional[ImsClient],
        config: Mapping[str, Any],
    ) -> Union[str, dict[str, Any]]:
        """Return the authorization code (or token) from the login site.

        The code is not exchanged here; *ims* is unused because the login
        site performs the exchange when ``code_type=access_token``.
        """
        cli_config = self.can_support(config)
        assert isinstance(cli_config, CliLoginConfig)
        return login(
            cli_config,
            open_browser=self._open_browser,
            ci_detector=self._ci_detector,
        )
