"""Login manager -- ordered registry and dispatcher for login flow plugins.

The :class:`LoginManager` keeps the registered
:class:`~ims_oauth.auth.base.LoginPlugin` instances in priority order and
hands a configuration mapping to the first one whose required fields are
all present. :func:`create_default_manager` returns a manager loaded with
the built-in flows.

See Also:
    :class:`~ims_oauth.auth.base.LoginPlugin` -- the plugin interface.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from ims_oauth.auth.base import LoginPlugin
from ims_oauth.exceptions import MissingPropertiesError
from ims_oauth.ims import ImsClient

logger = logging.getLogger(__name__)


class LoginManager:
    """Ordered registry of login flow plugins.

    Example::

        manager = LoginManager()
        manager.register(ServerToServerPlugin())
        manager.register(CliOAuthPlugin())
        token = manager.ims_login(config)

    Args:
        ims_factory: Builds the :class:`~ims_oauth.ims.ImsClient` for a
            login from the configured ``env`` value.
    """

    def __init__(self, ims_factory: Callable[[Any], ImsClient] = ImsClient) -> None:
        self._plugins: list[LoginPlugin] = []
        self._ims_factory = ims_factory

    def register(self, plugin: LoginPlugin) -> None:
        """Append *plugin*, replacing any plugin with the same flow type in place."""
        for i, existing in enumerate(self._plugins):
            if existing.flow_type == plugin.flow_type:
                self._plugins[i] = plugin
                return
        self._plugins.append(plugin)

    def get_plugin(self, flow_type: str) -> LoginPlugin:
        """Return the plugin registered for *flow_type*.

        Raises:
            KeyError: If no plugin handles *flow_type*.
        """
        for plugin in self._plugins:
            if plugin.flow_type == flow_type:
                return plugin
        available = ", ".join(self.list_types()) or "(none)"
        raise KeyError(f"No login plugin for flow '{flow_type}'. Available flows: {available}")

    def select(self, config: Optional[Mapping[str, Any]]) -> LoginPlugin:
        """Return the first plugin that supports *config*.

        Raises:
            MissingPropertiesError: If no plugin does; the error lists the
                keys missing for the closest match.
        """
        closest: Optional[list[str]] = None
        for plugin in self._plugins:
            missing = plugin.missing_keys(config)
            if not missing:
                logger.debug("Selected %s login flow", plugin.flow_type)
                return plugin
            if closest is None or len(missing) < len(closest):
                closest = missing
        raise MissingPropertiesError(closest or [])

    def ims_login(
        self,
        config: Mapping[str, Any],
        ims: Optional[ImsClient] = None,
    ) -> Any:
        """Select a flow for *config* and run it.

        Args:
            config: Configuration mapping for one login.
            ims: IMS client to use instead of one built from ``config["env"]``.

        Returns:
            Whatever the selected flow returns (code or token).
        """
        plugin = self.select(config)
        client = ims if ims is not None else self._ims_factory(config.get("env"))
        return plugin.ims_login(client, config)

    def list_types(self) -> list[str]:
        """Return the registered flow types in priority order."""
        return [plugin.flow_type for plugin in self._plugins]


def create_default_manager() -> LoginManager:
    """Create a :class:`LoginManager` loaded with the built-in flows.

    Priority order:

    - ``server_to_server`` -- client credentials, no user interaction.
    - ``browser`` -- browser-redirect OAuth2 through a login window.
    - ``cli`` -- CLI-hosted OAuth2 through the local callback listener.
    """
    from ims_oauth.plugins.browser_oauth import BrowserOAuthPlugin
    from ims_oauth.plugins.cli_oauth import CliOAuthPlugin
    from ims_oauth.plugins.server_to_server import ServerToServerPlugin

    manager = LoginManager()
    manager.register(ServerToServerPlugin())
    manager.register(BrowserOAuthPlugin())
    manager.register(CliOAuthPlugin())
    return manager
