"""The CLI login flow: correlation ids, login-site URLs, callback listener and orchestrator.

Components, leaves first:

- :func:`random_id` -- unguessable per-attempt session id.
- :func:`auth_site_url` -- outbound login-site URL, optionally wrapped in
  an IMS logout to force a fresh sign-in.
- :class:`CallbackListener` -- loopback HTTP server answering the login
  site's redirect or POST back.
- :class:`PendingLogin` -- single-resolution outcome slot with the
  timeout timer and cleanup registry.
- :func:`login` -- wires the above together with the browser and the
  terminal output.

Typical usage::

    from ims_oauth.flow import login
    from ims_oauth.models import CliLoginConfig

    code = login(CliLoginConfig(bare=False, client_id="my-client", scope="openid"))
"""

from ims_oauth.flow.browser import SubprocessLauncher, WindowLauncher, open_url
from ims_oauth.flow.environment import is_ci
from ims_oauth.flow.listener import CallbackListener, code_transform, string_to_json
from ims_oauth.flow.login import login
from ims_oauth.flow.nonce import random_id
from ims_oauth.flow.pending import LoginState, PendingLogin
from ims_oauth.flow.urls import (
    IMS_CLI_OAUTH_URL,
    IMS_LOGOUT_URL,
    auth_site_url,
    get_ims_cli_oauth_url,
)

__all__ = [
    "IMS_CLI_OAUTH_URL",
    "IMS_LOGOUT_URL",
    "CallbackListener",
    "LoginState",
    "PendingLogin",
    "SubprocessLauncher",
    "WindowLauncher",
    "auth_site_url",
    "code_transform",
    "get_ims_cli_oauth_url",
    "is_ci",
    "login",
    "open_url",
    "random_id",
    "string_to_json",
]
