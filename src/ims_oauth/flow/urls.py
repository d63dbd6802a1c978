"""Login-site URLs for each IMS environment.

The CLI login site (:data:`IMS_CLI_OAUTH_URL`) hosts the page the user is
sent to, plus the ``/login-success`` and ``/error`` pages the callback
listener redirects the browser to afterwards. :func:`auth_site_url` builds
the outbound URL; with ``force_login`` it wraps that URL in an IMS logout
so the user has to sign in again.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union
from urllib.parse import urlencode, urlsplit

from ims_oauth.config import get_cli_env, parse_env
from ims_oauth.models import Environment

IMS_CLI_OAUTH_URL: dict[Environment, str] = {
    Environment.PROD: "https://aio-login.adobeioruntime.net/api/v1/web/default/applogin",
    Environment.STAGE: "https://aio-login.adobeioruntime.net/api/v1/web/default/applogin-stage",
}

IMS_LOGOUT_URL: dict[Environment, str] = {
    Environment.PROD: "https://ims-na1.adobelogin.com/ims/logout/v1",
    Environment.STAGE: "https://ims-na1-stg1.adobelogin.com/ims/logout/v1",
}

EnvLike = Optional[Union[str, Environment]]


def _resolve(env: EnvLike) -> Environment:
    if env is None:
        return get_cli_env()
    return parse_env(env)


def get_ims_cli_oauth_url(env: EnvLike = None) -> str:
    """Return the CLI login site for *env*, or for the configured environment."""
    return IMS_CLI_OAUTH_URL[_resolve(env)]


def provider_origin(env: EnvLike = None) -> str:
    """Return ``scheme://host`` of the login site, the only origin allowed by CORS."""
    parts = urlsplit(get_ims_cli_oauth_url(env))
    return f"{parts.scheme}://{parts.netloc}"


def _with_query(base: str, params: Mapping[str, Any]) -> str:
    query = urlencode(
        [(key, _render(value)) for key, value in params.items() if value is not None]
    )
    if not query:
        return base
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{query}"


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def auth_site_url(
    query_params: Mapping[str, Any],
    env: EnvLike = None,
    force_login: bool = False,
) -> str:
    """Construct the login-site URL with *query_params*.

    Parameters whose value is ``None`` are left out entirely; the rest keep
    the order in which they were supplied.

    Args:
        query_params: Parameters such as ``id``, ``port``, ``client_id``,
            ``scope`` and ``redirect_uri``.
        env: IMS environment; defaults to :func:`~ims_oauth.config.get_cli_env`.
        force_login: Return the IMS logout URL instead, redirecting to the
            normal login URL once the existing session is gone.

    Returns:
        An absolute URL.

    Raises:
        ConfigError: If *env* is not a known environment.
    """
    resolved = _resolve(env)
    url = _with_query(IMS_CLI_OAUTH_URL[resolved], query_params)
    if force_login:
        return _with_query(IMS_LOGOUT_URL[resolved], {"redirect_uri": url})
    return url


def login_success_url(env: EnvLike = None) -> str:
    """Page the browser lands on after a successful callback."""
    return f"{get_ims_cli_oauth_url(env)}/login-success"


def login_error_url(message: str, env: EnvLike = None) -> str:
    """Page the browser lands on after a failed callback, showing *message*."""
    return _with_query(f"{get_ims_cli_oauth_url(env)}/error", {"message": message})
