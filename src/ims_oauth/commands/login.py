"""Login command -- obtain an IMS authorization code or access token.

``ims-oauth login`` collects the settings of every supported flow from
its options into one configuration mapping and hands it to the login
registry, which runs the first flow whose required settings are present:

* ``server_to_server`` when client id, client secret, technical account
  and organization are given;
* ``browser`` when a callback URL, client id, client secret and scope are
  given;
* ``cli`` otherwise (always eligible).

``--flow`` skips the selection and runs the named flow.

Typical usage::

    ims-oauth login                               # CLI flow, prints the code
    ims-oauth login --bare --no-open              # script-friendly
    ims-oauth login --client-id c --client-secret env:SECRET \\
        --technical-account-id t --technical-account-email t@x \\
        --ims-org-id o --scope openid,AdobeID    # server-to-server token
"""

from __future__ import annotations

import shlex
from typing import Any, Optional

import typer

from ims_oauth.exceptions import CIUnsupportedError, ImsOAuthError
from ims_oauth.output import error, format_response, suggest


def build_login_config(
    *,
    env: Optional[str] = None,
    bare: bool = False,
    timeout: Optional[int] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    scope: Optional[str] = None,
    redirect_uri: Optional[str] = None,
    open_browser: bool = True,
    browser: Optional[str] = None,
    force_login: bool = False,
    callback_url: Optional[str] = None,
    launcher_command: Optional[str] = None,
    technical_account_id: Optional[str] = None,
    technical_account_email: Optional[str] = None,
    ims_org_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build the flow configuration mapping from command-line values.

    Unset values are left out so that the registry sees them as missing.
    ``timeout`` and ``browser`` fall back to the global configuration.
    *client_secret* is a credential source (``env:VAR``, ``file:/path`` or
    ``prompt``) and is resolved here.

    Raises:
        ConfigError: If the client secret source cannot be resolved.
    """
    from ims_oauth.config import load_global_config, resolve_credential

    global_config = load_global_config()
    config: dict[str, Any] = {
        "$cli.bare-output": bare,
        "timeout": timeout if timeout is not None else global_config.timeout,
        "open": open_browser,
        "force_login": force_login,
        "force": force_login,
    }
    if env:
        config["env"] = env
    if browser or global_config.browser:
        config["browser"] = browser or global_config.browser

    if client_id:
        config["client_id"] = client_id
    if scope:
        config["scope"] = scope
        config["scopes"] = [s.strip() for s in scope.split(",") if s.strip()]
    if redirect_uri:
        config["redirect_uri"] = redirect_uri
    if callback_url:
        config["callback_url"] = callback_url
    if launcher_command:
        config["launcher_command"] = shlex.split(launcher_command)
    if technical_account_id:
        config["technical_account_id"] = technical_account_id
    if technical_account_email:
        config["technical_account_email"] = technical_account_email
    if ims_org_id:
        config["ims_org_id"] = ims_org_id

    if client_secret:
        secret = resolve_credential(client_secret)
        config["client_secret"] = secret
        config["client_secrets"] = [secret]

    return config


def login_command(
    env: Optional[str] = typer.Option(
        None, "--env", "-e", help="IMS environment: prod or stage."
    ),
    flow: Optional[str] = typer.Option(
        None, "--flow", help="Run this flow instead of picking one: cli, browser, server_to_server."
    ),
    bare: bool = typer.Option(
        False, "--bare", help="Print only the login URL and the result."
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", "-t", min=1, help="Seconds to wait for the login."
    ),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="OAuth client id."),
    client_secret: Optional[str] = typer.Option(
        None,
        "--client-secret",
        help="Client secret source: env:VAR, file:/path, or 'prompt'.",
    ),
    scope: Optional[str] = typer.Option(
        None, "--scope", "-s", help="Scope; comma-separated for server-to-server."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Redirect URI passed to the login site."
    ),
    open_browser: bool = typer.Option(
        True, "--open/--no-open", help="Open the login URL in a browser."
    ),
    browser: Optional[str] = typer.Option(
        None, "--browser", help="Browser application to open the URL with."
    ),
    force_login: bool = typer.Option(
        False, "--force-login", help="Log out of IMS before logging in again."
    ),
    callback_url: Optional[str] = typer.Option(
        None, "--callback-url", help="Registered redirect URL (browser flow)."
    ),
    launcher_command: Optional[str] = typer.Option(
        None, "--launcher", help="Command that opens the login window (browser flow)."
    ),
    technical_account_id: Optional[str] = typer.Option(
        None, "--technical-account-id", help="Technical account id (server-to-server)."
    ),
    technical_account_email: Optional[str] = typer.Option(
        None, "--technical-account-email", help="Technical account email (server-to-server)."
    ),
    ims_org_id: Optional[str] = typer.Option(
        None, "--ims-org-id", help="IMS organization id (server-to-server)."
    ),
) -> None:
    """Log in to IMS and print the result.

    The authorization code is printed as plain text; access tokens are
    printed as JSON. Errors exit with the code of their kind (2 for
    configuration, 3 for authentication, 4 for timeouts, 5 under CI,
    6 for transport failures).

    Example::

        ims-oauth login
        ims-oauth login --env stage --bare --no-open
        ims-oauth --json login --flow server_to_server ...
    """
    from ims_oauth.auth import create_default_manager

    manager = create_default_manager()
    try:
        config = build_login_config(
            env=env,
            bare=bare,
            timeout=timeout,
            client_id=client_id,
            client_secret=client_secret,
            scope=scope,
            redirect_uri=redirect_uri,
            open_browser=open_browser,
            browser=browser,
            force_login=force_login,
            callback_url=callback_url,
            launcher_command=launcher_command,
            technical_account_id=technical_account_id,
            technical_account_email=technical_account_email,
            ims_org_id=ims_org_id,
        )
        if flow:
            try:
                plugin = manager.get_plugin(flow)
            except KeyError as exc:
                error(str(exc.args[0]))
                raise typer.Exit(code=2) from None
            from ims_oauth.ims import ImsClient

            result = plugin.ims_login(ImsClient(config.get("env")), config)
        else:
            result = manager.ims_login(config)
    except CIUnsupportedError as exc:
        error(str(exc))
        suggest(
            "Pass --client-id, --client-secret, --ims-org-id and --scope "
            "to log in with client credentials"
        )
        raise typer.Exit(code=exc.exit_code) from None
    except ImsOAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(result)
