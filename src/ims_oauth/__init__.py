"""ims-oauth -- interactive IMS OAuth2 login for command-line tools.

The package runs the browser side of an IMS login from a terminal: it
starts a short-lived callback listener on a loopback port, sends the user
to the IMS login site, correlates the callback with the pending attempt,
and hands back an authorization code or an access token. Server-to-server
(client credentials) and launcher-driven browser flows share the same
plugin registry.

Typical usage::

    from ims_oauth.auth import create_default_manager

    manager = create_default_manager()
    token = manager.ims_login({"$cli.bare-output": False, "env": "stage"})

Modules:
    app: Typer application and the ``ims-oauth`` console script.
    flow: Callback listener, state correlation and the login orchestrator.
    ims: Thin IMS token-exchange client.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and environment selection.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.3.0"
