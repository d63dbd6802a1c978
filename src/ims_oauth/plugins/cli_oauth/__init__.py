"""CLI-hosted OAuth2 login plugin.

Implements the ``cli`` flow: the login site redirects the browser to a
short-lived callback listener on the loopback interface, which hands the
authorization code (or access token) back to the waiting CLI.

See Also:
    :class:`~ims_oauth.plugins.cli_oauth.plugin.CliOAuthPlugin`
    :func:`ims_oauth.flow.login.login` for the flow itself.
"""

from ims_oauth.plugins.cli_oauth.plugin import CliOAuthPlugin

__all__ = ["CliOAuthPlugin"]
