"""Browser-redirect OAuth2 login plugin.

See Also:
    :class:`~ims_oauth.plugins.browser_oauth.plugin.BrowserOAuthPlugin`
    :class:`ims_oauth.flow.browser.SubprocessLauncher` for the login window.
"""

from ims_oauth.plugins.browser_oauth.plugin import BrowserOAuthPlugin

__all__ = ["BrowserOAuthPlugin"]
