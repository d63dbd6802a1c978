"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one login failure category and is referenced by the
corresponding :class:`~ims_oauth.exceptions.ImsOAuthError` subclass.
Shell wrappers and CI scripts can branch on the exit code instead of
parsing stderr.

Example::

    $ ims-oauth login --timeout 5
    $ echo $?
    4   # EXIT_TIMEOUT -- no callback arrived in time
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Required login properties are missing or the configuration is invalid."""

EXIT_AUTH_FAILURE = 3
"""The callback or the token exchange reported an authentication failure."""

EXIT_TIMEOUT = 4
"""No valid callback arrived within the login window."""

EXIT_CI_UNSUPPORTED = 5
"""An interactive login was attempted in a CI environment."""

EXIT_TRANSPORT_ERROR = 6
"""The callback listener could not bind or received an unreadable request."""
