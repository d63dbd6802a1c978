"""Exception hierarchy for ims-oauth.

All exceptions inherit from :class:`ImsOAuthError`, which carries a kind
tag (``code``), an ``exit_code`` from :mod:`ims_oauth.exit_codes`, and an
optional ``provider_code`` echoed back by the identity provider. Messages
are rendered as ``[IMSOAuthSDK:<code>] <message>`` so that logs and
terminal output name the failure kind without extra formatting.

The CLI entry point :func:`ims_oauth.app.main` catches ``ImsOAuthError``
and exits with the matching code.

Subclass hierarchy::

    ImsOAuthError              (exit 1)
    +-- ConfigError            (exit 2)
    +-- MissingPropertiesError (exit 2)
    +-- AuthError              (exit 3)
    |   +-- HTTPError          (exit 3)
    +-- LoginTimeoutError      (exit 4)
    +-- CIUnsupportedError     (exit 5)
    +-- TransportError         (exit 6)
"""

from __future__ import annotations

from typing import Optional

from ims_oauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CI_UNSUPPORTED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_TIMEOUT,
    EXIT_TRANSPORT_ERROR,
)

SDK_NAME = "IMSOAuthSDK"


class ImsOAuthError(Exception):
    """Base exception for all ims-oauth errors.

    Args:
        message: Human-readable error description.
        provider_code: Optional code reported by the identity provider
            (for example the rejected authorization code).
        exit_code: Optional override for the class-level exit code.
    """

    code: str = "ERROR"
    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(
        self,
        message: str,
        provider_code: Optional[str] = None,
        exit_code: Optional[int] = None,
    ):
        super().__init__(f"[{SDK_NAME}:{self.code}] {message}")
        self.message = message
        self.provider_code = provider_code
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(ImsOAuthError):
    """Raised for unreadable config files, unknown environments or bad credential sources."""

    code = "CONFIG_ERROR"
    exit_code = EXIT_INVALID_USAGE


class MissingPropertiesError(ImsOAuthError):
    """Raised before any network or UI action when required login properties are absent."""

    code = "MISSING_PROPERTIES"
    exit_code = EXIT_INVALID_USAGE

    def __init__(self, missing_keys: list[str]):
        super().__init__(
            "OAuth2 not supported due to some missing properties: "
            + ",".join(missing_keys)
        )
        self.missing_keys = missing_keys


class AuthError(ImsOAuthError):
    """Raised when the IMS token exchange fails."""

    code = "AUTH_ERROR"
    exit_code = EXIT_AUTH_FAILURE


class HTTPError(AuthError):
    """Raised when a callback arrives with a mismatched state or a provider error."""

    code = "HTTP_ERROR"

    def __init__(self, provider_code: Optional[str]):
        super().__init__(f"error code={provider_code}", provider_code=provider_code)


class LoginTimeoutError(ImsOAuthError):
    """Raised when no valid callback arrives within the login window."""

    code = "TIMEOUT"
    exit_code = EXIT_TIMEOUT

    def __init__(self, seconds: float):
        super().__init__(f"Timed out after {seconds:g} seconds.")
        self.seconds = seconds


class CIUnsupportedError(ImsOAuthError):
    """Raised when an interactive login is attempted in a CI environment."""

    code = "CI_UNSUPPORTED"
    exit_code = EXIT_CI_UNSUPPORTED

    def __init__(self) -> None:
        super().__init__(
            "Interactive login is not supported in a CI environment. "
            "Use a server-to-server (client credentials) configuration instead."
        )


class TransportError(ImsOAuthError):
    """Raised when the callback listener cannot bind or a callback body is unreadable."""

    code = "TRANSPORT_ERROR"
    exit_code = EXIT_TRANSPORT_ERROR
