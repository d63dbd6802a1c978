"""Tests for the exception hierarchy and its exit codes."""

from __future__ import annotations

import pytest

from ims_oauth.exceptions import (
    AuthError,
    CIUnsupportedError,
    ConfigError,
    HTTPError,
    ImsOAuthError,
    LoginTimeoutError,
    MissingPropertiesError,
    TransportError,
)


class TestMessages:
    def test_message_is_prefixed_with_sdk_and_code(self) -> None:
        exc = TransportError("Login aborted")
        assert str(exc) == "[IMSOAuthSDK:TRANSPORT_ERROR] Login aborted"
        assert exc.message == "Login aborted"

    def test_missing_properties_lists_keys(self) -> None:
        exc = MissingPropertiesError(["client_id", "scope"])
        assert exc.message == "OAuth2 not supported due to some missing properties: client_id,scope"
        assert exc.missing_keys == ["client_id", "scope"]

    def test_http_error_carries_provider_code(self) -> None:
        exc = HTTPError("bad-code")
        assert exc.message == "error code=bad-code"
        assert exc.provider_code == "bad-code"
        assert isinstance(exc, AuthError)

    def test_http_error_without_code(self) -> None:
        assert HTTPError(None).message == "error code=None"

    def test_timeout_message(self) -> None:
        assert LoginTimeoutError(120).message == "Timed out after 120 seconds."
        assert LoginTimeoutError(0.5).message == "Timed out after 0.5 seconds."


class TestExitCodes:
    @pytest.mark.parametrize(
        ("exc", "exit_code"),
        [
            (ConfigError("bad"), 2),
            (MissingPropertiesError(["a"]), 2),
            (AuthError("denied"), 3),
            (HTTPError("x"), 3),
            (LoginTimeoutError(1), 4),
            (CIUnsupportedError(), 5),
            (TransportError("bind"), 6),
        ],
    )
    def test_exit_code_per_kind(self, exc: ImsOAuthError, exit_code: int) -> None:
        assert exc.exit_code == exit_code

    def test_exit_code_override(self) -> None:
        assert ImsOAuthError("x", exit_code=9).exit_code == 9
