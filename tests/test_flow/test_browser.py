"""Tests for the browser collaborators: system browser and login-window launcher."""

from __future__ import annotations

import sys
import threading
import webbrowser
from unittest.mock import MagicMock, patch

import pytest

from ims_oauth.exceptions import AuthError, HTTPError, TransportError
from ims_oauth.flow.browser import SubprocessLauncher, open_url


def _python(script: str) -> list[str]:
    """A launcher command running *script* with the current interpreter."""
    return [sys.executable, "-c", script]


# ---------------------------------------------------------------------------
# open_url
# ---------------------------------------------------------------------------


class TestOpenUrl:
    def test_opens_in_background(self) -> None:
        opened = threading.Event()
        controller = MagicMock()
        controller.open.side_effect = lambda url: opened.set()

        with patch("ims_oauth.flow.browser.webbrowser.get", return_value=controller) as get:
            assert open_url("https://example.com/login") is True
            assert opened.wait(5)

        get.assert_called_once_with()
        controller.open.assert_called_once_with("https://example.com/login")

    def test_named_browser(self) -> None:
        controller = MagicMock()
        with patch("ims_oauth.flow.browser.webbrowser.get", return_value=controller) as get:
            open_url("https://example.com", app="firefox")
        get.assert_called_once_with("firefox")

    def test_unknown_browser_returns_false(self) -> None:
        with patch(
            "ims_oauth.flow.browser.webbrowser.get",
            side_effect=webbrowser.Error("could not locate runnable browser"),
        ):
            assert open_url("https://example.com", app="nope") is False


# ---------------------------------------------------------------------------
# SubprocessLauncher
# ---------------------------------------------------------------------------


class TestSubprocessLauncher:
    def test_empty_command_rejected(self) -> None:
        with pytest.raises(TransportError, match="empty"):
            SubprocessLauncher([])

    def test_arguments_and_code(self) -> None:
        launcher = SubprocessLauncher(
            _python("import json, sys; print(json.dumps({'code': '|'.join(sys.argv[1:])}))")
        )
        future = launcher.launch("https://ims/authorize", "https://cb/", force=True)
        assert future.result(timeout=30) == "https://ims/authorize|https://cb/|true"

    def test_force_false(self) -> None:
        launcher = SubprocessLauncher(
            _python("import json, sys; print(json.dumps({'code': sys.argv[3]}))")
        )
        assert launcher.launch("a", "b").result(timeout=30) == "false"

    def test_matching_state(self) -> None:
        launcher = SubprocessLauncher(
            _python("import json; print(json.dumps({'code': 'c', 'state': 's-1'}))")
        )
        assert launcher.launch("a", "b", state="s-1").result(timeout=30) == "c"

    @pytest.mark.parametrize(
        "payload", ["{'code': 'c', 'state': 'other'}", "{'code': 'c'}"]
    )
    def test_state_mismatch(self, payload: str) -> None:
        launcher = SubprocessLauncher(_python(f"import json; print(json.dumps({payload}))"))
        with pytest.raises(HTTPError, match="error code=c"):
            launcher.launch("a", "b", state="s-1").result(timeout=30)

    def test_success_without_code(self) -> None:
        launcher = SubprocessLauncher(_python("print('{}')"))
        with pytest.raises(AuthError, match="No authorization code"):
            launcher.launch("a", "b").result(timeout=30)

    def test_error_message_from_stderr_json(self) -> None:
        launcher = SubprocessLauncher(
            _python(
                "import json, sys; "
                "sys.stderr.write(json.dumps({'message': 'Window closed by user'})); "
                "sys.exit(1)"
            )
        )
        with pytest.raises(AuthError, match="Window closed by user"):
            launcher.launch("a", "b").result(timeout=30)

    def test_raw_stderr(self) -> None:
        launcher = SubprocessLauncher(
            _python("import sys; sys.stderr.write('display not found'); sys.exit(2)")
        )
        with pytest.raises(AuthError, match="display not found"):
            launcher.launch("a", "b").result(timeout=30)

    def test_exit_status_when_silent(self) -> None:
        launcher = SubprocessLauncher(_python("import sys; sys.exit(3)"))
        with pytest.raises(AuthError, match="exited with status 3"):
            launcher.launch("a", "b").result(timeout=30)

    def test_missing_program(self) -> None:
        launcher = SubprocessLauncher(["/nonexistent/login-window"])
        with pytest.raises(TransportError, match="Could not launch"):
            launcher.launch("a", "b")

    def test_terminate_kills_window(self) -> None:
        launcher = SubprocessLauncher(_python("import time; time.sleep(60)"))
        future = launcher.launch("a", "b")
        launcher.terminate()
        with pytest.raises(AuthError):
            future.result(timeout=30)

    def test_terminate_without_launch(self) -> None:
        SubprocessLauncher(["true"]).terminate()
