"""Canonical Pydantic models shared across ims-oauth modules.

The models fall into three groups:

**Flow configuration models** -- one tagged variant per login flow, each
declaring the fields it requires:
    :class:`CliLoginConfig`, :class:`BrowserLoginConfig`,
    :class:`ClientCredentialsConfig`.

**Login session models** -- created and consumed during one login attempt:
    :class:`SessionState`, :class:`CallbackResult`, :class:`CodeType`.

**User configuration** -- persisted in the config directory:
    :class:`GlobalConfig`.

Flow configs accept extra keys (``extra="allow"``) because callers usually
hand over one mapping holding settings for several flows; the registry in
:mod:`ims_oauth.auth.manager` decides which variant applies.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Environment(str, enum.Enum):
    """IMS environments, each with its own login site and token endpoint."""

    PROD = "prod"
    STAGE = "stage"


DEFAULT_TIMEOUT_SECONDS = 120
"""How long an interactive login waits for its callback."""


# --- Login session ---


class CodeType(str, enum.Enum):
    """What the ``code`` parameter of a callback carries."""

    AUTH_CODE = "auth_code"
    ACCESS_TOKEN = "access_token"


class SessionState(BaseModel):
    """Correlation data for one login attempt.

    Serialised into the query string of the outbound auth-site URL and
    echoed back by the login site as the JSON ``state`` parameter of the
    callback. Only ``id`` is checked on the way back.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    port: Optional[int] = None
    client_id: Optional[str] = None
    scope: Optional[str] = None
    redirect_uri: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def query_params(self) -> dict[str, Any]:
        """Return the URL query parameters in the order the login site expects."""
        params: dict[str, Any] = {
            "id": self.id,
            "port": self.port,
            "client_id": self.client_id,
            "scope": self.scope,
            "redirect_uri": self.redirect_uri,
        }
        for key, value in self.extra.items():
            params.setdefault(key, value)
        return params


class CallbackResult(BaseModel):
    """A callback that matched its pending login."""

    code: Union[str, dict[str, Any]]
    code_type: CodeType = CodeType.AUTH_CODE
    state: dict[str, Any] = Field(default_factory=dict)


# --- Flow configuration ---


class FlowConfig(BaseModel):
    """Base for the per-flow configuration variants."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    env: Optional[Environment] = None

    @classmethod
    def required_keys(cls) -> list[str]:
        """Return the config keys (aliases where declared) a flow cannot run without."""
        return [
            field.alias or name
            for name, field in cls.model_fields.items()
            if field.is_required()
        ]


class CliLoginConfig(FlowConfig):
    """CLI-hosted OAuth2: the login site redirects to a local callback listener."""

    bare: bool = Field(
        alias="$cli.bare-output",
        description="Plain, script-friendly output without spinners",
    )
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, description="Seconds to wait")
    client_id: Optional[str] = None
    scope: Optional[str] = None
    redirect_uri: Optional[str] = None
    open: bool = Field(default=True, description="Open the URL in the system browser")
    browser: Optional[str] = Field(
        default=None, description="Browser application used instead of the default"
    )
    force_login: bool = Field(
        default=False, description="Route through IMS logout before logging in"
    )


class BrowserLoginConfig(FlowConfig):
    """Browser-redirect OAuth2 driven through a launcher-controlled window."""

    callback_url: str
    client_id: str
    client_secret: str
    scope: str
    force: bool = False
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    launcher_command: Optional[list[str]] = Field(
        default=None,
        description="Command that opens the login window and reports the code",
    )


class ClientCredentialsConfig(FlowConfig):
    """Server-to-server OAuth2 (client credentials grant)."""

    client_id: str
    client_secrets: list[str]
    technical_account_email: str
    technical_account_id: str
    scopes: list[str]
    ims_org_id: str


# --- User configuration ---


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/ims-oauth/config.json``.

    Fields here have the lowest precedence; see
    :func:`~ims_oauth.config.get_cli_env` for how the environment is chosen.
    """

    env: Environment = Environment.PROD
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    browser: Optional[str] = None
