"""Thin client for the IMS endpoints the login flows depend on.

:class:`ImsClient` builds the IMS sign-up/sign-in (SUSI) authorize URL and
exchanges authorization codes or client credentials for access tokens.
The login plugins call nothing else on it.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union
from urllib.parse import urlencode

import httpx

from ims_oauth.config import get_cli_env
from ims_oauth.exceptions import AuthError
from ims_oauth.models import Environment

IMS_ENDPOINTS: dict[Environment, str] = {
    Environment.PROD: "https://ims-na1.adobelogin.com",
    Environment.STAGE: "https://ims-na1-stg1.adobelogin.com",
}

TOKEN_PATH = "/ims/token/v3"
AUTHORIZE_PATH = "/ims/authorize/v1"


class ImsClient:
    """IMS endpoint client for one environment.

    Args:
        env: IMS environment; defaults to the configured one.
        timeout: HTTP timeout in seconds.
    """

    def __init__(
        self,
        env: Optional[Union[str, Environment]] = None,
        timeout: float = 30.0,
    ) -> None:
        self.env = get_cli_env(env)
        self.endpoint = IMS_ENDPOINTS[self.env]
        self.timeout = timeout

    def get_susi_url(self, client_id: str, scope: str, callback_url: str, state: str) -> str:
        """Return the IMS authorize URL a login window should load."""
        params = {
            "response_type": "code",
            "client_id": client_id,
            "scope": scope,
            "redirect_uri": callback_url,
            "state": state,
        }
        return f"{self.endpoint}{AUTHORIZE_PATH}?{urlencode(params)}"

    def get_access_token(
        self,
        authorization_code: str,
        client_id: str,
        client_secret: str,
        scope: str,
    ) -> dict[str, Any]:
        """Exchange an authorization code for an access token.

        Returns:
            The token response, containing at least ``access_token``.

        Raises:
            AuthError: On HTTP errors or a response without ``access_token``.
        """
        return self._token_request({
            "grant_type": "authorization_code",
            "code": authorization_code,
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": scope,
        })

    def get_access_token_by_client_credentials(
        self,
        client_id: str,
        client_secret: str,
        org_id: str,
        scopes: Sequence[str],
    ) -> dict[str, Any]:
        """Fetch a server-to-server access token (client credentials grant).

        Raises:
            AuthError: On HTTP errors or a response without ``access_token``.
        """
        return self._token_request({
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "org_id": org_id,
            "scope": ",".join(scopes),
        })

    def _token_request(self, data: dict[str, str]) -> dict[str, Any]:
        """POST *data* to the token endpoint and return the JSON response."""
        try:
            response = httpx.post(
                f"{self.endpoint}{TOKEN_PATH}",
                data=data,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            token_data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            raise AuthError(
                f"Token request failed with status {exc.response.status_code}: "
                f"{exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthError(f"Token request failed: {exc}") from exc

        if "access_token" not in token_data:
            raise AuthError("Token response missing 'access_token' field")

        return token_data
