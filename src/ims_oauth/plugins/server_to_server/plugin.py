"""Server-to-server plugin -- OAuth2 client credentials grant.

No user interaction: the first configured client secret is exchanged
directly at the IMS token endpoint for the technical account's token.
"""

from __future__ import annotations

from typing import Any, Mapping

from ims_oauth.auth.base import LoginPlugin
from ims_oauth.ims import ImsClient
from ims_oauth.models import ClientCredentialsConfig


class ServerToServerPlugin(LoginPlugin):
    """Fetch an access token for a technical account."""

    config_model = ClientCredentialsConfig

    @property
    def flow_type(self) -> str:
        return "server_to_server"

    def ims_login(self, ims: ImsClient, config: Mapping[str, Any]) -> dict[str, Any]:
        credentials = self.can_support(config)
        assert isinstance(credentials, ClientCredentialsConfig)
        return ims.get_access_token_by_client_credentials(
            credentials.client_id,
            credentials.client_secrets[0],
            credentials.ims_org_id,
            credentials.scopes,
        )
