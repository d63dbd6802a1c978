"""Server-to-server (client credentials) login plugin."""

from ims_oauth.plugins.server_to_server.plugin import ServerToServerPlugin

__all__ = ["ServerToServerPlugin"]
