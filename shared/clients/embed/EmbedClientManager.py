from shared.clients.ClientManager import ClientManager
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface


class EmbedClientManager(ClientManager):
    """Picks the embedding backend from EMBED_ENGINE (default: gemini)."""

    client_type = "embed"
    class_prefix = "EmbedClient"
    default_engine = "gemini"
    label = "Embed"

    def get_client(self) -> EmbedClientInterface:
        return self.client
