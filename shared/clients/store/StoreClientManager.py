from shared.clients.ClientManager import ClientManager
from shared.clients.store.StoreClientInterface import StoreClientInterface


class StoreClientManager(ClientManager):
    """Picks the document store backend from STORE_ENGINE (default: mongodb)."""

    client_type = "store"
    class_prefix = "StoreClient"
    default_engine = "mongodb"
    label = "Store"

    def get_client(self) -> StoreClientInterface:
        return self.client
