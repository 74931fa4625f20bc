from shared.clients.ClientManager import ClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface


class RAGClientManager(ClientManager):
    """Picks the vector index backend from RAG_ENGINE (default: qdrant)."""

    client_type = "rag"
    class_prefix = "RAGClient"
    default_engine = "qdrant"
    label = "RAG"

    def get_client(self) -> RAGClientInterface:
        return self.client
