from abc import abstractmethod
from enum import Enum
import asyncio

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.helper.HelperConfig import HelperConfig


class EmbeddingMode(str, Enum):
    """Asymmetric embedding modes: documents are indexed in one space, queries probe it from the other."""
    DOCUMENT = "document"
    QUERY = "query"


class EmbedClientInterface(HttpClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=self._get_default_model())
        self.embed_vector_size = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_VECTOR_SIZE", default=768))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "embed"

    @abstractmethod
    def _get_default_model(self) -> str:
        """
        Returns the model used when EMBED_MODEL is not set.
        """
        pass

    def get_vector_size(self) -> int:
        """
        Returns the fixed dimensionality every vector of the index must have.
        """
        return self.embed_vector_size

    def get_distance(self) -> str:
        return self.embed_distance

    ################ AUTH ##################
    @abstractmethod
    def _get_credential_header(self, api_key: str | None) -> dict:
        """
        Returns the auth header for a single embedding request.

        Args:
            api_key (str | None): Per-user credential. Overrides the configured key when set.

        Returns:
            dict: Header(s) to send with the request. Empty if no credential is available.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, text: str, mode: EmbeddingMode) -> dict:
        """Build the backend-specific request body for a single embedding request.

        Args:
            text (str): The text to embed.
            mode (EmbeddingMode): Whether the text is a document chunk or a search query.

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embedding_from_response(self, response_data: dict) -> list[float]:
        """Extract the embedding vector from a raw embedding API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValueError: If the response format is invalid or the embedding is empty.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, text: str, mode: EmbeddingMode, api_key: str | None = None) -> list[float]:
        """Send a single embedding request and return the extracted vector.

        Args:
            text (str): The text to embed.
            mode (EmbeddingMode): Document or query mode.
            api_key (str | None): Per-user credential overriding the configured one.

        Returns:
            list[float]: The embedding vector.

        Raises:
            Exception: If the HTTP request fails (status != 200).
            ValueError: If the response does not contain a valid embedding.
        """
        body = self.get_embed_payload(text, mode)
        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=body,
            additional_headers=self._get_credential_header(api_key),
        )
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise Exception("Embedding request failed with status %d." % response.status_code)
        return self.extract_embedding_from_response(response.json())

    async def do_embed_with_retry(
        self,
        text: str,
        mode: EmbeddingMode,
        api_key: str | None = None,
        retries: int = 3,
        delay_ms: int = 2000,
    ) -> list[float] | None:
        """Embed a text, retrying a fixed number of times with a constant pause.

        Args:
            text (str): The text to embed.
            mode (EmbeddingMode): Document or query mode.
            api_key (str | None): Per-user credential overriding the configured one.
            retries (int): Number of attempts.
            delay_ms (int): Pause between attempts in milliseconds.

        Returns:
            list[float] | None: The vector, or None once every attempt failed.
        """
        for attempt in range(1, retries + 1):
            try:
                return await self.do_embed(text, mode, api_key=api_key)
            except Exception as e:
                self.logging.warning(
                    "Embedding attempt %d/%d failed (%s mode): %s", attempt, retries, mode.value, e
                )
                if attempt < retries:
                    await asyncio.sleep(delay_ms / 1000)
        self.logging.error("Embedding failed after %d attempts (%s mode).", retries, mode.value)
        return None
