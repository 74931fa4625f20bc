from shared.clients.embed.EmbedClientInterface import EmbedClientInterface, EmbeddingMode
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.context import MAX_SCOPE_SIZE
from shared.models.errors import QueryEmbeddingError
from shared.models.search import RetrievedChunk

EMBED_RETRIES = 3
EMBED_RETRY_DELAY_MS = 2000


class SearchService:
    """Handles semantic search queries: embed -> filtered search -> map results."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def do_search(
        self,
        query: str,
        user_id: str,
        api_key: str | None,
        document_ids: list[str] | None = None,
        limit: int = 5,
    ) -> list[RetrievedChunk]:
        """Embed a query and run one nearest-neighbour search over the user's captures.

        Args:
            query (str): The user's question.
            user_id (str): Requesting user. Every search is restricted to points with this owner_id.
            api_key (str | None): Per-user embedding credential.
            document_ids (list[str] | None): Restrict the search to these captures. None searches
                                             all of the user's captures, an empty list searches nothing.
            limit (int): Maximum number of chunks.

        Returns:
            list[RetrievedChunk]: Chunks in the index's similarity order with their raw scores.

        Raises:
            QueryEmbeddingError: If the query cannot be embedded.
            Exception: If the search request fails.
        """
        scope = "all captures" if document_ids is None else f"{len(document_ids)} capture(s)"
        self.logging.info("SearchService.do_search: query='%s', scope=%s, limit=%d", query[:50], scope, limit)

        # an explicit empty scope has nothing to search
        if document_ids is not None and not document_ids:
            self.logging.info("SearchService.do_search: empty scope, returning no results.")
            return []

        vector = await self._embed_client.do_embed_with_retry(
            query,
            EmbeddingMode.QUERY,
            api_key=api_key,
            retries=EMBED_RETRIES,
            delay_ms=EMBED_RETRY_DELAY_MS,
        )
        if vector is None:
            self.logging.error("SearchService.do_search: failed to embed the query.")
            raise QueryEmbeddingError("Failed to generate an embedding for the query.")
        self.logging.debug("Query vector dimension: %d", len(vector))

        # owner_id is mandatory on every search
        conditions: dict[str, str | list[str]] = {"owner_id": user_id}
        if document_ids:
            scope_ids = list(dict.fromkeys(document_ids))
            if len(scope_ids) > MAX_SCOPE_SIZE:
                self.logging.warning("SearchService.do_search: %d capture ids truncated to %d.", len(scope_ids), MAX_SCOPE_SIZE)
                scope_ids = scope_ids[:MAX_SCOPE_SIZE]
            conditions["document_id"] = scope_ids

        hits = await self._rag_client.do_search(
            vector=vector,
            filter=self._rag_client.get_match_filter(conditions),
            limit=limit,
            with_payload=True,
        )

        chunks = [
            RetrievedChunk(
                text=str(hit.payload.get("text", "")),
                source_document_id=str(hit.payload.get("document_id", "")),
                similarity_score=hit.score,
                chunk_index=int(hit.payload.get("chunk_index", 0)),
            )
            for hit in hits
        ]
        self.logging.info("SearchService.do_search: returning %d chunk(s).", len(chunks))
        return chunks
