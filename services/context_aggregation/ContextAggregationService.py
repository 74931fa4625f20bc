from services.context_scoping.ContextScopingService import ContextScopingService
from services.rag_search.SearchService import SearchService
from services.rag_search.source_attribution import dedupe_sources
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.context import ContextSelector, ContextType
from shared.models.search import AggregatedContext, SourceEntry

DEFAULT_CHUNK_LIMIT = 20
# explicitly selected captures rank above the whole library
ALL_CONTEXT_RELEVANCE = 0.5
SELECTED_CONTEXT_RELEVANCE = 1.0


class ContextAggregationService:
    """Builds the grounding for one chat turn: scope -> source metadata -> search."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        scoping_service: ContextScopingService,
        search_service: SearchService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store_client = store_client
        self._scoping_service = scoping_service
        self._search_service = search_service

    async def do_aggregate(
        self,
        user_id: str,
        query: str,
        selector: ContextSelector,
        api_key: str | None,
    ) -> AggregatedContext:
        """Resolve the selector, describe the scope and search it.

        Args:
            user_id (str): Requesting user.
            query (str): The chat message to ground.
            selector (ContextSelector): Which captures may be used.
            api_key (str | None): Per-user embedding credential.

        Returns:
            AggregatedContext: Sources in scope, retrieved chunks and their de-duplicated attribution.

        Raises:
            Exception: Store and search failures are logged and re-raised.
        """
        try:
            document_ids = await self._scoping_service.do_resolve(user_id, selector)
            sources = await self._build_sources(document_ids, selector.context_type)

            limit = selector.filters.limit or DEFAULT_CHUNK_LIMIT
            chunks = await self._search_service.do_search(
                query=query,
                user_id=user_id,
                api_key=api_key,
                document_ids=document_ids,
                limit=limit,
            )
        except Exception as e:
            self.logging.error("Context aggregation failed for user %s: %s", user_id, e)
            raise

        titles = {source.document_id: source.display_title for source in sources}
        return AggregatedContext(
            sources=sources,
            retrieved_chunks=chunks,
            attributed_sources=dedupe_sources(chunks, titles),
            total_sources=len(document_ids),
        )

    async def _build_sources(self, document_ids: list[str], context_type: ContextType) -> list[SourceEntry]:
        if not document_ids:
            return []
        relevance = ALL_CONTEXT_RELEVANCE if context_type == ContextType.ALL else SELECTED_CONTEXT_RELEVANCE
        documents = await self._store_client.find_documents(document_ids)
        return [
            SourceEntry(
                document_id=document.id,
                display_title=document.get_display_title(),
                relevance_score=relevance,
            )
            for document in documents
        ]
