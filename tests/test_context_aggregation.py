import pytest
import pytest_asyncio

from conftest import USER_A, USER_B
from services.context_aggregation.ContextAggregationService import ContextAggregationService
from services.context_scoping.ContextScopingService import ContextScopingService
from services.rag_indexing.IndexingService import IndexingService
from services.rag_search.SearchService import SearchService
from shared.models.context import ContextFilters, ContextItem, ContextSelector
from shared.models.errors import QueryEmbeddingError

TEXT_1 = "hello world, vector databases store embeddings for similarity search over captured pages."
TEXT_2 = "vector search quality depends on chunking strategy and the embedding model used for captures."


@pytest.fixture
def indexing_service(helper_config, rag_client, embed_client) -> IndexingService:
    return IndexingService(helper_config=helper_config, rag_client=rag_client, embed_client=embed_client)


@pytest.fixture
def aggregation(helper_config, store, rag_client, embed_client) -> ContextAggregationService:
    return ContextAggregationService(
        helper_config=helper_config,
        store_client=store,
        scoping_service=ContextScopingService(helper_config=helper_config, store_client=store),
        search_service=SearchService(helper_config=helper_config, rag_client=rag_client, embed_client=embed_client),
    )


@pytest_asyncio.fixture
async def indexed(store, indexing_service):
    store.add_document("d1", USER_A, title="Vector DBs")
    store.add_document("d2", USER_A, url="https://example.com/chunking")
    store.add_document("foreign", USER_B, title="Not yours")
    await indexing_service.do_index_text(TEXT_1, "d1", USER_A, "k")
    await indexing_service.do_index_text(TEXT_2, "d2", USER_A, "k")
    await indexing_service.do_index_text(TEXT_1, "foreign", USER_B, "k")
    return store


@pytest.mark.asyncio
async def test_all_context(aggregation, indexed):
    context = await aggregation.do_aggregate(USER_A, "vector databases", ContextSelector(context_type="all"), "k")

    assert context.total_sources == 2
    assert {(s.document_id, s.display_title, s.relevance_score) for s in context.sources} == {
        ("d1", "Vector DBs", 0.5),
        ("d2", "https://example.com/chunking", 0.5),
    }
    assert {c.source_document_id for c in context.retrieved_chunks} == {"d1", "d2"}
    assert [s.document_id for s in context.attributed_sources] == [c.source_document_id for c in context.retrieved_chunks]
    assert context.attributed_sources[0].display_title in {"Vector DBs", "https://example.com/chunking"}


@pytest.mark.asyncio
async def test_explicit_selection_ranks_sources_higher(aggregation, indexed):
    selector = ContextSelector(
        context_type="specific",
        items=[ContextItem(type="capture", id="d1"), ContextItem(type="capture", id="foreign")],
    )

    context = await aggregation.do_aggregate(USER_A, "vector databases", selector, "k")

    assert [(s.document_id, s.relevance_score) for s in context.sources] == [("d1", 1.0)]
    assert {c.source_document_id for c in context.retrieved_chunks} == {"d1"}


@pytest.mark.asyncio
async def test_chunk_limit_comes_from_filters(aggregation, indexed):
    selector = ContextSelector(context_type="all", filters=ContextFilters(limit=1))

    context = await aggregation.do_aggregate(USER_A, "vector", selector, "k")

    assert len(context.retrieved_chunks) == 1


@pytest.mark.asyncio
async def test_empty_scope_yields_empty_context_without_search(aggregation, store, fake_gemini, fake_qdrant):
    context = await aggregation.do_aggregate(USER_A, "anything", ContextSelector(context_type="all"), "k")

    assert context.total_sources == 0
    assert context.retrieved_chunks == []
    assert context.sources == []
    assert fake_gemini.calls == []
    assert fake_qdrant.requests == []


@pytest.mark.asyncio
async def test_failures_propagate(aggregation, indexed, fake_gemini, sleeps):
    fake_gemini.fail_all = True
    with pytest.raises(QueryEmbeddingError):
        await aggregation.do_aggregate(USER_A, "vector", ContextSelector(context_type="all"), "k")

    indexed.fail = True
    with pytest.raises(Exception, match="store unavailable"):
        await aggregation.do_aggregate(USER_A, "vector", ContextSelector(context_type="all"), "k")
