import pytest

from conftest import QDRANT_URL
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.models.indexing import EnsureStatus


@pytest.mark.asyncio
async def test_match_filter_uses_value_for_scalars_and_any_for_lists(rag_client):
    assert rag_client.get_match_filter({"owner_id": "u1", "document_id": ["d1", "d2"]}) == {
        "must": [
            {"key": "owner_id", "match": {"value": "u1"}},
            {"key": "document_id", "match": {"any": ["d1", "d2"]}},
        ]
    }


@pytest.mark.asyncio
async def test_endpoints_are_scoped_to_the_configured_collection(rag_client):
    assert rag_client.get_collection_name() == "documents"
    assert rag_client._get_endpoint_search() == "/collections/documents/points/search"
    assert rag_client._get_endpoint_create_payload_index() == "/collections/documents/index"
    assert rag_client._get_base_url() == QDRANT_URL


@pytest.mark.asyncio
async def test_ensure_collection_creates_then_reports_existing(rag_client, fake_qdrant):
    first = await rag_client.do_ensure_collection(vector_size=768, distance="Cosine")
    second = await rag_client.do_ensure_collection(vector_size=768, distance="Cosine")

    assert first.status == EnsureStatus.CREATED
    assert second.status == EnsureStatus.ALREADY_EXISTS
    assert fake_qdrant.collections["documents"]["config"] == {"vectors": {"size": 768, "distance": "Cosine"}}
    assert fake_qdrant.count_requests("PUT", "/collections/documents") == 1


@pytest.mark.asyncio
async def test_ensure_collection_treats_conflict_as_already_exists(rag_client, fake_qdrant):
    fake_qdrant.create_collection_race = True

    result = await rag_client.do_ensure_collection()

    assert result.status == EnsureStatus.ALREADY_EXISTS
    assert result.ok


@pytest.mark.asyncio
async def test_ensure_collection_reports_failure_without_raising(rag_client, fake_qdrant):
    fake_qdrant.create_collection_status = 500

    result = await rag_client.do_ensure_collection()

    assert result.status == EnsureStatus.FAILED
    assert not result.ok
    assert "500" in result.error


@pytest.mark.asyncio
async def test_ensure_payload_index_reads_the_schema(rag_client, fake_qdrant):
    await rag_client.do_ensure_collection()

    created = await rag_client.do_ensure_payload_index("owner_id")
    existing = await rag_client.do_ensure_payload_index("owner_id")

    assert created.status == EnsureStatus.CREATED
    assert existing.status == EnsureStatus.ALREADY_EXISTS
    assert fake_qdrant.count_requests("PUT", "/index") == 1
    assert await rag_client.do_fetch_indexed_payload_fields() == {"owner_id"}


@pytest.mark.asyncio
async def test_upsert_search_scroll_and_delete(rag_client, fake_qdrant):
    await rag_client.do_ensure_collection(vector_size=3)
    await rag_client.do_upsert_points([
        {"id": "p1", "vector": [1.0, 0.0, 0.0], "payload": {"owner_id": "u1", "document_id": "d1", "text": "a"}},
        {"id": "p2", "vector": [0.0, 1.0, 0.0], "payload": {"owner_id": "u1", "document_id": "d2", "text": "b"}},
        {"id": "p3", "vector": [1.0, 0.0, 0.0], "payload": {"owner_id": "u2", "document_id": "d3", "text": "c"}},
    ])

    hits = await rag_client.do_search([1.0, 0.1, 0.0], rag_client.get_match_filter({"owner_id": "u1"}), limit=5)
    assert [hit.id for hit in hits] == ["p1", "p2"]
    assert hits[0].score > hits[1].score
    assert hits[0].payload["text"] == "a"

    scroll = await rag_client.do_scroll(
        rag_client.get_match_filter({"owner_id": "u1", "document_id": "d2"}), with_payload=True, with_vector=False, limit=1
    )
    assert [point["id"] for point in scroll.result] == ["p2"]

    await rag_client.do_delete_points_by_filter(rag_client.get_match_filter({"owner_id": "u1", "document_id": "d1"}))
    assert set(fake_qdrant.points()) == {"p2", "p3"}


@pytest.mark.asyncio
async def test_request_errors_raise_when_asked(rag_client):
    # collection was never created
    with pytest.raises(Exception, match="404"):
        await rag_client.do_search([1.0], rag_client.get_match_filter({"owner_id": "u1"}))


@pytest.mark.asyncio
async def test_healthcheck(rag_client):
    assert await rag_client.do_healthcheck() is True
    health = await rag_client.check_health()
    assert health.healthy
    assert health.engine == "qdrant"


def test_manager_resolves_qdrant_and_rejects_unknown_engines(monkeypatch, helper_config):
    monkeypatch.setenv("RAG_ENGINE", "Qdrant")
    assert isinstance(RAGClientManager(helper_config=helper_config).get_client(), RAGClientQdrant)

    monkeypatch.setenv("RAG_ENGINE", "pinecone")
    with pytest.raises(ValueError, match="Unsupported RAG engine"):
        RAGClientManager(helper_config=helper_config)


@pytest.mark.asyncio
async def test_response_parsers_read_qdrant_shapes(rag_client):
    assert rag_client.extract_collection_exists({"result": {"exists": True}}) is True
    assert rag_client.extract_collection_exists({"result": {}}) is False
    assert rag_client.get_scroll_payload({"must": []}, with_payload=True, with_vector=False, limit=1) == {
        "filter": {"must": []},
        "limit": 1,
        "with_payload": True,
        "with_vector": False,
    }
