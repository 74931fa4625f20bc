"""
Shared test fixtures.

Qdrant and Gemini are emulated in memory behind httpx.MockTransport, the
document store by an in-memory StoreClientInterface implementation.
"""

import asyncio
import hashlib
import json
import logging
import math
import re

import httpx
import pytest
import pytest_asyncio

from shared.clients.embed.gemini.EmbedClientGemini import EmbedClientGemini
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.config import EnvConfig
from shared.models.document import CaptureCollection, CaptureDocument, DocumentStatus, ProcessingStatus

QDRANT_URL = "http://qdrant.test"
GEMINI_URL = "http://gemini.test"
API_KEY = "test-api-key"

USER_A = "user-a"
USER_B = "user-b"


# ---------------------------------------------------------------------------
# Fake Qdrant
# ---------------------------------------------------------------------------

def _matches(payload: dict, filter: dict | None) -> bool:
    for condition in (filter or {}).get("must", []):
        value = payload.get(condition["key"])
        match = condition["match"]
        if "value" in match and value != match["value"]:
            return False
        if "any" in match and value not in match["any"]:
            return False
    return True


def _cosine(a: list[float], b: list[float]) -> float:
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if not norm:
        return 0.0
    return sum(x * y for x, y in zip(a, b)) / norm


class FakeQdrant:
    """Minimal in-memory emulation of the Qdrant REST endpoints used by RAGClientQdrant."""

    def __init__(self):
        self.collections: dict[str, dict] = {}
        self.requests: list[tuple[str, str]] = []
        self.upsert_failures = 0
        self.create_collection_status: int | None = None
        self.create_index_status: int | None = None
        self.fail_scroll = False
        self.create_collection_race = False

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count_requests(self, method: str, suffix: str) -> int:
        return sum(1 for m, path in self.requests if m == method and path.endswith(suffix))

    def points(self, collection: str = "documents") -> dict:
        return self.collections.get(collection, {}).get("points", {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        method = request.method
        self.requests.append((method, path))
        body = json.loads(request.content) if request.content else {}

        if path == "/healthz":
            return httpx.Response(200, text="healthz check passed")

        parts = path.strip("/").split("/")
        if parts[0] != "collections" or len(parts) < 2:
            return httpx.Response(404, json={"status": {"error": "not found"}})
        name = parts[1]
        rest = parts[2:]
        collection = self.collections.get(name)

        if rest == ["exists"]:
            return httpx.Response(200, json={"result": {"exists": collection is not None}})

        if not rest and method == "PUT":
            if self.create_collection_status is not None:
                return httpx.Response(self.create_collection_status, json={"status": {"error": "boom"}})
            if self.create_collection_race:
                # another writer created it between the existence check and the create call
                self.collections[name] = {"points": {}, "payload_schema": {}, "config": body}
                return httpx.Response(409, json={"status": {"error": "Collection already exists"}})
            if collection is not None:
                return httpx.Response(409, json={"status": {"error": "Collection already exists"}})
            self.collections[name] = {"points": {}, "payload_schema": {}, "config": body}
            return httpx.Response(200, json={"result": True, "status": "ok"})

        if collection is None:
            return httpx.Response(404, json={"status": {"error": f"Collection `{name}` doesn't exist!"}})

        if not rest and method == "GET":
            return httpx.Response(200, json={"result": {"payload_schema": collection["payload_schema"]}})

        if rest == ["index"] and method == "PUT":
            if self.create_index_status is not None:
                return httpx.Response(self.create_index_status, json={"status": {"error": "boom"}})
            collection["payload_schema"][body["field_name"]] = {"data_type": body["field_schema"]}
            return httpx.Response(200, json={"result": {"status": "completed"}})

        if rest == ["points"] and method == "PUT":
            if self.upsert_failures > 0:
                self.upsert_failures -= 1
                return httpx.Response(503, json={"status": {"error": "unavailable"}})
            for point in body["points"]:
                collection["points"][point["id"]] = {"vector": point["vector"], "payload": point["payload"]}
            return httpx.Response(200, json={"result": {"status": "completed"}})

        if rest == ["points", "delete"]:
            doomed = [pid for pid, p in collection["points"].items() if _matches(p["payload"], body.get("filter"))]
            for pid in doomed:
                del collection["points"][pid]
            return httpx.Response(200, json={"result": {"status": "completed"}})

        if rest == ["points", "search"]:
            hits = [
                {"id": pid, "score": _cosine(body["vector"], p["vector"]), "payload": p["payload"]}
                for pid, p in collection["points"].items()
                if _matches(p["payload"], body.get("filter"))
            ]
            hits.sort(key=lambda hit: hit["score"], reverse=True)
            return httpx.Response(200, json={"result": hits[: body.get("limit", 10)], "status": "ok", "time": 0.001})

        if rest == ["points", "scroll"]:
            if self.fail_scroll:
                return httpx.Response(500, json={"status": {"error": "scroll failed"}})
            found = [
                {"id": pid, "payload": p["payload"]}
                for pid, p in collection["points"].items()
                if _matches(p["payload"], body.get("filter"))
            ]
            limit = body.get("limit") or 10
            return httpx.Response(200, json={
                "result": {"points": found[:limit]},
                "status": "ok",
                "time": 0.001,
            })

        return httpx.Response(404, json={"status": {"error": "unknown route"}})


# ---------------------------------------------------------------------------
# Fake Gemini
# ---------------------------------------------------------------------------

def bag_of_words_vector(text: str, size: int = 768) -> list[float]:
    """Deterministic embedding: hashed word counts, so texts sharing words are similar."""
    vector = [0.0] * size
    for word in re.findall(r"\w+", text.lower()):
        vector[int(hashlib.md5(word.encode()).hexdigest(), 16) % size] += 1.0
    if not any(vector):
        vector[0] = 1.0
    return vector


class FakeGemini:
    """Emulates POST /v1beta/models/{model}:embedContent."""

    def __init__(self):
        self.calls: list[dict] = []
        self.vector_size = 768
        self.fail_all = False
        self.fail_marker: str | None = None
        self.short_marker: str | None = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"name": "models/text-embedding-004"})
        body = json.loads(request.content)
        text = body["content"]["parts"][0]["text"]
        self.calls.append({
            "path": request.url.path,
            "task_type": body["taskType"],
            "text": text,
            "api_key": request.headers.get("x-goog-api-key"),
        })
        if self.fail_all or (self.fail_marker and self.fail_marker in text):
            return httpx.Response(500, json={"error": {"message": "internal"}})
        size = 10 if self.short_marker and self.short_marker in text else self.vector_size
        return httpx.Response(200, json={"embedding": {"values": bag_of_words_vector(text, size)}})

    def task_types(self) -> list[str]:
        return [call["task_type"] for call in self.calls]


# ---------------------------------------------------------------------------
# Fake document store
# ---------------------------------------------------------------------------

class FakeStore(StoreClientInterface):
    """In-memory document store with the same filter semantics as the MongoDB client."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.documents: dict[str, CaptureDocument] = {}
        self.collections: dict[str, CaptureCollection] = {}
        self.credentials: dict[str, str] = {}
        self.status_history: list[tuple[str, ProcessingStatus]] = []
        self.fail = False

    def _get_engine_name(self) -> str:
        return "Fake"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    async def boot(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def do_healthcheck(self) -> bool:
        return True

    def add_document(self, id: str, owner_id: str, **kwargs) -> CaptureDocument:
        document = CaptureDocument(id=id, owner_id=owner_id, **kwargs)
        self.documents[id] = document
        return document

    def add_collection(self, id: str, owner_id: str, document_ids: list[str]) -> None:
        self.collections[id] = CaptureCollection(id=id, owner_id=owner_id, document_ids=document_ids)

    def _check(self):
        if self.fail:
            raise Exception("store unavailable")

    async def find_document_ids(self, owner_id, status=DocumentStatus.ACTIVE, bookmarked=None, date_range=None,
                                content_types=None, document_ids=None, limit=None) -> list[str]:
        self._check()
        ids = []
        for document in self.documents.values():
            if document.owner_id != owner_id:
                continue
            if status is not None and document.status != status:
                continue
            if bookmarked is not None and document.bookmarked != bookmarked:
                continue
            if date_range is not None and (
                document.created_at is None or not date_range.start <= document.created_at <= date_range.end
            ):
                continue
            if content_types and document.content_type not in content_types:
                continue
            if document_ids is not None and document.id not in document_ids:
                continue
            ids.append(document.id)
        return ids[:limit] if limit else ids

    async def find_collections(self, owner_id, collection_ids) -> list[CaptureCollection]:
        self._check()
        return [c for c in self.collections.values() if c.id in collection_ids and c.owner_id == owner_id]

    async def find_documents(self, document_ids) -> list[CaptureDocument]:
        self._check()
        return [self.documents[i] for i in document_ids if i in self.documents]

    async def get_document(self, document_id) -> CaptureDocument | None:
        self._check()
        return self.documents.get(document_id)

    async def set_processing_status(self, document_id, status) -> None:
        self.status_history.append((document_id, status))
        if document_id in self.documents:
            self.documents[document_id].processing_status = status

    async def get_embedding_credential(self, user_id) -> str | None:
        self._check()
        return self.credentials.get(user_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client_env(monkeypatch):
    """Environment for the Qdrant and Gemini clients plus the API key."""
    monkeypatch.setenv("RAG_QDRANT_BASE_URL", QDRANT_URL)
    monkeypatch.setenv("RAG_QDRANT_COLLECTION", "documents")
    monkeypatch.setenv("EMBED_GEMINI_BASE_URL", GEMINI_URL)
    monkeypatch.setenv("API_SERVER_API_KEY", API_KEY)
    monkeypatch.delenv("EMBED_GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("EMBED_VECTOR_SIZE", raising=False)
    monkeypatch.delenv("EMBED_MODEL", raising=False)


@pytest.fixture
def helper_config(client_env) -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("deepen.tests")))


@pytest.fixture
def fake_qdrant() -> FakeQdrant:
    return FakeQdrant()


@pytest.fixture
def fake_gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def store(helper_config) -> FakeStore:
    return FakeStore(helper_config=helper_config)


@pytest_asyncio.fixture
async def rag_client(helper_config, fake_qdrant) -> RAGClientQdrant:
    """Qdrant client booted against the in-memory backend."""
    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=fake_qdrant.transport)
    yield client
    await client.close()


@pytest_asyncio.fixture
async def embed_client(helper_config, fake_gemini) -> EmbedClientGemini:
    """Gemini client booted against the in-memory backend."""
    client = EmbedClientGemini(helper_config=helper_config)
    await client.boot(transport=fake_gemini.transport)
    yield client
    await client.close()


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    """Replace asyncio.sleep so retry delays are recorded instead of waited for."""
    recorded: list[float] = []

    async def fake_sleep(delay, *args, **kwargs):
        recorded.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded
