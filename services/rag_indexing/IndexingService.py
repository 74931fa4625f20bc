"""Indexing service.

Splits a capture's cleaned text into chunks, embeds every chunk in document
mode via the EmbedClient, and upserts the resulting vectors into the RAG
backend with a payload tagged by owner and document.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface, EmbeddingMode
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.helper.HelperConfig import HelperConfig
from shared.helper.retry_helper import INDEX_RETRY_POLICY, RetryPolicy, do_with_retry
from shared.helper.text_chunker import split_text
from shared.models.errors import IndexEnsureError
from shared.models.indexing import (
    ChunkOutcome,
    EmbeddedChunk,
    EnsureResult,
    IndexingReport,
    SkippedChunk,
    SkipReason,
)

# payload fields every filter in this service relies on
INDEXED_PAYLOAD_FIELDS = ("owner_id", "document_id")

EMBED_RETRIES = 3
EMBED_RETRY_DELAY_MS = 2000


def make_point_id(document_id: str, chunk_index: int) -> str:
    """Build a deterministic UUID5 point ID for a chunk.

    Using UUID5 ensures the same capture chunk always maps to the same
    point ID so that re-indexing overwrites rather than duplicates.

    Args:
        document_id (str): Capture id.
        chunk_index (int): Zero-based chunk index within the capture.

    Returns:
        str: UUID string usable as a point ID.
    """
    return str(uuid.uuid5(uuid.NAMESPACE_OID, f"{document_id}:{chunk_index}"))


class IndexingService:
    """Writes and removes the vectors of single captures."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
        chunker: Callable[[str], list[str]] = split_text,
        retry_policy: RetryPolicy = INDEX_RETRY_POLICY,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client
        self._chunker = chunker
        self._retry_policy = retry_policy

    ##########################################
    ############### INDEXING #################
    ##########################################

    async def do_index_text(self, text: str, document_id: str, user_id: str, api_key: str | None) -> IndexingReport:
        """Chunk, embed and upsert a capture's text.

        Chunks whose embedding fails or has the wrong dimensionality are skipped and
        recorded on the report. If no chunk survives, nothing is written.

        Args:
            text (str): The cleaned capture text.
            document_id (str): Capture id, stored as document_id on every point.
            user_id (str): Owner of the capture, stored as owner_id on every point.
            api_key (str | None): Per-user embedding credential.

        Returns:
            IndexingReport: Per-chunk outcomes, upsert count and verification result.

        Raises:
            IndexEnsureError: If the collection cannot be created or verified.
            Exception: If the upsert still fails after all retries.
        """
        chunks = self._chunker(text)
        report = IndexingReport(document_id=document_id, chunk_count=len(chunks))
        self.logging.info("Indexing capture %s: %d chunk(s).", document_id, len(chunks), color="blue")

        # embed sequentially, one request per chunk
        created_at = datetime.now(timezone.utc).isoformat()
        points: list[dict] = []
        for index, chunk in enumerate(chunks):
            outcome = await self._embed_chunk(chunk, index, api_key)
            report.outcomes.append(outcome)
            if isinstance(outcome, SkippedChunk):
                continue
            payload = VectorPoint(
                text=chunk,
                owner_id=user_id,
                document_id=document_id,
                chunk_index=index,
                created_at=created_at,
            )
            points.append({
                "id": make_point_id(document_id, index),
                "vector": outcome.vector,
                "payload": payload.model_dump(),
            })

        self.logging.info("Capture %s: %d/%d chunk(s) embedded.", document_id, len(points), len(chunks))
        if not points:
            self.logging.warning("Capture %s produced no valid embeddings. Nothing to upsert.", document_id)
            return report

        await self.do_ensure_index()

        await do_with_retry(
            lambda: self._rag_client.do_upsert_points(points),
            self._retry_policy,
            self.logging,
            label=f"Upsert of {len(points)} point(s) for capture {document_id}",
        )
        report.points_upserted = len(points)
        self.logging.info("Upserted %d point(s) for capture %s.", len(points), document_id, color="green")

        report.verified = await self._verify_document(document_id, user_id)
        return report

    async def _embed_chunk(self, chunk: str, index: int, api_key: str | None) -> ChunkOutcome:
        vector = await self._embed_client.do_embed_with_retry(
            chunk,
            EmbeddingMode.DOCUMENT,
            api_key=api_key,
            retries=EMBED_RETRIES,
            delay_ms=EMBED_RETRY_DELAY_MS,
        )
        if vector is None:
            self.logging.warning("Chunk %d: embedding failed, skipping.", index)
            return SkippedChunk(chunk_index=index, reason=SkipReason.EMBEDDING_FAILED)

        expected = self._embed_client.get_vector_size()
        if len(vector) != expected:
            self.logging.error("Chunk %d: expected %d dimensions, got %d. Skipping.", index, expected, len(vector))
            return SkippedChunk(
                chunk_index=index,
                reason=SkipReason.DIMENSION_MISMATCH,
                detail=f"expected {expected}, got {len(vector)}",
            )
        return EmbeddedChunk(chunk_index=index, vector=vector)

    ##########################################
    ############ COLLECTION SETUP ############
    ##########################################

    async def do_ensure_index(self) -> list[EnsureResult]:
        """Make sure the collection and the payload indices used for filtering exist.

        Returns:
            list[EnsureResult]: The collection result followed by one result per payload index.

        Raises:
            IndexEnsureError: If the collection cannot be created or verified.
        """
        collection = await self._rag_client.do_ensure_collection(
            vector_size=self._embed_client.get_vector_size(),
            distance=self._embed_client.get_distance(),
        )
        if not collection.ok:
            self.logging.error("Could not ensure %s: %s", collection.target, collection.error)
            raise IndexEnsureError(f"Could not ensure {collection.target}: {collection.error}")

        results = [collection]
        for field_name in INDEXED_PAYLOAD_FIELDS:
            result = await self._rag_client.do_ensure_payload_index(field_name)
            if not result.ok:
                # filtering still works without the index, only slower
                self.logging.warning("Could not ensure %s: %s", result.target, result.error)
            results.append(result)
        return results

    ##########################################
    ############# VERIFICATION ###############
    ##########################################

    async def _verify_document(self, document_id: str, user_id: str) -> bool | None:
        """Probe the index for one point of the capture. Never raises.

        Returns:
            bool | None: Whether a point was found, None if the probe itself failed.
        """
        try:
            scroll = await self._rag_client.do_scroll(
                filter=self._rag_client.get_match_filter({"owner_id": user_id, "document_id": document_id}),
                with_payload=False,
                with_vector=False,
                limit=1,
            )
        except Exception as e:
            self.logging.warning("Verification of capture %s failed: %s", document_id, e)
            return None

        found = len(scroll.result) > 0
        if found:
            self.logging.info("Verified capture %s in the index.", document_id)
        else:
            self.logging.warning("Capture %s not visible in the index yet.", document_id)
        return found

    ##########################################
    ################ DELETION ################
    ##########################################

    async def do_delete_document(self, document_id: str, user_id: str) -> None:
        """Remove every point of a capture. Deleting an unindexed capture is not an error.

        Args:
            document_id (str): Capture id.
            user_id (str): Owner of the capture. Always part of the delete filter.

        Raises:
            IndexEnsureError: If the collection cannot be created or verified.
            Exception: If the delete request fails.
        """
        self.logging.info("Deleting vectors of capture %s.", document_id)
        await self.do_ensure_index()
        await self._rag_client.do_delete_points_by_filter(
            self._rag_client.get_match_filter({"owner_id": user_id, "document_id": document_id})
        )
        self.logging.info("Deleted vectors of capture %s.", document_id)
