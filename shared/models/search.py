"""Pydantic models for retrieval results and source attribution."""

from pydantic import BaseModel


class RetrievedChunk(BaseModel):
    """A single chunk returned by the vector search, with provenance."""

    text: str
    source_document_id: str
    source_type: str = "capture"
    similarity_score: float
    chunk_index: int


class SourceEntry(BaseModel):
    """One displayed source, de-duplicated by document."""

    document_id: str
    display_title: str
    relevance_score: float


class MessageSource(BaseModel):
    """Source reference stored on an assistant chat message."""

    document_id: str
    score: float
    chunk_index: int
    preview: str | None = None


class AggregatedContext(BaseModel):
    """Everything a chat turn needs for grounding.

    Attributes:
        sources:            Metadata for every capture in the resolved scope.
        retrieved_chunks:   Ranked chunks from the vector search.
        attributed_sources: Retrieved chunks collapsed into one entry per capture.
        total_sources:      Size of the resolved scope.
    """

    sources: list[SourceEntry] = []
    retrieved_chunks: list[RetrievedChunk] = []
    attributed_sources: list[SourceEntry] = []
    total_sources: int = 0
