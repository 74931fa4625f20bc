"""Collapses retrieved chunks into the sources shown next to an answer."""

from shared.models.search import MessageSource, RetrievedChunk, SourceEntry

PREVIEW_LENGTH = 100


def dedupe_sources(chunks: list[RetrievedChunk], titles: dict[str, str] | None = None) -> list[SourceEntry]:
    """Group chunks by capture, keeping the best score per capture.

    Entries appear in the order their capture was first seen, they are not re-sorted by score.

    Args:
        chunks (list[RetrievedChunk]): Retrieved chunks, usually in similarity order.
        titles (dict[str, str] | None): Display title per capture id. Missing titles fall back to "Untitled".

    Returns:
        list[SourceEntry]: One entry per capture.
    """
    titles = titles or {}
    entries: dict[str, SourceEntry] = {}
    for chunk in chunks:
        entry = entries.get(chunk.source_document_id)
        if entry is None:
            entries[chunk.source_document_id] = SourceEntry(
                document_id=chunk.source_document_id,
                display_title=titles.get(chunk.source_document_id) or "Untitled",
                relevance_score=chunk.similarity_score,
            )
        elif chunk.similarity_score > entry.relevance_score:
            entry.relevance_score = chunk.similarity_score
    return list(entries.values())


def format_relevance(score: float) -> str:
    """Render a similarity score for display, e.g. 0.953 -> "95% match"."""
    return f"{round(score * 100)}% match"


def build_message_sources(chunks: list[RetrievedChunk]) -> list[MessageSource]:
    """Build the source references stored on an assistant message, one per chunk."""
    return [
        MessageSource(
            document_id=chunk.source_document_id,
            score=chunk.similarity_score,
            chunk_index=chunk.chunk_index,
            preview=chunk.text[:PREVIEW_LENGTH] if chunk.text else None,
        )
        for chunk in chunks
    ]
