from services.rag_search.source_attribution import build_message_sources, dedupe_sources, format_relevance
from shared.models.search import RetrievedChunk


def chunk(doc: str, score: float, index: int = 0, text: str = "text") -> RetrievedChunk:
    return RetrievedChunk(text=text, source_document_id=doc, similarity_score=score, chunk_index=index)


def test_dedupe_keeps_max_score_in_first_seen_order():
    entries = dedupe_sources([chunk("A", 0.9), chunk("B", 0.4), chunk("A", 0.95, 1)])

    assert [(e.document_id, e.relevance_score) for e in entries] == [("A", 0.95), ("B", 0.4)]


def test_dedupe_does_not_resort_by_score():
    entries = dedupe_sources([chunk("A", 0.2), chunk("B", 0.9)])

    assert [e.document_id for e in entries] == ["A", "B"]


def test_dedupe_uses_titles_with_fallback():
    entries = dedupe_sources([chunk("A", 0.5), chunk("B", 0.5)], titles={"A": "Vector DB notes"})

    assert [e.display_title for e in entries] == ["Vector DB notes", "Untitled"]


def test_dedupe_of_nothing_is_empty():
    assert dedupe_sources([]) == []


def test_format_relevance():
    assert format_relevance(0.95) == "95% match"
    assert format_relevance(0.4) == "40% match"
    assert format_relevance(1.0) == "100% match"


def test_message_sources_carry_short_previews():
    long_text = "x" * 250
    sources = build_message_sources([chunk("A", 0.8, 3, long_text), chunk("A", 0.7, 4, "")])

    assert sources[0].document_id == "A"
    assert sources[0].chunk_index == 3
    assert sources[0].score == 0.8
    assert sources[0].preview == "x" * 100
    assert sources[1].preview is None
