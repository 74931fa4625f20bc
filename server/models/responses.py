from pydantic import BaseModel

from shared.models.search import AggregatedContext, MessageSource, RetrievedChunk


class SourceCard(BaseModel):
    document_id: str
    display_title: str
    relevance_score: float
    relevance_label: str


class QueryResponse(BaseModel):
    query: str
    results: list[RetrievedChunk]
    sources: list[SourceCard]
    message_sources: list[MessageSource]
    total: int


class ContextQueryResponse(BaseModel):
    query: str
    context: AggregatedContext
    sources: list[SourceCard]
    message_sources: list[MessageSource]


class EmbeddingTaskAccepted(BaseModel):
    status: str
    document_id: str
    task_type: str
