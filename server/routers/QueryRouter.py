from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import ContextQueryRequest, QueryRequest
from server.models.responses import ContextQueryResponse, QueryResponse, SourceCard
from services.rag_search.source_attribution import build_message_sources, dedupe_sources, format_relevance
from shared.models.errors import QueryEmbeddingError
from shared.models.search import SourceEntry

router = APIRouter(prefix="/query", tags=["query"])


def _to_cards(entries: list[SourceEntry]) -> list[SourceCard]:
    return [
        SourceCard(
            document_id=entry.document_id,
            display_title=entry.display_title,
            relevance_score=entry.relevance_score,
            relevance_label=format_relevance(entry.relevance_score),
        )
        for entry in entries
    ]


@router.post("")
async def query_documents(
    request: Request,
    body: QueryRequest,
    _: None = Depends(verify_api_key),
) -> QueryResponse:
    """Execute a semantic search over the user's captures.

    Args:
        request (Request): FastAPI request (provides app.state.search_service and app.state.store_client).
        body (QueryRequest): JSON body with query string, user_id, optional capture scope and limit.
        _ (None): Auth dependency result (unused).

    Returns:
        QueryResponse: Ranked chunks plus one source card per capture.
    """
    store_client = request.app.state.store_client
    search_service = request.app.state.search_service

    api_key = await store_client.get_embedding_credential(body.user_id)
    try:
        chunks = await search_service.do_search(
            query=body.query,
            user_id=body.user_id,
            api_key=api_key,
            document_ids=body.document_ids,
            limit=body.limit,
        )
    except QueryEmbeddingError as e:
        raise HTTPException(status_code=502, detail=str(e))

    document_ids = list(dict.fromkeys(chunk.source_document_id for chunk in chunks))
    documents = await store_client.find_documents(document_ids) if document_ids else []
    titles = {document.id: document.get_display_title() for document in documents}

    return QueryResponse(
        query=body.query,
        results=chunks,
        sources=_to_cards(dedupe_sources(chunks, titles)),
        message_sources=build_message_sources(chunks),
        total=len(chunks),
    )


@router.post("/context")
async def query_context(
    request: Request,
    body: ContextQueryRequest,
    _: None = Depends(verify_api_key),
) -> ContextQueryResponse:
    """Resolve a context selector and retrieve grounding for a chat turn.

    Args:
        request (Request): FastAPI request (provides app.state.aggregation_service and app.state.store_client).
        body (ContextQueryRequest): JSON body with query string, user_id and context selector.
        _ (None): Auth dependency result (unused).

    Returns:
        ContextQueryResponse: The aggregated context with display-ready source cards.
    """
    store_client = request.app.state.store_client
    aggregation_service = request.app.state.aggregation_service

    api_key = await store_client.get_embedding_credential(body.user_id)
    try:
        context = await aggregation_service.do_aggregate(
            user_id=body.user_id,
            query=body.query,
            selector=body.selector,
            api_key=api_key,
        )
    except QueryEmbeddingError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return ContextQueryResponse(
        query=body.query,
        context=context,
        sources=_to_cards(context.attributed_sources),
        message_sources=build_message_sources(context.retrieved_chunks),
    )
