from fastapi import APIRouter, BackgroundTasks, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import EmbeddingTaskRequest
from server.models.responses import EmbeddingTaskAccepted

router = APIRouter(prefix="/embeddings", tags=["embeddings"])


@router.post("/task", status_code=202)
async def embedding_task(
    request: Request,
    body: EmbeddingTaskRequest,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_api_key),
) -> EmbeddingTaskAccepted:
    """Accept an INDEX or DELETE task for a capture and run it in the background.

    Args:
        request (Request): FastAPI request (provides app.state.embedding_task_service).
        body (EmbeddingTaskRequest): JSON body containing document_id, user_id and task_type.
        background_tasks (BackgroundTasks): FastAPI background task queue.
        _ (None): Auth dependency result (unused).

    Returns:
        EmbeddingTaskAccepted: Acknowledgement payload.
    """
    task_service = request.app.state.embedding_task_service
    background_tasks.add_task(task_service.do_run, body.document_id, body.user_id, body.task_type)
    return EmbeddingTaskAccepted(status="accepted", document_id=body.document_id, task_type=body.task_type.value)
