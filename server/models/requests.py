from pydantic import BaseModel, Field

from shared.models.context import MAX_SCOPE_SIZE, ContextSelector
from shared.models.tasks import EmbeddingTaskType


class EmbeddingTaskRequest(BaseModel):
    document_id: str
    user_id: str
    task_type: EmbeddingTaskType = EmbeddingTaskType.INDEX


class QueryRequest(BaseModel):
    query: str = Field(min_length=1)
    user_id: str
    document_ids: list[str] | None = Field(default=None, max_length=MAX_SCOPE_SIZE)
    limit: int = Field(default=5, ge=1, le=100)


class ContextQueryRequest(BaseModel):
    query: str = Field(min_length=1)
    user_id: str
    selector: ContextSelector
