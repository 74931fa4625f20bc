"""Pydantic models for per-capture embedding tasks."""

from enum import Enum

from pydantic import BaseModel

from shared.models.indexing import IndexingReport


class EmbeddingTaskType(str, Enum):
    INDEX = "INDEX"
    DELETE = "DELETE"


class EmbeddingTaskError(str, Enum):
    API_KEY_NOT_FOUND = "API_KEY_NOT_FOUND"
    CAPTURE_NOT_FOUND = "CAPTURE_NOT_FOUND"
    NO_TEXT_CONTENT = "NO_TEXT_CONTENT"
    TEXT_TOO_SHORT = "TEXT_TOO_SHORT"
    TASK_FAILED = "TASK_FAILED"


class EmbeddingTaskResult(BaseModel):
    """Outcome of one embedding task.

    Attributes:
        success:   Whether the task completed.
        document_id: The capture the task ran for.
        task_type: INDEX or DELETE.
        error:     Result code when the task did not complete.
        detail:    Error text of the last failed attempt, if any.
        report:    Indexing report for INDEX tasks.
    """

    success: bool
    document_id: str
    task_type: EmbeddingTaskType
    error: EmbeddingTaskError | None = None
    detail: str | None = None
    report: IndexingReport | None = None
