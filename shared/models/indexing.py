"""Pydantic models describing indexing outcomes."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class SkipReason(str, Enum):
    EMBEDDING_FAILED = "embedding_failed"
    DIMENSION_MISMATCH = "dimension_mismatch"


class EmbeddedChunk(BaseModel):
    """A chunk that produced a valid vector."""

    outcome: Literal["embedded"] = "embedded"
    chunk_index: int
    vector: list[float]


class SkippedChunk(BaseModel):
    """A chunk that was left out of the upsert."""

    outcome: Literal["skipped"] = "skipped"
    chunk_index: int
    reason: SkipReason
    detail: str | None = None


ChunkOutcome = Annotated[Union[EmbeddedChunk, SkippedChunk], Field(discriminator="outcome")]


class EnsureStatus(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


class EnsureResult(BaseModel):
    """Outcome of an idempotent create (collection or payload index).

    Attributes:
        target: What was ensured, e.g. "collection:documents" or "payload_index:owner_id".
        status: Created, already existing, or failed.
        error:  Error text when status is FAILED.
    """

    target: str
    status: EnsureStatus
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != EnsureStatus.FAILED


class IndexingReport(BaseModel):
    """Summary of one indexing call.

    Attributes:
        document_id:    The indexed capture.
        chunk_count:    Number of chunks produced by the chunker.
        outcomes:       Per-chunk outcome, in chunk order.
        points_upserted: Number of points written to the index (0 if nothing was upserted).
        verified:       Result of the post-upsert existence probe. None if the probe itself failed
                        or no upsert happened.
    """

    document_id: str
    chunk_count: int = 0
    outcomes: list[ChunkOutcome] = []
    points_upserted: int = 0
    verified: bool | None = None

    def get_skipped(self) -> list[SkippedChunk]:
        return [outcome for outcome in self.outcomes if isinstance(outcome, SkippedChunk)]
