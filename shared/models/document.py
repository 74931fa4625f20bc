"""Pydantic models for captures and collections as stored in the document store.

Hierarchy:
  CaptureDocument:   a single captured page with its cleaned text.
  CaptureCollection: a user-owned folder holding capture ids.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class DocumentStatus(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class CaptureDocument(BaseModel):
    """A capture owned by exactly one user.

    Attributes:
        id:                Store identifier (hex string).
        owner_id:          Identifier of the owning user.
        status:            Lifecycle status; only active captures are searchable.
        content:           Cleaned text content used for indexing.
        created_at:        Creation timestamp.
        bookmarked:        Whether the user bookmarked the capture.
        content_type:      Content-type tag (e.g. "article", "video").
        title:             Page title, if any.
        url:               Source URL, if any.
        processing_status: State of the embedding pipeline for this capture.
    """

    id: str
    owner_id: str
    status: DocumentStatus = DocumentStatus.ACTIVE
    content: str | None = None
    created_at: datetime | None = None
    bookmarked: bool = False
    content_type: str | None = None
    title: str | None = None
    url: str | None = None
    processing_status: ProcessingStatus | None = None

    def get_display_title(self) -> str:
        return self.title or self.url or "Untitled"


class CaptureCollection(BaseModel):
    """A user-owned collection. Membership is stored on the collection."""

    id: str
    owner_id: str
    name: str | None = None
    document_ids: list[str] = []
