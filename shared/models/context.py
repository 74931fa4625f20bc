"""Pydantic models for the chat context selector."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

# upper bound on capture ids in one search filter
MAX_SCOPE_SIZE = 1000


class ContextType(str, Enum):
    ALL = "all"
    COLLECTION = "collection"
    BOOKMARKS = "bookmarks"
    SPECIFIC = "specific"
    MIXED = "mixed"


class ContextItemType(str, Enum):
    CAPTURE = "capture"
    COLLECTION = "collection"


class ContextItem(BaseModel):
    """A single explicitly selected capture or collection."""

    type: ContextItemType
    id: str


class DateRange(BaseModel):
    """Inclusive creation-date range."""

    start: datetime
    end: datetime


class ContextFilters(BaseModel):
    """Optional narrowing of the "all" and "bookmarks" selectors.

    Attributes:
        date_range:    Only captures created within this range.
        content_types: Allow-list of content-type tags ("all" only).
        limit:         Number of chunks to retrieve for the chat turn.
    """

    date_range: DateRange | None = None
    content_types: list[str] | None = None
    limit: int | None = None


class ContextSelector(BaseModel):
    """Describes which of a user's captures a chat turn may draw from.

    Constructed per chat turn. The items list is read by the "collection",
    "specific" and "mixed" selectors; "all" and "bookmarks" read the filters.
    """

    context_type: ContextType
    items: list[ContextItem] = []
    filters: ContextFilters = ContextFilters()

    def get_item_ids(self, item_type: ContextItemType) -> list[str]:
        return [item.id for item in self.items if item.type == item_type]
