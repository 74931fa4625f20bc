"""VectorPoint model: metadata stored alongside each vector chunk in the index."""

from pydantic import BaseModel


class VectorPoint(BaseModel):
    """Payload stored alongside each vector chunk.

    The owner_id field is mandatory and enforced as a security invariant on
    every upsert, delete and search operation. The index has no per-user
    namespacing, so this field is the only access-control boundary.

    Attributes:
        text:        Raw text content of this chunk.
        owner_id:    MANDATORY, id of the user owning the capture.
        document_id: Id of the capture this chunk belongs to.
        chunk_index: Zero-based position of this chunk within the capture.
        created_at:  ISO-8601 timestamp of when the chunk was indexed.
    """

    text: str
    owner_id: str
    document_id: str
    chunk_index: int
    created_at: str
