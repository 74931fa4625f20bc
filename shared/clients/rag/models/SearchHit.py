from pydantic import BaseModel


class SearchHit(BaseModel):
    """A single nearest-neighbour hit as returned by the index.

    Attributes:
        id:      Point id.
        score:   Similarity score as reported by the index (no renormalisation).
        payload: Point payload, empty if not requested.
    """

    id: str | int
    score: float
    payload: dict = {}
