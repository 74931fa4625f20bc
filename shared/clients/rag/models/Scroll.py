from pydantic import BaseModel


class ScrollResult(BaseModel):
    """Structured output of a single scroll request.

    Attributes:
        result: List of point dicts returned by the scroll.
        status: Backend status string (e.g. "ok").
        time:   Time taken by the backend to execute the request.
    """

    result: list[dict]
    status: str
    time: float
