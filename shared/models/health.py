"""Pydantic models describing client health at startup."""

from pydantic import BaseModel, computed_field


class ClientHealth(BaseModel):
    """Health of a single backend client.

    Attributes:
        client_type:           "rag", "embed" or "store".
        engine:                Engine name (e.g. "qdrant").
        configuration_problems: Missing or invalid configuration keys.
        reachable:             Whether the health probe succeeded.
        detail:                Error text when the probe failed.
    """

    client_type: str
    engine: str
    configuration_problems: list[str] = []
    reachable: bool = False
    detail: str | None = None

    @computed_field
    @property
    def healthy(self) -> bool:
        return self.reachable and not self.configuration_problems


class StartupReport(BaseModel):
    """Result of the explicit startup check over all clients."""

    clients: list[ClientHealth] = []

    @computed_field
    @property
    def healthy(self) -> bool:
        return all(client.healthy for client in self.clients)
