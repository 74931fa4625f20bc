"""Exceptions raised by the retrieval pipeline."""


class QueryEmbeddingError(Exception):
    """The query could not be embedded, so no search can run."""


class IndexEnsureError(Exception):
    """The vector collection could not be created or verified."""
