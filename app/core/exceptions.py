# app/core/exceptions.py


class ClassificationPipelineError(Exception):
    """Base class for errors raised by a classification pass."""


class StoreConnectionError(ClassificationPipelineError):
    """The store is unreachable or rejected the credentials."""


class EmbeddingServiceError(ClassificationPipelineError):
    """The embedding call failed or returned vectors that do not line up with the input."""


class QueryError(ClassificationPipelineError):
    """A query or write failed inside a pipeline stage."""


class DataIntegrityViolation(ClassificationPipelineError):
    """A single item hit a constraint outside the expected upsert path."""

    def __init__(self, message: str, item_id: int | None = None):
        super().__init__(message)
        self.item_id = item_id
