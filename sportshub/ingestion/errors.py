"""Exceptions raised by the ingestion core."""


class IngestionError(Exception):
    """Base class for ingestion errors."""


class ProviderUnavailable(IngestionError):
    """A provider is unconfigured, unreachable or returned an unusable payload."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source} unavailable: {reason}")


class InvalidCandidate(IngestionError):
    """A candidate is missing required fields or lies outside the bounding box."""


class DuplicateConflict(IngestionError):
    """A committed candidate matches an entity that already exists."""

    def __init__(self, message: str, matched_id: int | None = None):
        self.matched_id = matched_id
        super().__init__(message)


class InvalidTransition(IngestionError):
    """An approval decision would overturn an earlier terminal decision."""


class StoreFailure(IngestionError):
    """The canonical store failed to read or write."""
