"""Error taxonomy for the keyword discovery pipeline.

Only ``NoUsableSourcesError`` and ``DiscoveryCancelledError`` ever reach the
caller of a discovery run. The other errors describe per-item or per-phase
failures; they are captured as ``ItemFailure`` records and the pipeline
continues with partial or defaulted data.
"""

from dataclasses import dataclass


class KeywordDiscoveryError(Exception):
    """Base exception for keyword discovery errors."""

    pass


class SourceFetchError(KeywordDiscoveryError):
    """Raised when one seed expansion or competitor lookup fails."""

    def __init__(self, message: str, item: str, source: str) -> None:
        super().__init__(message)
        self.item = item
        self.source = source


class EnrichmentError(KeywordDiscoveryError):
    """Raised when the bulk metadata call fails as a whole."""

    def __init__(self, message: str, keyword_count: int = 0) -> None:
        super().__init__(message)
        self.keyword_count = keyword_count


class CrossReferenceError(KeywordDiscoveryError):
    """Raised when the wide performance fetch fails."""

    def __init__(self, message: str, property_id: str | None = None) -> None:
        super().__init__(message)
        self.property_id = property_id


class ConfigurationError(KeywordDiscoveryError):
    """Raised when a source is missing credentials or a property id."""

    def __init__(self, message: str, source: str) -> None:
        super().__init__(message)
        self.source = source


class NoUsableSourcesError(KeywordDiscoveryError):
    """Raised when a run has no seeds, no competitors and no performance access."""

    pass


class DiscoveryCancelledError(KeywordDiscoveryError):
    """Raised when the caller cancels a run between phases."""

    def __init__(self, run_id: str, next_phase: str) -> None:
        super().__init__(f"Discovery run {run_id} cancelled before {next_phase}")
        self.run_id = run_id
        self.next_phase = next_phase


@dataclass(frozen=True)
class ItemFailure:
    """One recorded, non-fatal failure.

    Attributes:
        phase: Pipeline phase the failure happened in
        item: The seed, competitor domain, property or batch that failed
        error_type: Exception class name
        message: Error message
    """

    phase: str
    item: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, phase: str, item: str, error: Exception) -> "ItemFailure":
        return cls(
            phase=phase,
            item=item,
            error_type=type(error).__name__,
            message=str(error),
        )
