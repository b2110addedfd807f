class DomainStreamError(Exception):
    """Base class for domain-specific errors."""

    pass


class SuffixListUnavailableError(DomainStreamError):
    """Exception raised when the TLD list cannot be fetched or is empty.

    Fatal for the request: without suffixes no domain can ever be matched.
    """

    pass


class UpstreamStreamError(DomainStreamError):
    """Exception raised when the generative text stream fails mid-read."""

    pass


class StreamClosedError(DomainStreamError):
    """Exception raised when writing to, or closing, an already closed stream."""

    pass


class AvailabilityLookupError(DomainStreamError):
    """Exception raised when an availability query fails or is rejected.

    Recoverable: callers degrade to optimistic, non-definitive results.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
