"""Exceptions raised by indexsync services and integrations."""

from typing import Optional


class IndexSyncException(Exception):
    """Base exception for indexsync."""

    pass


class NotFoundException(IndexSyncException):
    """Raised when a requested collection does not exist."""

    pass


class ConfigurationError(IndexSyncException):
    """Raised when the service or a collection override is misconfigured.

    Examples:
    - No credential for the remote index API
    - Override module cannot be imported or has the wrong shape
    """

    pass


class RemoteAPIFailure(IndexSyncException):
    """Raised when a call to the remote index API fails.

    ``retryable`` marks failures that may succeed on a later attempt (timeouts,
    transport errors, 429 and 5xx responses). Authentication and other client errors
    are not retryable.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
        retry_after: Optional[float] = None,
    ):
        """Initialize the remote failure.

        Args:
            message: Human-readable description
            status_code: HTTP status of the failed response, if any
            retryable: Whether the operation may be retried
            retry_after: Seconds the remote asked us to wait (Retry-After header)
        """
        self.status_code = status_code
        self.retryable = retryable
        self.retry_after = retry_after
        super().__init__(message)


class TransformerContractViolation(IndexSyncException):
    """Raised when a user-supplied document transformer returns no value."""

    pass


class SourceReadFailure(IndexSyncException):
    """Raised when reading records from the host CMS fails."""

    pass
