"""Retry helpers for remote index operations.

The index client never retries; the orchestrator wraps each remote call with
``remote_retry`` so transient failures get a bounded number of attempts.
"""

from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from indexsync.core.exceptions import RemoteAPIFailure


def should_retry_remote_failure(exception: BaseException) -> bool:
    """Check if exception is a retryable remote failure.

    Timeouts, transport errors, 429 and 5xx responses are retryable;
    authentication and other client errors are not.
    """
    return isinstance(exception, RemoteAPIFailure) and exception.retryable


def wait_retry_after_with_backoff(retry_state) -> float:
    """Wait strategy that respects Retry-After for throttled calls, exponential otherwise.

    Args:
        retry_state: tenacity retry state

    Returns:
        Number of seconds to wait before retry
    """
    exception = retry_state.outcome.exception()

    if isinstance(exception, RemoteAPIFailure) and exception.retry_after:
        # At least 1s so short windows don't burn through all attempts, at most 60s
        return min(max(exception.retry_after, 1.0), 60.0)

    return wait_exponential(multiplier=1, min=1, max=10)(retry_state)


def remote_retry(max_attempts: int):
    """Retry decorator applied around one remote index operation."""
    return retry(
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_exception(should_retry_remote_failure),
        wait=wait_retry_after_with_backoff,
        reraise=True,
    )
