"""
Retry on explicit rate-limit rejection (HTTP 429).

Inspired by Tenacity's Retrying class, this module provides a context manager
for bounded retries, and an HttpClient decorator built on top of it.

Example:
    >>> from inflow._retry import Retrying
    >>> for attempt in Retrying(max_retries=3, default_delay=60.0):
    ...     with attempt:
    ...         response = http_client.get(url)
    ...         if response.status_code == 429:
    ...             raise ServerSideRateLimitError(response)
    ...         return response
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any, override

import requests

from inflow._errors import ServerSideRateLimitError
from inflow._http import HttpClient, QueryParams

logger = logging.getLogger(__name__)


class MaxRetriesExceededError(Exception):
    """
    Raised when all retry attempts are exhausted.

    Attributes:
        last_exception: The exception from the last attempt.
    """

    def __init__(self, message: str, last_exception: Exception | None = None):
        super().__init__(message)
        self.last_exception = last_exception


def parse_retry_after(
    value: str | None,
    default_delay: float,
    now: datetime | None = None,
) -> float:
    """
    Convert a Retry-After header value into seconds to wait.

    The value is tried as a number of seconds first (fractions truncated), then as an
    HTTP-date (difference from now, floored at zero). Anything else, including
    a missing header, falls back to `default_delay`.

    Example:
        >>> parse_retry_after("2", default_delay=60.0)
        2.0
        >>> parse_retry_after("soon", default_delay=60.0)
        60.0
    """
    if not value:
        return default_delay

    value = value.strip()
    try:
        return float(max(0, int(float(value))))
    except (ValueError, OverflowError):
        pass

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return default_delay
    if retry_at is None:
        return default_delay

    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    return max(0.0, (retry_at - now).total_seconds())


@dataclass(frozen=True)
class RetryAttempt:
    """
    Metadata about the current attempt within a retry loop.

    Attributes:
        attempt_number: Zero-based index of the current attempt (0 = first attempt).
        max_retries: Maximum number of retry attempts configured.
    """

    attempt_number: int
    max_retries: int

    @property
    def is_last_attempt(self) -> bool:
        """Return True if this is the last retry attempt."""
        return self.attempt_number >= self.max_retries


class Retrying:
    """
    Context manager for retrying on HTTP 429.

    Only ServerSideRateLimitError triggers a retry; every other exception
    propagates immediately. The wait before each retry comes from the
    rejection's Retry-After header (see `parse_retry_after`).

    Usage:
        >>> for attempt in Retrying(max_retries=3, default_delay=60.0):
        ...     with attempt:
        ...         return send_or_raise_on_429()

    Args:
        max_retries: Maximum number of retry attempts (default: 3).
            Use 0 to disable retries (single attempt only).
        default_delay: Seconds to wait when Retry-After is missing or invalid.
        logger_prefix: Prefix for log messages (e.g., "GET /products").

    Raises:
        MaxRetriesExceededError: When all retry attempts are exhausted.
            Contains the last ServerSideRateLimitError in `last_exception`.
    """

    def __init__(
        self,
        max_retries: int = 3,
        default_delay: float = 60.0,
        logger_prefix: str = "",
    ):
        assert max_retries is not None, "max_retries cannot be None"
        assert max_retries >= 0, f"max_retries must be >= 0, got {max_retries}"
        assert default_delay is not None, "default_delay cannot be None"
        assert default_delay >= 0, f"default_delay must be >= 0, got {default_delay}"

        self.max_retries = max_retries
        self.default_delay = default_delay
        self.logger_prefix = logger_prefix

        self._current_attempt = 0

    def __iter__(self) -> Generator[_RetryContext, None, None]:
        """Yield retry contexts for each attempt."""
        for attempt in range(self.max_retries + 1):
            self._current_attempt = attempt
            yield _RetryContext(self, attempt)

    def _prefix(self) -> str:
        return f"{self.logger_prefix} | " if self.logger_prefix else ""

    def _handle_retry(self, error: ServerSideRateLimitError) -> None:
        """Log and sleep before the next attempt."""
        sleep_time = parse_retry_after(
            error.response.headers.get("Retry-After"),
            default_delay=self.default_delay,
        )
        logger.warning(
            f"{self._prefix()}Rate limited (429). Waiting {sleep_time:.1f}s before "
            f"retry {self._current_attempt + 1}/{self.max_retries}..."
        )
        time.sleep(sleep_time)

    def _handle_exhausted(self, error: ServerSideRateLimitError) -> None:
        """
        Raises:
            MaxRetriesExceededError: Always raised with the last error.
        """
        logger.error(
            f"{self._prefix()}Max retries ({self.max_retries}) exceeded. Last error: {error}"
        )
        raise MaxRetriesExceededError(
            message=f"Max retries exceeded. Last error: {error}",
            last_exception=error,
        ) from error


class _RetryContext:
    """
    Context for a single retry attempt (internal).

    On success (no exception): exits normally
    On 429: suppresses the error and sleeps, loop continues
    On any other exception: re-raises, loop exits
    On exhausted retries: raises MaxRetriesExceededError
    """

    def __init__(self, retrying: Retrying, attempt: int):
        self._retrying = retrying
        self.attempt = attempt

    def __enter__(self) -> RetryAttempt:
        return RetryAttempt(
            attempt_number=self.attempt,
            max_retries=self._retrying.max_retries,
        )

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        if not isinstance(exc_val, ServerSideRateLimitError):
            return False

        if self.attempt >= self._retrying.max_retries:
            self._retrying._handle_exhausted(exc_val)
            return False  # Never reached

        self._retrying._handle_retry(exc_val)
        return True


# =============================================================================
# Retrying Decorator
# =============================================================================


class RetryingHttpClient(HttpClient):
    """
    HTTP client decorator that retries requests rejected with HTTP 429.

    A rejected request is retried at most `max_retries` times. Once retries
    are exhausted the final 429 response is returned unmodified, so callers
    can observe persistent throttling instead of looping forever. Any other
    response, successful or not, is returned immediately.

    Args:
        delegate: The underlying HTTP client (usually a ThrottledHttpClient).
        max_retries: Maximum retry attempts after a 429.
        default_delay: Seconds to wait when Retry-After is missing or invalid.
    """

    def __init__(self, delegate: HttpClient, max_retries: int = 3, default_delay: float = 60.0):
        assert delegate is not None, "Delegate HTTP client is required."

        self.delegate = delegate
        self.max_retries = max_retries
        self.default_delay = default_delay

    def _send(self, label: str, send: Callable[[], requests.Response]) -> requests.Response:
        retrying = Retrying(
            max_retries=self.max_retries,
            default_delay=self.default_delay,
            logger_prefix=label,
        )
        try:
            for attempt in retrying:
                with attempt:
                    response = send()
                    if response.status_code == 429:
                        raise ServerSideRateLimitError(response)
                    return response
        except MaxRetriesExceededError as e:
            assert isinstance(e.last_exception, ServerSideRateLimitError)
            return e.last_exception.response

        raise AssertionError("Retry loop ended without a response.")  # pragma: no cover

    @override
    def get(
        self,
        url: str,
        params: QueryParams | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        return self._send(f"GET {url}", lambda: self.delegate.get(url, params, headers, timeout))

    @override
    def put(
        self,
        url: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        return self._send(f"PUT {url}", lambda: self.delegate.put(url, data, headers, timeout))
