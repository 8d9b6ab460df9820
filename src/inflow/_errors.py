"""
Exceptions raised by the inFlow client.

Configuration problems are raised as ConfigurationError (see `inflow._config`)
before any network activity. Everything here is raised while talking to the API.
"""

from __future__ import annotations

import requests


class InflowError(Exception):
    """Base class for errors raised while calling the inFlow API."""

    pass


class RequestError(InflowError):
    """
    Raised when the API answers with a non-success status code.

    These errors are never retried by the client; retrying them (if at all)
    is up to the caller.

    Attributes:
        method: HTTP method of the failed request (e.g. "GET").
        endpoint: Endpoint path relative to the company URL (e.g. "/products").
        status_code: HTTP status code returned by the server.
        body: Response body as text.

    Example:
        >>> try:
        ...     client.get("/products/unknown-id")
        ... except RequestError as e:
        ...     print(e.status_code, e.body)
    """

    def __init__(self, method: str, endpoint: str, status_code: int, body: str):
        self.method = method
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        super().__init__(f"API {method} {endpoint} failed ({status_code}): {body}")


class ServerSideRateLimitError(InflowError):
    """
    Raised when the server rejects a request with HTTP 429 (Too Many Requests).

    Inside the retry loop this error signals a retryable rejection. It only
    reaches the caller once all retries are exhausted, carrying the final
    rejection's status and body. It is not a RequestError: throttling is
    reported apart from other non-success statuses.

    Attributes:
        response: The HTTP response with status code 429.
        method: HTTP method of the rejected request.
        endpoint: Endpoint path (or full URL when raised by the transport).
        status_code: HTTP status code (429).
        body: Response body as text.
    """

    def __init__(self, response: requests.Response, method: str = "", endpoint: str = ""):
        self.response = response
        self.method = method
        self.endpoint = endpoint or response.url or ""
        self.status_code = response.status_code
        self.body = response.text
        super().__init__(
            f"API {method} {self.endpoint} rate limited ({self.status_code}): {self.body}"
        )


class MalformedResponseError(InflowError):
    """
    Raised when a successful response has a body that is not valid JSON.

    The request itself succeeded, so this is kept apart from RequestError.

    Attributes:
        endpoint: Endpoint path that returned the malformed body.
        body: The raw response text.
    """

    def __init__(self, endpoint: str, body: str, cause: Exception | None = None):
        self.endpoint = endpoint
        self.body = body
        self.cause = cause
        super().__init__(f"API {endpoint} returned a malformed JSON body: {body[:200]!r}")
