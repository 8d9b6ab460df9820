"""
HTTP client abstraction for the inflow client.

All traffic goes through the HttpClient interface, so cross-cutting concerns
are added by wrapping one client in another:

    RetryingHttpClient            (retries HTTP 429, see inflow._retry)
      -> ThrottledHttpClient      (spacing + sliding window, see inflow._rate_limit)
        -> AuthenticatedHttpClient  (bearer token + raw exchange via requests)

Example:
    >>> from inflow._auth import ApiKeyAuthProvider
    >>> from inflow._http import AuthenticatedHttpClient
    >>> client = AuthenticatedHttpClient(auth_provider=ApiKeyAuthProvider("my-key"))
    >>> response = client.get("https://cloudapi.inflowinventory.com/<company>/products")
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, override

import requests

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from inflow._auth import AuthProvider


QueryParams = dict[str, Any]


# =============================================================================
# Abstract Base Class
# =============================================================================


class HttpClient(ABC):
    """
    Abstract base class for HTTP clients.

    Implementations handle authentication and can be wrapped with decorators
    for throttling, retries, and other cross-cutting concerns. Responses are
    always returned as-is; status codes are interpreted by the caller.

    Example:
        >>> class MyHttpClient(HttpClient):
        ...     def get(self, url, params=None, headers=None, timeout=30):
        ...         return requests.get(url, params=params, headers=headers, timeout=timeout)
        ...     def put(self, url, data=None, headers=None, timeout=30):
        ...         return requests.put(url, json=data, headers=headers, timeout=timeout)
    """

    @abstractmethod
    def get(
        self,
        url: str,
        params: QueryParams | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        """
        Execute an authenticated GET request.

        Args:
            url: The full URL to request.
            params: Query string parameters.
            headers: Additional headers to include (merged with auth headers).
            timeout: Request timeout in seconds.

        Returns:
            The HTTP response.

        Raises:
            requests.RequestException: If the HTTP exchange fails.
        """
        pass

    @abstractmethod
    def put(
        self,
        url: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        """
        Execute an authenticated PUT request with JSON body.

        Args:
            url: The full URL to request.
            data: JSON-serializable data to send in the request body.
            headers: Additional headers to include (merged with auth headers).
            timeout: Request timeout in seconds.

        Returns:
            The HTTP response.

        Raises:
            requests.RequestException: If the HTTP exchange fails.
        """
        pass


# =============================================================================
# Authenticated Implementation
# =============================================================================


class AuthenticatedHttpClient(HttpClient):
    """
    HTTP client that injects authorization headers from an AuthProvider.

    This is the innermost client: it performs the raw exchange with
    `requests` and does no throttling or retrying of its own.

    Args:
        auth_provider: Provider for authorization headers.
    """

    def __init__(self, auth_provider: "AuthProvider"):
        from inflow._auth import AuthProvider

        assert auth_provider is not None, "auth_provider cannot be None"
        assert isinstance(auth_provider, AuthProvider), "auth_provider must be an AuthProvider instance"

        self._auth = auth_provider

    @override
    def get(
        self,
        url: str,
        params: QueryParams | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        assert url, "URL cannot be empty."
        assert timeout is not None, "Timeout cannot be None."
        assert timeout > 0, "Timeout must be greater than 0."

        merged_headers = {**self._auth.get_auth_headers(), **(headers or {})}

        return requests.get(
            url,
            params=params,
            headers=merged_headers,
            timeout=timeout,
        )

    @override
    def put(
        self,
        url: str,
        data: Any = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
    ) -> requests.Response:
        assert url, "URL cannot be empty."
        assert timeout is not None, "Timeout cannot be None."
        assert timeout > 0, "Timeout must be greater than 0."

        merged_headers = {**self._auth.get_auth_headers(), **(headers or {})}

        return requests.put(
            url,
            json=data,
            headers=merged_headers,
            timeout=timeout,
        )
