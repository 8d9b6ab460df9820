"""
inFlow Inventory API client.

This module provides a synchronous client that throttles requests under both
inFlow rate limits, retries on HTTP 429, and drains paginated collections.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import requests

from inflow._auth import create_auth_provider
from inflow._config import AuthConfig, ConfigurationError
from inflow._errors import MalformedResponseError, RequestError, ServerSideRateLimitError
from inflow._http import AuthenticatedHttpClient, HttpClient, QueryParams
from inflow._pagination import Paginator
from inflow._rate_limit import PauseHook, ThrottledHttpClient, ThrottleGate
from inflow._retry import RetryingHttpClient

if TYPE_CHECKING:
    from inflow._config import InflowConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientOptions:
    """
    Per-client tuning options.

    Fields set to None will use values from global config (INFLOW.config).

    Attributes:
        request_timeout: HTTP request timeout in seconds.
        page_size: Items requested per page by get_all().
        min_spacing: Minimum seconds between two dispatches.
        threshold_remaining: Pause when this many requests (or fewer) remain in the window.
        window_duration: Sliding window length in seconds.
        recovery_buffer: Number of oldest requests to wait on before resuming.
        max_retries: Maximum retry attempts after a 429.
        default_delay: Seconds to wait on a 429 without a usable Retry-After.

    Example:
        >>> options = ClientOptions(threshold_remaining=50, recovery_buffer=100)
        >>> client = InflowClient(api_key="...", company_id="...", options=options)
    """

    request_timeout: int | None = None
    page_size: int | None = None
    min_spacing: float | None = None
    threshold_remaining: int | None = None
    window_duration: float | None = None
    recovery_buffer: int | None = None
    max_retries: int | None = None
    default_delay: float | None = None

    def with_defaults_from(self, cfg: "InflowConfig") -> "ClientOptions":
        """
        Returns a new ClientOptions with None values filled from config.

        Args:
            cfg: The InflowConfig to use for default values.

        Returns:
            A new ClientOptions with all fields resolved (no None values).
        """
        def pick(value: Any, default: Any) -> Any:
            return value if value is not None else default

        return ClientOptions(
            request_timeout=pick(self.request_timeout, cfg.api.request_timeout),
            page_size=pick(self.page_size, cfg.api.page_size),
            min_spacing=pick(self.min_spacing, cfg.rate_limit.min_spacing),
            threshold_remaining=pick(self.threshold_remaining, cfg.rate_limit.threshold_remaining),
            window_duration=pick(self.window_duration, cfg.rate_limit.window_duration),
            recovery_buffer=pick(self.recovery_buffer, cfg.rate_limit.recovery_buffer),
            max_retries=pick(self.max_retries, cfg.retry.max_retries),
            default_delay=pick(self.default_delay, cfg.retry.default_delay),
        )


class InflowClient:
    """
    Synchronous client for the inFlow Inventory API.

    Every request goes through the same chain:

    - retry on HTTP 429 using the Retry-After hint (bounded by max_retries);
    - spacing of at least `min_spacing` seconds between dispatches;
    - a proactive pause when the sliding-window quota runs low.

    Throttle state belongs to this instance only. Two clients never share
    spacing or window history, even with the same credentials.

    Example:
        >>> from inflow import InflowClient
        >>> client = InflowClient(api_key="...", company_id="...")
        >>> products = client.get_all("/products", {"includeInactive": True})
        >>> product = client.get_one("/products", products[0]["productId"])
        >>> client.put("/products", {**product, "name": "Renamed"})

    Attributes:
        company_id: The inFlow company GUID.
        base_url: The base URL for the inFlow API.
        options: Resolved tuning options.
        http_client: HTTP client chain used for every request.
    """

    def __init__(
        self,
        api_key: str | None = None,
        company_id: str | None = None,
        base_url: str | None = None,
        options: ClientOptions | None = None,
        on_rate_limit_pause: PauseHook | None = None,
        http_client: HttpClient | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: inFlow API key. If None, uses INFLOW.config.auth.api_key.
            company_id: inFlow company GUID. If None, uses INFLOW.config.auth.company_id.
            base_url: API base URL. If None, uses INFLOW.config.api.base_url.
            options: Tuning options. None fields fall back to INFLOW.config.
            on_rate_limit_pause: Hook called with a RateLimitPauseEvent on every
                proactive pause.
            http_client: Innermost HTTP client performing the raw exchange.
                If None, uses AuthenticatedHttpClient with the API key.
                Throttling and retrying are always layered on top of it.

        Raises:
            ConfigurationError: If api_key or company_id is missing.
        """
        from inflow._config import INFLOW
        cfg = INFLOW.config

        auth = AuthConfig(
            api_key=api_key or cfg.auth.api_key,
            company_id=company_id or cfg.auth.company_id,
        )
        if not auth.has_credentials():
            missing = "api_key" if not auth.api_key else "company_id"
            raise ConfigurationError(
                f"{missing} is required - get it from inFlow Settings > API, "
                f"or set INFLOW_API_KEY and INFLOW_COMPANY_ID."
            )

        resolved_options = (options or ClientOptions()).with_defaults_from(cfg)
        base_url = base_url or cfg.api.base_url

        if http_client is None:
            http_client = AuthenticatedHttpClient(auth_provider=create_auth_provider(auth))

        self.company_id = auth.company_id
        self.base_url = base_url.rstrip("/")
        self.api_version = cfg.api.api_version
        self.options = resolved_options

        self.gate = ThrottleGate(
            min_spacing=resolved_options.min_spacing,
            threshold_remaining=resolved_options.threshold_remaining,
            window_duration=resolved_options.window_duration,
            recovery_buffer=resolved_options.recovery_buffer,
            on_pause=on_rate_limit_pause,
        )
        self.http_client: HttpClient = RetryingHttpClient(
            delegate=ThrottledHttpClient(delegate=http_client, gate=self.gate),
            max_retries=resolved_options.max_retries,
            default_delay=resolved_options.default_delay,
        )
        self._paginator = Paginator(fetch_page=self.get, page_size=resolved_options.page_size)

    def __repr__(self) -> str:
        return f"InflowClient(company_id={self.company_id!r}, base_url={self.base_url!r})"

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def get(self, endpoint: str, params: QueryParams | None = None) -> Any:
        """
        GET an endpoint and return the decoded JSON body.

        Args:
            endpoint: Endpoint path relative to the company URL (e.g. "/products").
            params: Query parameters. None values are dropped.

        Raises:
            ServerSideRateLimitError: If the request is still rejected with 429
                after all retries.
            RequestError: On any other non-success status.
            MalformedResponseError: If the body is not valid JSON.
        """
        response = self.http_client.get(
            self._url(endpoint),
            params=_encode_params(params),
            headers=self._headers(),
            timeout=self.options.request_timeout,
        )
        self._raise_for_status("GET", endpoint, response)
        return self._decode(endpoint, response)

    def get_all(
        self,
        endpoint: str,
        params: QueryParams | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        """
        Fetch every item of a paginated collection.

        Args:
            endpoint: Collection endpoint path (e.g. "/products").
            params: Extra query parameters; `top` and `skip` are always set by the client.
            limit: Stop once this many items have been collected.

        Returns:
            Deduplicated items in server order. A non-paginated endpoint
            returning a single object yields a one-element list.
        """
        return self._paginator.fetch_all(endpoint, params, limit=limit)

    def get_one(self, endpoint: str, entity_id: str, params: QueryParams | None = None) -> Any:
        """GET a single entity by its ID (`{endpoint}/{entity_id}`)."""
        assert entity_id, "entity_id cannot be empty."
        return self.get(f"{endpoint}/{entity_id}", params)

    def put(self, endpoint: str, body: Any) -> Any:
        """
        PUT a JSON body to an endpoint.

        Returns:
            The decoded JSON body, or None if the response has no body (e.g. 204).
        """
        response = self.http_client.put(
            self._url(endpoint),
            data=body,
            headers=self._headers(json_body=True),
            timeout=self.options.request_timeout,
        )
        self._raise_for_status("PUT", endpoint, response)
        if not response.text:
            return None
        return self._decode(endpoint, response)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _url(self, endpoint: str) -> str:
        assert endpoint, "endpoint cannot be empty."
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        return f"{self.base_url}/{self.company_id}{endpoint}"

    def _headers(self, json_body: bool = False) -> dict[str, str]:
        headers = {"Accept": f"application/json;version={self.api_version}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    @staticmethod
    def _raise_for_status(method: str, endpoint: str, response: requests.Response) -> None:
        if response.status_code == 429:
            raise ServerSideRateLimitError(response, method=method, endpoint=endpoint)
        if not response.ok:
            raise RequestError(
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
                body=response.text,
            )

    @staticmethod
    def _decode(endpoint: str, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"❌ Malformed JSON body from {endpoint}: {e}")
            raise MalformedResponseError(endpoint=endpoint, body=response.text, cause=e) from e


def _encode_params(params: QueryParams | None) -> dict[str, str] | None:
    """Drop None values and render booleans as `true`/`false`."""
    if not params:
        return None
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded
