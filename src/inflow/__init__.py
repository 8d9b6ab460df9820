"""
inFlow Inventory API client for Python.

A rate-limit aware client for the inFlow Inventory Cloud API. Requests are
spaced under the per-minute cap, paused ahead of the sliding-window cap,
retried on HTTP 429, and paginated collections are drained and deduplicated.

Quick Start:
    >>> from inflow import InflowClient
    >>> client = InflowClient(api_key="...", company_id="...")
    >>> products = client.get_all("/products")
    >>> product = client.get_one("/products", products[0]["productId"])

Module-level shortcuts (configured from INFLOW_API_KEY / INFLOW_COMPANY_ID):
    >>> import inflow
    >>> customers = inflow.get_all("/customers", {"includeInactive": True})

Global Configuration:
    >>> from inflow import INFLOW
    >>> INFLOW.configure(
    ...     auth={"api_key": "x", "company_id": "y"},
    ...     rate_limit={"threshold_remaining": 50, "recovery_buffer": 100},
    ...     retry={"max_retries": 5},
    ... )

Main Classes:
    - InflowClient: Client with get, get_all, get_one and put.
    - ClientOptions: Per-client tuning options.
    - RateLimitPauseEvent: Snapshot passed to the on_rate_limit_pause hook.

Configuration:
    - INFLOW: Global configuration singleton.
    - InflowConfig, AuthConfig, ApiConfig, RateLimitConfig, RetryConfig.
    - ConfigurationError, ConfigEnvVarError, ConfigValidationError.

Errors:
    - InflowError: Base class for API errors.
    - RequestError: Non-success status code.
    - ServerSideRateLimitError: HTTP 429 still returned after all retries.
    - MalformedResponseError: Successful status with an undecodable body.

Building Blocks:
    - HttpClient, AuthenticatedHttpClient, ThrottledHttpClient, RetryingHttpClient.
    - AuthProvider, ApiKeyAuthProvider.
    - WindowTracker, ThrottleGate, Retrying, Paginator.
"""

from importlib.metadata import version as _get_version

__version__ = _get_version("inflow-client")

from inflow._auth import (
    ApiKeyAuthProvider,
    AuthProvider,
    create_auth_provider,
)
from inflow._client import ClientOptions, InflowClient
from inflow._config import (
    INFLOW,
    ApiConfig,
    AuthConfig,
    ConfigEnvVarError,
    ConfigurationError,
    ConfigValidationError,
    InflowConfig,
    RateLimitConfig,
    RetryConfig,
)
from inflow._default import (
    default_client,
    get,
    get_all,
    get_one,
    put,
    reset_default_client,
)
from inflow._errors import (
    InflowError,
    MalformedResponseError,
    RequestError,
    ServerSideRateLimitError,
)
from inflow._http import AuthenticatedHttpClient, HttpClient
from inflow._pagination import PageCursor, Paginator, decode_page, extract_id
from inflow._rate_limit import (
    QuotaUsage,
    RateLimitPauseEvent,
    ThrottledHttpClient,
    ThrottleGate,
    WindowTracker,
)
from inflow._retry import (
    MaxRetriesExceededError,
    Retrying,
    RetryingHttpClient,
    parse_retry_after,
)

__all__ = [
    "__version__",
    # Client
    "InflowClient",
    "ClientOptions",
    # Default client shortcuts
    "default_client",
    "reset_default_client",
    "get",
    "get_all",
    "get_one",
    "put",
    # Configuration
    "INFLOW",
    "InflowConfig",
    "AuthConfig",
    "ApiConfig",
    "RateLimitConfig",
    "RetryConfig",
    "ConfigurationError",
    "ConfigEnvVarError",
    "ConfigValidationError",
    # Errors
    "InflowError",
    "RequestError",
    "ServerSideRateLimitError",
    "MalformedResponseError",
    # Authentication
    "AuthProvider",
    "ApiKeyAuthProvider",
    "create_auth_provider",
    # HTTP Client
    "HttpClient",
    "AuthenticatedHttpClient",
    "ThrottledHttpClient",
    "RetryingHttpClient",
    # Rate limiting
    "WindowTracker",
    "ThrottleGate",
    "QuotaUsage",
    "RateLimitPauseEvent",
    # Retry
    "Retrying",
    "MaxRetriesExceededError",
    "parse_retry_after",
    # Pagination
    "Paginator",
    "PageCursor",
    "decode_page",
    "extract_id",
]
