"""
Module-level shortcuts backed by a default client.

The default client is configured from INFLOW.config (INFLOW_API_KEY and
INFLOW_COMPANY_ID environment variables, or INFLOW.configure()) and created
lazily on first use. Prefer an explicit InflowClient when more than one
configuration is needed.

Example:
    >>> import inflow
    >>> products = inflow.get_all("/products")
"""

import threading
from typing import Any

from inflow._client import InflowClient
from inflow._http import QueryParams

_default_client: InflowClient | None = None
_lock = threading.Lock()


def default_client() -> InflowClient:
    """
    Return the default client, creating it on first use.

    Uses double-checked locking for thread-safe lazy initialization.

    Raises:
        ConfigurationError: If credentials are not configured.
    """
    global _default_client
    if _default_client is None:
        with _lock:
            if _default_client is None:
                _default_client = InflowClient()
    return _default_client


def reset_default_client() -> None:
    """Drop the default client so the next call picks up the current config."""
    global _default_client
    with _lock:
        _default_client = None


def get(endpoint: str, params: QueryParams | None = None) -> Any:
    """GET an endpoint with the default client. See InflowClient.get."""
    return default_client().get(endpoint, params)


def get_all(endpoint: str, params: QueryParams | None = None, limit: int | None = None) -> list[Any]:
    """Fetch every page of a collection with the default client. See InflowClient.get_all."""
    return default_client().get_all(endpoint, params, limit=limit)


def get_one(endpoint: str, entity_id: str, params: QueryParams | None = None) -> Any:
    """GET a single entity with the default client. See InflowClient.get_one."""
    return default_client().get_one(endpoint, entity_id, params)


def put(endpoint: str, body: Any) -> Any:
    """PUT a JSON body with the default client. See InflowClient.put."""
    return default_client().put(endpoint, body)
