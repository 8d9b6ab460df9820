"""
Authentication providers for the inflow client.

The inFlow API authenticates every request with a static API key sent as a
bearer token. Providers only build headers; they never talk to the network.

Example:
    >>> from inflow._auth import ApiKeyAuthProvider
    >>> auth = ApiKeyAuthProvider(api_key="my-api-key")
    >>> headers = auth.get_auth_headers()
    >>> # {"Authorization": "Bearer my-api-key"}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from inflow._config import ConfigurationError

if TYPE_CHECKING:
    from inflow._config import AuthConfig


class AuthProvider(ABC):
    """
    Abstract base class for authentication providers.

    Example:
        >>> class MyAuthProvider(AuthProvider):
        ...     def get_access_token(self) -> str:
        ...         return "my-token"
        ...
        >>> MyAuthProvider().get_auth_headers()
        {'Authorization': 'Bearer my-token'}
    """

    @abstractmethod
    def get_access_token(self) -> str:
        """
        Return the access token (without "Bearer" prefix).
        """
        pass

    def get_auth_headers(self) -> dict[str, str]:
        """
        Return authorization headers for HTTP requests.

        Returns:
            Dict with Authorization header containing Bearer token.
        """
        return {"Authorization": f"Bearer {self.get_access_token()}"}


class ApiKeyAuthProvider(AuthProvider):
    """
    Bearer token authentication with an inFlow API key.

    Args:
        api_key: API key from inFlow Settings > API.

    Raises:
        ConfigurationError: If api_key is empty.
    """

    def __init__(self, api_key: str):
        if not api_key:
            raise ConfigurationError(
                "api_key is required - get your API key from inFlow Settings > API"
            )
        self._api_key = api_key

    def get_access_token(self) -> str:
        return self._api_key

    def __repr__(self) -> str:
        return "ApiKeyAuthProvider(api_key='***')"


def create_auth_provider(config: AuthConfig | None = None) -> ApiKeyAuthProvider:
    """
    Create an ApiKeyAuthProvider from configuration.

    Args:
        config: Optional AuthConfig with credentials. If None, uses
            INFLOW.config.auth from global configuration.

    Returns:
        Configured ApiKeyAuthProvider instance.

    Raises:
        ConfigurationError: If the API key is not configured.

    Example:
        >>> from inflow import INFLOW
        >>> INFLOW.configure(auth={"api_key": "x", "company_id": "y"})
        >>> auth = create_auth_provider()
    """
    if config is None:
        from inflow._config import INFLOW

        config = INFLOW.config.auth

    if not config.api_key:
        raise ConfigurationError(
            "API key not configured. "
            "Set api_key via INFLOW.configure() or the INFLOW_API_KEY environment variable."
        )

    return ApiKeyAuthProvider(api_key=config.api_key)
