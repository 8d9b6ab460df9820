"""
Global configuration for the inflow client.

This module provides a simple configuration system following Convention over Configuration (CoC).
Users can optionally call INFLOW.configure() at application startup to customize defaults.
If not called, sensible defaults are used.

Hierarchy of precedence (highest to lowest):
1. Arguments and ClientOptions passed to InflowClient
2. Values set via INFLOW.configure()
3. Environment variables (INFLOW_*) - when allow_env_override=True
4. Hardcoded defaults (in dataclass fields)

Example:
    >>> from inflow import INFLOW
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> spacing = INFLOW.config.rate_limit.min_spacing
    >>>
    >>> # Custom configuration
    >>> INFLOW.configure(
    ...     auth={"api_key": "x", "company_id": "y"},
    ...     rate_limit={"threshold_remaining": 50, "recovery_buffer": 100},
    ... )
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any, Self

# =============================================================================
# Exceptions
# =============================================================================


class ConfigurationError(ValueError):
    """
    Raised when the client configuration is missing or invalid.

    Raised synchronously at construction time, before any network activity.
    Never retried.
    """

    pass


class ConfigEnvVarError(ConfigurationError):
    """Raised when an environment variable has an invalid value."""

    def __init__(
        self,
        env_var: str,
        value: str,
        expected_type: str,
        cause: Exception | None = None,
    ):
        self.env_var = env_var
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Invalid value for {env_var}: '{value}' (expected {expected_type})")
        self.__cause__ = cause


class ConfigValidationError(ConfigurationError):
    """Raised when a configuration value fails validation."""

    def __init__(
        self,
        field: str,
        value: Any,
        message: str,
        section: str | None = None,
    ):
        self.field = field
        self.value = value
        self.section = section
        prefix = f"[{section}] " if section else ""
        super().__init__(f"{prefix}Invalid value for '{field}': {value!r}. {message}")


# =============================================================================
# Environment Variables
# =============================================================================


class EnvVars:
    """
    Utility class for reading environment variables with type conversion.

    Example:
        >>> EnvVars.get("INFLOW_API_REQUEST_TIMEOUT", type_hint=int)
        30
        >>> EnvVars.get("INFLOW_COMPANY_ID")
        'my-company-id'
        >>> EnvVars.get("UNDEFINED_VAR")
        None
    """

    @staticmethod
    def get(
        var_name: str,
        type_hint: Any = str,
        converter: Callable[[str], Any] | None = None,
    ) -> Any:
        """
        Read an environment variable with optional type conversion.

        Args:
            var_name: The environment variable name.
            type_hint: Type hint used to infer the converter (ignored if converter is provided).
            converter: Custom converter function (takes precedence over type_hint).

        Returns:
            The converted value, or None if env var is not set/empty.

        Raises:
            ConfigEnvVarError: If the value cannot be converted.
        """
        raw_value = os.environ.get(var_name)
        if not raw_value:  # None or empty string
            return None

        actual_converter = converter or EnvVars._infer_converter(type_hint)
        try:
            return actual_converter(raw_value)
        except (ValueError, TypeError) as e:
            raise ConfigEnvVarError(
                env_var=var_name,
                value=raw_value,
                expected_type=type_hint.__name__ if hasattr(type_hint, "__name__") else str(type_hint),
                cause=e,
            ) from e

    @staticmethod
    def _infer_converter(type_hint: Any) -> Callable[[str], Any]:
        """
        Infer converter function from type hint.

        Handles both actual types and string annotations (PEP 563).
        """
        type_str = str(type_hint)

        if type_hint is int or type_str == "int":
            return int
        if type_hint is float or type_str == "float":
            return float
        if type_hint is bool or type_str == "bool":
            return lambda v: v.lower() in ("true", "1", "yes")
        return str


# =============================================================================
# Base Class
# =============================================================================


@dataclass(frozen=True)
class OverridableConfig:
    """
    Base class for immutable configuration dataclasses.

    Provides `.with_overrides()` for creating new instances with partial
    field updates, and `.with_env_vars()` for applying the env vars declared
    in each field's metadata.

    Example:
        >>> config = RetryConfig()
        >>> custom = config.with_overrides({"max_retries": 5})
        >>> custom.max_retries
        5
    """

    def with_overrides(self, overrides: dict[str, Any]) -> Self:
        """
        Return a new instance with specified fields overridden.

        Args:
            overrides: Dict of field names to new values. Only existing
                fields are allowed; None values are ignored.

        Returns:
            New instance with updated values.

        Raises:
            ValueError: If overrides contains unknown field names.
        """
        if not overrides:
            return self

        valid_fields = {f.name for f in fields(self)}
        invalid_fields = set(overrides.keys()) - valid_fields

        if invalid_fields:
            raise ValueError(
                f"Unknown config fields: {invalid_fields}. "
                f"Valid fields are: {valid_fields}"
            )

        filtered = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered) if filtered else self

    def with_env_vars(self) -> Self:
        """
        Return new instance with environment variables applied.

        Raises:
            ConfigEnvVarError: If an env var has an invalid value.
        """
        overrides: dict[str, Any] = {}
        for f in fields(self):
            env_var = f.metadata.get("env")
            if env_var:
                value = EnvVars.get(
                    var_name=env_var,
                    type_hint=f.type,
                    converter=f.metadata.get("converter"),
                )
                if value is not None:
                    overrides[f.name] = value
        return self.with_overrides(overrides)


def _require_positive(section: str, name: str, value: float) -> None:
    if value <= 0:
        raise ConfigValidationError(name, value, "Must be greater than 0.", section=section)


def _require_non_negative(section: str, name: str, value: float) -> None:
    if value < 0:
        raise ConfigValidationError(name, value, "Must be >= 0.", section=section)


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class AuthConfig(OverridableConfig):
    """
    Credentials for the inFlow API.

    Both values come from inFlow Settings > API.

    Attributes:
        api_key: Bearer token sent in the Authorization header.
            Env var: INFLOW_API_KEY

        company_id: Company GUID, the first path segment of every API URL.
            Env var: INFLOW_COMPANY_ID
    """

    api_key: str | None = field(default=None, repr=False, metadata={"env": "INFLOW_API_KEY"})
    company_id: str | None = field(default=None, metadata={"env": "INFLOW_COMPANY_ID"})

    def has_credentials(self) -> bool:
        """Check if both api_key and company_id are set."""
        return bool(self.api_key and self.company_id)

    def validate(self) -> Self:
        """Validate auth configuration fields."""
        if self.api_key is not None and self.api_key == "":
            raise ConfigValidationError(
                "api_key", self.api_key,
                "Must not be empty string.", section="auth"
            )
        if self.company_id is not None and self.company_id == "":
            raise ConfigValidationError(
                "company_id", self.company_id,
                "Must not be empty string.", section="auth"
            )
        return self


@dataclass(frozen=True)
class ApiConfig(OverridableConfig):
    """
    Endpoint and request settings.

    Attributes:
        base_url: Root URL of the inFlow Cloud API.
            Env var: INFLOW_API_BASE_URL

        api_version: Version pinned in the Accept header.
            Env var: INFLOW_API_VERSION

        request_timeout: HTTP request timeout in seconds.
            Env var: INFLOW_API_REQUEST_TIMEOUT

        page_size: Number of items requested per page (`top`) by get_all().
            Env var: INFLOW_API_PAGE_SIZE
    """

    base_url: str = field(default="https://cloudapi.inflowinventory.com", metadata={"env": "INFLOW_API_BASE_URL"})
    api_version: str = field(default="2025-06-24", metadata={"env": "INFLOW_API_VERSION"})
    request_timeout: int = field(default=30, metadata={"env": "INFLOW_API_REQUEST_TIMEOUT"})
    page_size: int = field(default=100, metadata={"env": "INFLOW_API_PAGE_SIZE"})

    def validate(self) -> Self:
        """Validate API configuration fields."""
        if not (self.base_url.startswith("http://") or self.base_url.startswith("https://")):
            raise ConfigValidationError(
                "base_url", self.base_url,
                "Must start with 'http://' or 'https://'.", section="api"
            )
        if not self.api_version:
            raise ConfigValidationError(
                "api_version", self.api_version,
                "Must not be empty.", section="api"
            )
        _require_positive("api", "request_timeout", self.request_timeout)
        _require_positive("api", "page_size", self.page_size)
        return self


@dataclass(frozen=True)
class RateLimitConfig(OverridableConfig):
    """
    Throttling settings for the two server-side limits.

    The per-minute cap is handled by spacing requests at least `min_spacing`
    seconds apart. The sliding-window cap is handled proactively: when the
    X-RateLimit-Limit header reports `threshold_remaining` or fewer requests
    left, the client pauses until the `recovery_buffer` oldest requests of
    the last `window_duration` seconds have aged out.

    Attributes:
        min_spacing: Minimum seconds between two dispatches (1.2s = 50 req/min).
            Env var: INFLOW_RATE_LIMIT_MIN_SPACING

        threshold_remaining: Pause when this many requests (or fewer) remain.
            Env var: INFLOW_RATE_LIMIT_THRESHOLD_REMAINING

        window_duration: Sliding window length in seconds.
            Env var: INFLOW_RATE_LIMIT_WINDOW_DURATION

        recovery_buffer: Number of oldest in-window requests to wait on
            before resuming.
            Env var: INFLOW_RATE_LIMIT_RECOVERY_BUFFER
    """

    min_spacing: float = field(default=1.2, metadata={"env": "INFLOW_RATE_LIMIT_MIN_SPACING"})
    threshold_remaining: int = field(default=20, metadata={"env": "INFLOW_RATE_LIMIT_THRESHOLD_REMAINING"})
    window_duration: float = field(default=3600.0, metadata={"env": "INFLOW_RATE_LIMIT_WINDOW_DURATION"})
    recovery_buffer: int = field(default=50, metadata={"env": "INFLOW_RATE_LIMIT_RECOVERY_BUFFER"})

    def validate(self) -> Self:
        """Validate rate limit configuration fields."""
        _require_non_negative("rate_limit", "min_spacing", self.min_spacing)
        _require_non_negative("rate_limit", "threshold_remaining", self.threshold_remaining)
        _require_positive("rate_limit", "window_duration", self.window_duration)
        _require_positive("rate_limit", "recovery_buffer", self.recovery_buffer)
        return self


@dataclass(frozen=True)
class RetryConfig(OverridableConfig):
    """
    Retry policy for HTTP 429 rejections.

    Attributes:
        max_retries: Maximum retry attempts after a 429.
            Use 0 to disable retries (single attempt only).
            Use 3 for 4 total attempts (1 original + 3 retries).
            Env var: INFLOW_RETRY_MAX_RETRIES

        default_delay: Seconds to wait when the 429 carries no usable
            Retry-After header.
            Env var: INFLOW_RETRY_DEFAULT_DELAY
    """

    max_retries: int = field(default=3, metadata={"env": "INFLOW_RETRY_MAX_RETRIES"})
    default_delay: float = field(default=60.0, metadata={"env": "INFLOW_RETRY_DEFAULT_DELAY"})

    def validate(self) -> Self:
        """Validate retry configuration fields."""
        _require_non_negative("retry", "max_retries", self.max_retries)
        _require_non_negative("retry", "default_delay", self.default_delay)
        return self


@dataclass(frozen=True)
class InflowConfig:
    """
    Global configuration for the inflow client.

    Aggregates all configuration sections. Access via `INFLOW.config`.

    Attributes:
        auth: Credentials.
        api: Endpoint and request settings.
        rate_limit: Throttling settings.
        retry: Retry policy for HTTP 429.

    Example:
        >>> from inflow import INFLOW
        >>> INFLOW.config.api.page_size
        100
        >>> INFLOW.config.retry.max_retries
        3
    """

    auth: AuthConfig = field(default_factory=AuthConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)

    def with_env_vars(self) -> InflowConfig:
        """
        Return a new config with environment variables applied on top.

        Returns:
            New InflowConfig instance with INFLOW_* env vars applied.
        """
        return InflowConfig(
            auth=self.auth.with_env_vars(),
            api=self.api.with_env_vars(),
            rate_limit=self.rate_limit.with_env_vars(),
            retry=self.retry.with_env_vars(),
        )

    def with_section_overrides(
        self,
        *,
        auth: dict[str, Any] | None = None,
        api: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        retry: dict[str, Any] | None = None,
    ) -> InflowConfig:
        """
        Return a new config with overrides applied to nested sections.

        Example:
            >>> config = InflowConfig()
            >>> custom = config.with_section_overrides(retry={"max_retries": 5})
        """
        return InflowConfig(
            auth=self.auth.with_overrides(auth or {}),
            api=self.api.with_overrides(api or {}),
            rate_limit=self.rate_limit.with_overrides(rate_limit or {}),
            retry=self.retry.with_overrides(retry or {}),
        )

    def validate(self) -> InflowConfig:
        """Validate every section."""
        self.auth.validate()
        self.api.validate()
        self.rate_limit.validate()
        self.retry.validate()
        return self


# =============================================================================
# Global Configuration Singleton
# =============================================================================


class _INFLOW:
    """
    Singleton holding the process-wide default configuration.

    Only configuration lives here; throttle state always belongs to a
    single InflowClient instance.

    Example:
        >>> from inflow import INFLOW
        >>> INFLOW.configure(auth={"api_key": "..."})
        >>> print(INFLOW.config.api.request_timeout)
    """

    def __init__(self) -> None:
        """Initialize with defaults and environment variables."""
        self._config: InflowConfig = InflowConfig().with_env_vars()

    def configure(
        self,
        *,
        auth: dict[str, Any] | None = None,
        api: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        retry: dict[str, Any] | None = None,
        allow_env_override: bool = True,
    ) -> InflowConfig:
        """
        Configure client defaults.

        Args:
            auth: Credential overrides (api_key, company_id).
            api: API overrides (base_url, api_version, request_timeout, page_size).
            rate_limit: Throttling overrides.
            retry: Retry policy overrides.
            allow_env_override: If True (default), env vars are used as fallback
                for fields NOT provided. If False, ignores env vars entirely.

        Returns:
            The configured InflowConfig instance.

        Raises:
            ValueError: If any dict contains unknown field names.
            ConfigValidationError: If any config value fails validation.
        """
        base = InflowConfig()
        if allow_env_override:
            base = base.with_env_vars()

        self._config = base.with_section_overrides(
            auth=auth,
            api=api,
            rate_limit=rate_limit,
            retry=retry,
        )
        return self.validate()

    @property
    def config(self) -> InflowConfig:
        """Access current configuration (read-only)."""
        return self._config

    def reset(self) -> InflowConfig:
        """
        Reset configuration to defaults + env vars.

        Useful for testing to ensure clean state between tests.
        """
        self._config = InflowConfig().with_env_vars()
        return self.validate()

    def validate(self) -> InflowConfig:
        """
        Validate current configuration.

        Raises:
            ConfigValidationError: If any config value is invalid.
        """
        return self._config.validate()

    def __repr__(self) -> str:
        return f"INFLOW(config={self._config!r})"


# Global singleton instance - always reflects current configuration
INFLOW: _INFLOW = _INFLOW()
INFLOW.validate()  # Validate defaults + env vars on module load
