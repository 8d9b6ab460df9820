"""Tests for global configuration module."""

import os
import unittest
from unittest.mock import patch

from inflow._config import (
    INFLOW,
    ApiConfig,
    AuthConfig,
    ConfigEnvVarError,
    ConfigurationError,
    ConfigValidationError,
    EnvVars,
    InflowConfig,
    RateLimitConfig,
    RetryConfig,
)

CLEAN_ENV = {k: v for k, v in os.environ.items() if not k.startswith("INFLOW_")}


class TestDefaults(unittest.TestCase):
    """Tests for default configuration values."""

    def setUp(self):
        env = patch.dict(os.environ, CLEAN_ENV, clear=True)
        env.start()
        self.addCleanup(env.stop)
        INFLOW.reset()
        self.addCleanup(INFLOW.reset)

    def test_api_defaults(self):
        """Should point at the inFlow Cloud API with a pinned version."""
        self.assertEqual(INFLOW.config.api.base_url, "https://cloudapi.inflowinventory.com")
        self.assertEqual(INFLOW.config.api.api_version, "2025-06-24")
        self.assertEqual(INFLOW.config.api.request_timeout, 30)
        self.assertEqual(INFLOW.config.api.page_size, 100)

    def test_rate_limit_defaults(self):
        """Should stay under 60 req/min and pause 20 requests before the window cap."""
        self.assertEqual(INFLOW.config.rate_limit.min_spacing, 1.2)
        self.assertEqual(INFLOW.config.rate_limit.threshold_remaining, 20)
        self.assertEqual(INFLOW.config.rate_limit.window_duration, 3600.0)
        self.assertEqual(INFLOW.config.rate_limit.recovery_buffer, 50)

    def test_retry_defaults(self):
        self.assertEqual(INFLOW.config.retry.max_retries, 3)
        self.assertEqual(INFLOW.config.retry.default_delay, 60.0)

    def test_auth_defaults(self):
        """Should have no credentials when none are configured."""
        self.assertIsNone(INFLOW.config.auth.api_key)
        self.assertIsNone(INFLOW.config.auth.company_id)
        self.assertFalse(INFLOW.config.auth.has_credentials())


class TestInflowConfigure(unittest.TestCase):
    """Tests for INFLOW.configure() method."""

    def setUp(self):
        env = patch.dict(os.environ, CLEAN_ENV, clear=True)
        env.start()
        self.addCleanup(env.stop)
        INFLOW.reset()
        self.addCleanup(INFLOW.reset)

    def test_overrides_section_values(self):
        INFLOW.configure(rate_limit={"threshold_remaining": 50, "recovery_buffer": 100})
        self.assertEqual(INFLOW.config.rate_limit.threshold_remaining, 50)
        self.assertEqual(INFLOW.config.rate_limit.recovery_buffer, 100)
        # Other values should remain default
        self.assertEqual(INFLOW.config.rate_limit.min_spacing, 1.2)

    def test_sets_credentials(self):
        INFLOW.configure(auth={"api_key": "key", "company_id": "company"})
        self.assertTrue(INFLOW.config.auth.has_credentials())

    def test_returns_config(self):
        result = INFLOW.configure(retry={"max_retries": 5})
        self.assertIsInstance(result, InflowConfig)
        self.assertIs(result, INFLOW.config)

    def test_unknown_field_raises(self):
        with self.assertRaises(ValueError) as ctx:
            INFLOW.configure(retry={"max_retires": 5})
        self.assertIn("max_retires", str(ctx.exception))

    def test_invalid_value_raises_validation_error(self):
        with self.assertRaises(ConfigValidationError) as ctx:
            INFLOW.configure(rate_limit={"window_duration": 0})
        self.assertEqual(ctx.exception.field, "window_duration")
        self.assertEqual(ctx.exception.section, "rate_limit")

    def test_sections_are_isolated(self):
        INFLOW.configure(api={"request_timeout": 90})
        self.assertEqual(INFLOW.config.retry.max_retries, 3)

    def test_reset_restores_defaults(self):
        INFLOW.configure(api={"page_size": 10})
        INFLOW.reset()
        self.assertEqual(INFLOW.config.api.page_size, 100)


class TestEnvVars(unittest.TestCase):
    """Tests for environment variable override."""

    def setUp(self):
        env = patch.dict(os.environ, CLEAN_ENV, clear=True)
        env.start()
        self.addCleanup(env.stop)
        INFLOW.reset()
        self.addCleanup(INFLOW.reset)

    @patch.dict(os.environ, {"INFLOW_API_KEY": "env-key", "INFLOW_COMPANY_ID": "env-company"})
    def test_credentials_from_env_vars(self):
        INFLOW.reset()
        self.assertEqual(INFLOW.config.auth.api_key, "env-key")
        self.assertEqual(INFLOW.config.auth.company_id, "env-company")

    @patch.dict(os.environ, {"INFLOW_API_PAGE_SIZE": "25", "INFLOW_RATE_LIMIT_MIN_SPACING": "2.5"})
    def test_type_conversion(self):
        INFLOW.reset()
        self.assertEqual(INFLOW.config.api.page_size, 25)
        self.assertEqual(INFLOW.config.rate_limit.min_spacing, 2.5)

    @patch.dict(os.environ, {"INFLOW_RETRY_MAX_RETRIES": "7", "INFLOW_RETRY_DEFAULT_DELAY": "30"})
    def test_configure_wins_over_env_vars(self):
        INFLOW.configure(retry={"max_retries": 1})
        self.assertEqual(INFLOW.config.retry.max_retries, 1)  # configure wins
        self.assertEqual(INFLOW.config.retry.default_delay, 30.0)  # env var fallback

    @patch.dict(os.environ, {"INFLOW_RETRY_DEFAULT_DELAY": "30"})
    def test_configure_without_env_override(self):
        INFLOW.configure(retry={"max_retries": 1}, allow_env_override=False)
        self.assertEqual(INFLOW.config.retry.default_delay, 60.0)

    @patch.dict(os.environ, {"INFLOW_API_REQUEST_TIMEOUT": "soon"})
    def test_invalid_env_var_raises(self):
        with self.assertRaises(ConfigEnvVarError) as ctx:
            INFLOW.reset()
        self.assertEqual(ctx.exception.env_var, "INFLOW_API_REQUEST_TIMEOUT")
        self.assertIsInstance(ctx.exception, ConfigurationError)

    @patch.dict(os.environ, {"INFLOW_COMPANY_ID": ""})
    def test_empty_env_var_is_ignored(self):
        self.assertIsNone(EnvVars.get("INFLOW_COMPANY_ID"))

    def test_bool_converter(self):
        with patch.dict(os.environ, {"SOME_FLAG": "yes"}):
            self.assertTrue(EnvVars.get("SOME_FLAG", type_hint=bool))


class TestWithOverrides(unittest.TestCase):
    """Tests for OverridableConfig.with_overrides()."""

    def test_returns_new_instance(self):
        original = RetryConfig()
        custom = original.with_overrides({"max_retries": 5})
        self.assertIsNot(original, custom)
        self.assertEqual(original.max_retries, 3)
        self.assertEqual(custom.max_retries, 5)

    def test_none_values_ignored(self):
        custom = ApiConfig().with_overrides({"page_size": None})
        self.assertEqual(custom.page_size, 100)

    def test_empty_dict_returns_same_instance(self):
        config = RateLimitConfig()
        self.assertIs(config.with_overrides({}), config)

    def test_is_frozen(self):
        with self.assertRaises(AttributeError):
            RetryConfig().max_retries = 5  # type: ignore


class TestValidation(unittest.TestCase):
    """Tests for validate() on each section."""

    def test_base_url_must_be_http(self):
        with self.assertRaises(ConfigValidationError):
            ApiConfig(base_url="ftp://example.com").validate()

    def test_page_size_must_be_positive(self):
        with self.assertRaises(ConfigValidationError):
            ApiConfig(page_size=0).validate()

    def test_negative_spacing_rejected(self):
        with self.assertRaises(ConfigValidationError):
            RateLimitConfig(min_spacing=-1).validate()

    def test_zero_spacing_and_threshold_allowed(self):
        RateLimitConfig(min_spacing=0, threshold_remaining=0).validate()

    def test_zero_retries_allowed(self):
        RetryConfig(max_retries=0).validate()

    def test_empty_api_key_rejected(self):
        with self.assertRaises(ConfigValidationError) as ctx:
            AuthConfig(api_key="").validate()
        self.assertIn("[auth]", str(ctx.exception))


class TestAuthConfigRepr(unittest.TestCase):

    def test_api_key_is_not_in_repr(self):
        config = AuthConfig(api_key="super-secret", company_id="company")
        self.assertNotIn("super-secret", repr(config))
        self.assertIn("company", repr(config))
