"""Tests for HTTP client implementations."""

from unittest.mock import MagicMock, patch

import pytest

from inflow import ApiKeyAuthProvider, AuthenticatedHttpClient, HttpClient

# =============================================================================
# AuthenticatedHttpClient Tests
# =============================================================================


class TestAuthenticatedHttpClient:
    """Tests for AuthenticatedHttpClient."""

    @pytest.fixture
    def client(self):
        return AuthenticatedHttpClient(auth_provider=ApiKeyAuthProvider("my-key"))

    @patch("inflow._http.requests.get")
    def test_get_merges_auth_headers(self, mock_get: MagicMock, client):
        client.get(
            "https://api.example.com/company/products",
            params={"top": "100"},
            headers={"Accept": "application/json"},
            timeout=15,
        )

        mock_get.assert_called_once_with(
            "https://api.example.com/company/products",
            params={"top": "100"},
            headers={"Authorization": "Bearer my-key", "Accept": "application/json"},
            timeout=15,
        )

    @patch("inflow._http.requests.put")
    def test_put_sends_json(self, mock_put: MagicMock, client):
        client.put("https://api.example.com/company/products", data={"name": "Widget"})

        mock_put.assert_called_once_with(
            "https://api.example.com/company/products",
            json={"name": "Widget"},
            headers={"Authorization": "Bearer my-key"},
            timeout=30,
        )

    @patch("inflow._http.requests.get")
    def test_returns_response_unchanged(self, mock_get: MagicMock, client):
        mock_get.return_value.status_code = 500

        response = client.get("https://api.example.com/company/products")

        assert response is mock_get.return_value

    def test_rejects_empty_url(self, client):
        with pytest.raises(AssertionError):
            client.get("")

    def test_rejects_non_positive_timeout(self, client):
        with pytest.raises(AssertionError):
            client.get("https://api.example.com", timeout=0)

    def test_requires_auth_provider(self):
        with pytest.raises(AssertionError):
            AuthenticatedHttpClient(auth_provider="my-key")  # type: ignore

    def test_is_http_client(self, client):
        assert isinstance(client, HttpClient)
