"""Tests for the module-level shortcuts."""

import os
import threading
import unittest
from unittest.mock import MagicMock, patch

import inflow
from inflow import INFLOW, ConfigurationError, InflowClient


class TestDefaultClient(unittest.TestCase):
    """Tests for default_client() and reset_default_client()."""

    def setUp(self):
        env = patch.dict(os.environ, {"INFLOW_API_KEY": "env-key", "INFLOW_COMPANY_ID": "env-company"})
        env.start()
        self.addCleanup(env.stop)
        INFLOW.reset()
        inflow.reset_default_client()
        self.addCleanup(INFLOW.reset)
        self.addCleanup(inflow.reset_default_client)

    def test_created_from_environment(self):
        client = inflow.default_client()

        self.assertIsInstance(client, InflowClient)
        self.assertEqual(client.company_id, "env-company")

    def test_same_instance_is_reused(self):
        self.assertIs(inflow.default_client(), inflow.default_client())

    def test_concurrent_first_use_creates_one_client(self):
        clients = []

        def worker():
            clients.append(inflow.default_client())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len({id(c) for c in clients}), 1)

    def test_reset_picks_up_new_config(self):
        first = inflow.default_client()
        INFLOW.configure(auth={"company_id": "other-company"})
        inflow.reset_default_client()

        second = inflow.default_client()

        self.assertIsNot(first, second)
        self.assertEqual(second.company_id, "other-company")

    def test_missing_credentials_raise_on_first_use(self):
        with patch.dict(os.environ, {"INFLOW_API_KEY": "", "INFLOW_COMPANY_ID": ""}):
            INFLOW.reset()
            with self.assertRaises(ConfigurationError):
                inflow.default_client()


class TestShortcuts(unittest.TestCase):
    """The shortcuts delegate to the default client."""

    def setUp(self):
        self.client = MagicMock(spec=InflowClient)
        patcher = patch("inflow._default.default_client", return_value=self.client)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_get(self):
        self.client.get.return_value = [{"productId": "p1"}]

        self.assertEqual(inflow.get("/products", {"top": 1}), [{"productId": "p1"}])
        self.client.get.assert_called_once_with("/products", {"top": 1})

    def test_get_all(self):
        inflow.get_all("/customers", {"includeInactive": True}, limit=10)
        self.client.get_all.assert_called_once_with("/customers", {"includeInactive": True}, limit=10)

    def test_get_one(self):
        inflow.get_one("/products", "p1")
        self.client.get_one.assert_called_once_with("/products", "p1", None)

    def test_put(self):
        inflow.put("/products", {"productId": "p1"})
        self.client.put.assert_called_once_with("/products", {"productId": "p1"})
