from __future__ import annotations

import os
import unittest
from unittest import mock

import fakes  # noqa: F401

from basis_hub.config import ConfigError, load_config
from basis_hub.manifest import build_manifest

_DB_ENV = {
    "DB_RESOURCE_ARN": "arn:aws:rds:us-west-2:123:cluster:basis",
    "DB_SECRET_ARN": "arn:aws:secretsmanager:us-west-2:123:secret:basis",
    "DB_NAME": "basis",
}


class TestLoadConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, _DB_ENV, clear=True):
            cfg = load_config()
        self.assertEqual(cfg.stage, "dev")
        self.assertTrue(cfg.has_database)
        self.assertEqual(cfg.openai_api_base, "https://api.openai.com/v1")
        self.assertEqual(cfg.model_filter, "gpt")
        self.assertEqual(cfg.functions_base_url, "http://localhost:8000/functions/v1/")

    def test_missing_database_settings(self) -> None:
        with mock.patch.dict(os.environ, {"DB_NAME": "basis"}, clear=True):
            with self.assertRaises(ConfigError) as cm:
                load_config()
        self.assertIn("DB_RESOURCE_ARN", str(cm.exception))

    def test_database_optional(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            cfg = load_config(require_db=False)
        self.assertFalse(cfg.has_database)

    def test_urls_normalized(self) -> None:
        env = {"OPENAI_API_BASE": "https://proxy.test/v1/", "FUNCTIONS_BASE_URL": "https://x.test/functions/v1"}
        with mock.patch.dict(os.environ, env, clear=True):
            cfg = load_config(require_db=False)
        self.assertEqual(cfg.openai_api_base, "https://proxy.test/v1")
        self.assertEqual(cfg.functions_base_url, "https://x.test/functions/v1/")


class TestManifest(unittest.TestCase):
    def test_manifest_shape(self) -> None:
        out = build_manifest("https://x.test/functions/v1", expected=["codes"], timestamp="2025-09-20T00:00:00Z")
        self.assertEqual(
            out,
            {
                "timestamp": "2025-09-20T00:00:00Z",
                "expected_functions": ["codes"],
                "deployment_check": "completed",
                "base_url": "https://x.test/functions/v1/",
                "functions_status": [{"name": "codes", "url": "https://x.test/functions/v1/codes", "expected": True}],
                "message": "All functions should be deployed and accessible at their respective URLs",
            },
        )


if __name__ == "__main__":
    unittest.main()
