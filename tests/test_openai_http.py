from __future__ import annotations

import io
import json
import unittest
import urllib.error
from unittest import mock

import fakes  # noqa: F401

from basis_hub import openai_http
from basis_hub.config import HubConfig
from basis_hub.models import filter_model_ids


def _cfg(**overrides) -> HubConfig:
    values = dict(
        stage="test",
        db_resource_arn=None,
        db_secret_arn=None,
        db_name=None,
        openai_api_key=None,
        openai_secret_arn=None,
        openai_api_base="https://api.openai.com/v1",
        model_filter="gpt",
        functions_base_url="http://localhost:8000/functions/v1/",
    )
    values.update(overrides)
    return HubConfig(**values)


class _Resp(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class TestResolveApiKey(unittest.TestCase):
    def test_env_key_wins(self) -> None:
        with mock.patch.object(openai_http, "read_secret") as get_secret:
            self.assertEqual(openai_http.resolve_api_key(_cfg(openai_api_key="sk-env", openai_secret_arn="arn:s")), "sk-env")
        get_secret.assert_not_called()

    def test_secret_key(self) -> None:
        with mock.patch.object(openai_http, "read_secret", return_value={"api_key": "sk-secret"}):
            self.assertEqual(openai_http.resolve_api_key(_cfg(openai_secret_arn="arn:s")), "sk-secret")

    def test_placeholder_secret_is_ignored(self) -> None:
        with mock.patch.object(openai_http, "read_secret", return_value={"api_key": "REPLACE_ME"}):
            self.assertIsNone(openai_http.resolve_api_key(_cfg(openai_secret_arn="arn:s")))

    def test_nothing_configured(self) -> None:
        self.assertIsNone(openai_http.resolve_api_key(_cfg()))


class TestReadSecret(unittest.TestCase):
    def setUp(self) -> None:
        openai_http.read_secret.cache_clear()

    def tearDown(self) -> None:
        openai_http.read_secret.cache_clear()

    def _read(self, secret_string):
        client = mock.Mock()
        client.get_secret_value.return_value = {"SecretString": secret_string}
        with mock.patch.object(openai_http.boto3, "client", return_value=client):
            return openai_http.read_secret("arn:aws:secretsmanager:us-west-2:123:secret:openai")

    def test_json_secret(self) -> None:
        self.assertEqual(self._read('{"api_key": "sk-1"}'), {"api_key": "sk-1"})

    def test_plain_string_secret(self) -> None:
        self.assertEqual(self._read("sk-raw"), {"value": "sk-raw"})


class TestListModels(unittest.TestCase):
    def test_lists_data_entries(self) -> None:
        payload = {"object": "list", "data": [{"id": "gpt-4"}, "junk", {"id": "whisper-1"}]}
        with mock.patch("urllib.request.urlopen", return_value=_Resp(json.dumps(payload).encode())) as urlopen:
            out = openai_http.list_models(api_key="sk", api_base="https://api.example/v1")
        self.assertEqual(out, [{"id": "gpt-4"}, {"id": "whisper-1"}])
        req = urlopen.call_args.args[0]
        self.assertEqual(req.full_url, "https://api.example/v1/models")
        self.assertEqual(req.get_method(), "GET")
        self.assertEqual(req.get_header("Authorization"), "Bearer sk")

    def test_http_error(self) -> None:
        err = urllib.error.HTTPError("https://api.example/v1/models", 401, "Unauthorized", {}, io.BytesIO(b"{}"))
        with mock.patch("urllib.request.urlopen", side_effect=err):
            with self.assertRaises(openai_http.UpstreamError) as cm:
                openai_http.list_models(api_key="sk", api_base="https://api.example/v1")
        self.assertEqual(str(cm.exception), "OpenAI API error: 401")
        self.assertEqual(cm.exception.status, 401)

    def test_unreachable(self) -> None:
        with mock.patch("urllib.request.urlopen", side_effect=urllib.error.URLError("no route")):
            with self.assertRaises(openai_http.UpstreamError) as cm:
                openai_http.list_models(api_key="sk", api_base="https://api.example/v1")
        self.assertIsNone(cm.exception.status)


class TestFilterModelIds(unittest.TestCase):
    def test_filter_and_sort(self) -> None:
        self.assertEqual(filter_model_ids(["gpt-4", "text-embedding-3", "gpt-3.5-turbo"], "gpt"), ["gpt-3.5-turbo", "gpt-4"])

    def test_no_matches(self) -> None:
        self.assertEqual(filter_model_ids(["whisper-1"], "gpt"), [])


if __name__ == "__main__":
    unittest.main()
