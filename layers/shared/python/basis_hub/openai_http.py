from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from functools import lru_cache
from typing import Any

import boto3

from basis_hub.config import HubConfig

logger = logging.getLogger(__name__)

PLACEHOLDER_KEY = "REPLACE_ME"


class UpstreamError(RuntimeError):
    """The model catalog answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


@lru_cache(maxsize=8)
def read_secret(secret_arn: str) -> dict[str, Any]:
    """Secrets Manager secret as a dict; a plain string secret comes back as ``{"value": ...}``."""
    resp = boto3.client("secretsmanager").get_secret_value(SecretId=secret_arn)
    raw = resp.get("SecretString") or "{}"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return {"value": raw}
    return data if isinstance(data, dict) else {"value": data}


def resolve_api_key(cfg: HubConfig) -> str | None:
    """OPENAI_API_KEY, else the key stored in the OPENAI_SECRET_ARN secret."""
    if cfg.openai_api_key:
        return cfg.openai_api_key
    if cfg.openai_secret_arn:
        data = read_secret(cfg.openai_secret_arn)
        key = data.get("api_key") or data.get("value")
        if key and key != PLACEHOLDER_KEY:
            return str(key)
        logger.warning("OpenAI secret %s has no api_key", cfg.openai_secret_arn)
    return None


def _http_json(method: str, url: str, *, api_key: str, payload: dict[str, Any] | None = None, timeout_s: int = 30) -> dict[str, Any]:
    body = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(url, data=body, method=method)
    req.add_header("Authorization", f"Bearer {api_key}")
    req.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as e:
        error_body = ""
        try:
            error_body = e.read().decode("utf-8")
        except Exception:
            pass
        logger.warning("OpenAI HTTP %s: %s", e.code, error_body[:500])
        raise UpstreamError(f"OpenAI API error: {e.code}", status=e.code) from e
    except urllib.error.URLError as e:
        raise UpstreamError(f"OpenAI API unreachable: {e.reason}") from e
    return json.loads(raw.decode("utf-8"))


def list_models(*, api_key: str, api_base: str) -> list[dict[str, Any]]:
    """Raw model entries from ``GET {api_base}/models``."""
    resp = _http_json("GET", f"{api_base}/models", api_key=api_key)
    data = resp.get("data") or []
    return [m for m in data if isinstance(m, dict)]
