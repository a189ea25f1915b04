"""API Gateway proxy plumbing shared by every function.

Each function is a plain ``handler(event, context)``; ``api_handler`` wraps a
function of an ``ApiRequest`` with CORS preflight, method checks, JSON body
parsing, and translation of errors into the common envelope::

    {"error": "<CODE>", "message": "...", "timestamp": "<iso8601>"}
"""
from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Iterable

from basis_hub.errors import INTERNAL_ERROR, ApiError, BadRequest, MethodNotAllowed

logger = logging.getLogger(__name__)

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def cors_headers(methods: Iterable[str]) -> dict[str, str]:
    allowed = [m for m in methods if m != "OPTIONS"] + ["OPTIONS"]
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Allow-Methods": ", ".join(allowed),
    }


def json_response(body: Any, status: int = 200, headers: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json", **(headers or {})},
        "body": json.dumps(body, default=str),
    }


def error_response(
    code: str,
    message: str,
    status: int,
    headers: dict[str, str] | None = None,
    details: Any = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"error": code, "message": message, "timestamp": utc_now_iso()}
    if details is not None:
        body["details"] = details
    return json_response(body, status, headers)


def request_method(event: dict[str, Any]) -> str:
    """HTTP method from a REST (v1) or HTTP API (v2) proxy event."""
    method = event.get("httpMethod") or ((event.get("requestContext") or {}).get("http") or {}).get("method")
    return str(method or "GET").upper()


def parse_body(event: dict[str, Any]) -> dict[str, Any]:
    raw = event.get("body")
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    # Malformed JSON propagates as ValueError and is reported as INTERNAL_ERROR.
    body = json.loads(raw)
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


@dataclass(frozen=True)
class ApiRequest:
    method: str
    body: dict[str, Any]
    event: dict[str, Any] = field(repr=False, default_factory=dict)


@dataclass(frozen=True)
class ApiResponse:
    body: Any
    status: int = 200


def api_handler(*, methods: Iterable[str] = ("POST",)) -> Callable[[Callable[[ApiRequest], Any]], Callable[..., dict]]:
    allowed = tuple(m.upper() for m in methods)
    headers = cors_headers(allowed)

    def decorator(fn: Callable[[ApiRequest], Any]) -> Callable[..., dict]:
        @wraps(fn)
        def wrapper(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
            event = event or {}
            method = request_method(event)
            if method == "OPTIONS":
                return {"statusCode": 200, "headers": dict(headers), "body": "ok"}

            logger.info("%s request received", method)
            try:
                if method not in allowed:
                    raise MethodNotAllowed(f"Only {' or '.join(allowed)} method is supported")
                body = parse_body(event)
                result = fn(ApiRequest(method=method, body=body, event=event))
            except ApiError as e:
                if e.status >= 500:
                    logger.error("%s: %s", e.code, e.message)
                else:
                    logger.info("%s: %s", e.code, e.message)
                return error_response(e.code, e.message, e.status, headers, e.details)
            except Exception as e:
                logger.exception("Unhandled error in %s", fn.__module__)
                return error_response(INTERNAL_ERROR, str(e) or "An unexpected error occurred", 500, headers)

            if isinstance(result, ApiResponse):
                return json_response(result.body, result.status, headers)
            return json_response(result, 200, headers)

        return wrapper

    return decorator
