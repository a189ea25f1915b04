"""FastAPI app that serves every Lambda function locally.

Requests to ``/functions/v1/<name>`` are turned into API Gateway proxy events
and passed to ``functions/<dir>/handler.py``; the handler's proxy response is
returned as-is. Handler modules are loaded on first use so one function with
missing configuration does not stop the others.
"""
from __future__ import annotations

import importlib.util
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from basis_hub.manifest import FUNCTIONS

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]

Handler = Callable[[dict, Any], dict]


def functions_dir() -> Path:
    return Path(os.getenv("BASIS_FUNCTIONS_DIR") or (REPO_ROOT / "functions"))


def load_handler(name: str, base_dir: Path | None = None) -> Handler:
    """Import ``functions/<dir>/handler.py`` for a deployed function name."""
    if name not in FUNCTIONS:
        raise KeyError(name)
    handler_py = (base_dir or functions_dir()) / FUNCTIONS[name] / "handler.py"
    module_name = f"basis_function_{FUNCTIONS[name]}"
    spec = importlib.util.spec_from_file_location(module_name, handler_py)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load {handler_py}")
    mod = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = mod
    spec.loader.exec_module(mod)
    return mod.handler


def build_event(method: str, path: str, headers: dict[str, str], query: dict[str, str], body: bytes) -> dict[str, Any]:
    return {
        "httpMethod": method.upper(),
        "path": path,
        "headers": headers,
        "queryStringParameters": query or None,
        "body": body.decode("utf-8") if body else None,
        "isBase64Encoded": False,
    }


def build_app(base_dir: Path | None = None) -> FastAPI:
    app = FastAPI(title="BASIS functions (local)")
    handlers: dict[str, Handler] = {}

    def _handler(name: str) -> Handler:
        if name not in handlers:
            try:
                handlers[name] = load_handler(name, base_dir)
            except KeyError:
                raise HTTPException(status_code=404, detail=f"Unknown function: {name}")
        return handlers[name]

    @app.api_route(
        "/functions/v1/{name}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    async def invoke(name: str, request: Request) -> Response:
        fn = _handler(name)
        event = build_event(
            request.method,
            request.url.path,
            dict(request.headers),
            dict(request.query_params),
            await request.body(),
        )
        result = await run_in_threadpool(fn, event, None)
        return Response(
            content=result.get("body") or "",
            status_code=int(result.get("statusCode", 200)),
            headers=result.get("headers") or {},
        )

    @app.get("/functions/v1")
    async def index() -> dict[str, Any]:
        return {"functions": list(FUNCTIONS)}

    return app
