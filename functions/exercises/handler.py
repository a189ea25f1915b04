"""exercises function: create, list and get exercises.

POST {"action": "create" | "list" | "get", ...}
"""
from __future__ import annotations

import logging
from typing import Any

from basis_hub.config import load_config
from basis_hub.errors import INVALID_ACTION, BadRequest
from basis_hub.exercises import create_exercise, get_exercise, list_exercises
from basis_hub.http import ApiRequest, api_handler
from basis_hub.logging_utils import configure_logging
from basis_hub.rds_data import RowStore

configure_logging()
logger = logging.getLogger(__name__)

_cfg = load_config()
_store: RowStore | None = None

ACTIONS = ("create", "list", "get")


def _get_store() -> RowStore:
    global _store
    if _store is None:
        _store = RowStore.from_config(_cfg)
    return _store


def route(store: RowStore, body: dict[str, Any]) -> Any:
    action = body.get("action")
    logger.info("exercises called with action: %s", action)

    if action == "create":
        return create_exercise(store, body)
    if action == "list":
        return list_exercises(store)
    if action == "get":
        return get_exercise(store, body.get("exerciseId"))
    raise BadRequest(
        f"Unknown action: {action}. Supported actions: {', '.join(ACTIONS)}",
        code=INVALID_ACTION,
    )


@api_handler(methods=("POST",))
def handler(request: ApiRequest) -> Any:
    return route(_get_store(), request.body)
