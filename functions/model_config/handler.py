"""model-config function.

GET  -> {"configurations": [...]} ordered by tier
POST {"tier": ..., "model_name": ...} -> {"success": true, "data": [...]}
"""
from __future__ import annotations

import logging
from typing import Any

from basis_hub.config import load_config
from basis_hub.http import ApiRequest, api_handler
from basis_hub.logging_utils import configure_logging
from basis_hub.models import list_model_configurations, update_model_configuration
from basis_hub.rds_data import RowStore

configure_logging()
logger = logging.getLogger(__name__)

_cfg = load_config()
_store: RowStore | None = None


def _get_store() -> RowStore:
    global _store
    if _store is None:
        _store = RowStore.from_config(_cfg)
    return _store


def route(store: RowStore, method: str, body: dict[str, Any]) -> dict[str, Any]:
    if method == "GET":
        configurations = list_model_configurations(store)
        logger.info("Found %d model configurations", len(configurations))
        return {"configurations": configurations}
    return {"success": True, "data": update_model_configuration(store, body)}


@api_handler(methods=("GET", "POST"))
def handler(request: ApiRequest) -> dict[str, Any]:
    return route(_get_store(), request.method, request.body)
