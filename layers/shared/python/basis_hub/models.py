"""Model catalog filtering and per-tier model configuration."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from basis_hub.config import HubConfig
from basis_hub.errors import MISSING_REQUIRED_FIELDS, DatabaseError, InternalError
from basis_hub.openai_http import UpstreamError, list_models, resolve_api_key
from basis_hub.rds_data import DatastoreError, RowStore
from basis_hub.validation import validate_payload

logger = logging.getLogger(__name__)


def filter_model_ids(model_ids: Iterable[str], substring: str) -> list[str]:
    """Ids containing *substring*, sorted lexicographically."""
    return sorted(m for m in model_ids if substring in m)


def fetch_chat_models(cfg: HubConfig) -> list[str]:
    api_key = resolve_api_key(cfg)
    if not api_key:
        raise InternalError("OpenAI API key not configured")

    logger.info("Fetching available models from %s", cfg.openai_api_base)
    try:
        entries = list_models(api_key=api_key, api_base=cfg.openai_api_base)
    except UpstreamError as e:
        raise InternalError(str(e)) from e

    ids = [str(m["id"]) for m in entries if m.get("id")]
    models = filter_model_ids(ids, cfg.model_filter)
    logger.info("Found %d %s models", len(models), cfg.model_filter)
    return models


def list_model_configurations(store: RowStore) -> list[dict[str, Any]]:
    try:
        return store.select("model_configurations", order_by="tier")
    except DatastoreError as e:
        raise DatabaseError(f"Failed to fetch model configurations: {e}") from e


def update_model_configuration(store: RowStore, payload: dict[str, Any]) -> list[dict[str, Any]]:
    validate_payload(
        payload,
        "model_config_update",
        missing_code=MISSING_REQUIRED_FIELDS,
        message="Missing tier or model_name",
    )
    logger.info("Updating model configuration: %s -> %s", payload["tier"], payload["model_name"])
    try:
        return store.update(
            "model_configurations",
            {"model_name": payload["model_name"]},
            where={"tier": payload["tier"]},
        )
    except DatastoreError as e:
        raise DatabaseError(f"Failed to update model configuration: {e}") from e
