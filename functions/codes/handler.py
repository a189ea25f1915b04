from __future__ import annotations

import logging
from typing import Any

from basis_hub.codes import list_enriched_codes
from basis_hub.config import load_config
from basis_hub.errors import DatabaseError
from basis_hub.http import ApiRequest, api_handler
from basis_hub.logging_utils import configure_logging
from basis_hub.rds_data import DatastoreError, RowStore

configure_logging()
logger = logging.getLogger(__name__)

_cfg = load_config()
_store: RowStore | None = None


def _get_store() -> RowStore:
    global _store
    if _store is None:
        _store = RowStore.from_config(_cfg)
    return _store


def list_codes_with_titles(store: RowStore) -> list[dict[str, Any]]:
    try:
        codes = list_enriched_codes(store)
    except DatastoreError as e:
        logger.error("Error fetching codes: %s", e)
        raise DatabaseError(f"Failed to fetch codes: {e}") from e
    logger.info("Retrieved %d codes", len(codes))
    return codes


@api_handler(methods=("GET", "POST"))
def handler(request: ApiRequest) -> Any:
    return list_codes_with_titles(_get_store())
