from __future__ import annotations

import logging
from typing import Any

from basis_hub.config import load_config
from basis_hub.http import ApiRequest, api_handler
from basis_hub.logging_utils import configure_logging
from basis_hub.manifest import FUNCTIONS, build_manifest

configure_logging()
logger = logging.getLogger(__name__)

_cfg = load_config(require_db=False)

logger.info("Expected functions: %s", ", ".join(FUNCTIONS))


@api_handler(methods=("GET", "POST"))
def handler(request: ApiRequest) -> dict[str, Any]:
    return build_manifest(_cfg.functions_base_url)
