from __future__ import annotations

import logging
from typing import Any

from basis_hub.config import load_config
from basis_hub.http import ApiRequest, api_handler
from basis_hub.logging_utils import configure_logging
from basis_hub.models import fetch_chat_models

configure_logging()
logger = logging.getLogger(__name__)

_cfg = load_config(require_db=False)


@api_handler(methods=("GET", "POST"))
def handler(request: ApiRequest) -> dict[str, Any]:
    return {"models": fetch_chat_models(_cfg)}
