from __future__ import annotations

from typing import Any

from basis_hub import __version__
from basis_hub.http import ApiRequest, api_handler, utc_now_iso
from basis_hub.logging_utils import configure_logging

configure_logging()


@api_handler(methods=("GET", "POST"))
def handler(request: ApiRequest) -> dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": utc_now_iso(),
        "services": {"server": "ok"},
    }
