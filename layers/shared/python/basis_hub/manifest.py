from __future__ import annotations

from typing import Any

from basis_hub.http import utc_now_iso

# Deployed function name -> directory under functions/
FUNCTIONS: dict[str, str] = {
    "codes": "codes",
    "exercises": "exercises",
    "lesson-handler": "lesson_handler",
    "lessons": "lessons",
    "models": "models",
    "model-config": "model_config",
    "health": "health",
    "deployment-check": "deployment_check",
}


def build_manifest(base_url: str, *, expected: list[str] | None = None, timestamp: str | None = None) -> dict[str, Any]:
    """Static description of the functions that should be deployed under *base_url*."""
    names = list(FUNCTIONS) if expected is None else list(expected)
    if not base_url.endswith("/"):
        base_url += "/"
    return {
        "timestamp": timestamp or utc_now_iso(),
        "expected_functions": names,
        "deployment_check": "completed",
        "base_url": base_url,
        "functions_status": [{"name": n, "url": f"{base_url}{n}", "expected": True} for n in names],
        "message": "All functions should be deployed and accessible at their respective URLs",
    }
