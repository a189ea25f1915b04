"""Request payload validation against the JSON schemas in ``schemas/``."""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

from basis_hub.errors import VALIDATION_ERROR, BadRequest

logger = logging.getLogger(__name__)

_SCHEMA_DIR = Path(__file__).parent / "schemas"

# Violations that mean "field absent or empty" rather than "field malformed".
_MISSING_VALIDATORS = frozenset({"required", "minLength", "minItems"})


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load and cache a request schema by file stem."""
    with open(_SCHEMA_DIR / f"{name}.json", encoding="utf-8") as f:
        return json.load(f)


def _is_missing(err: jsonschema.ValidationError) -> bool:
    if err.validator in _MISSING_VALIDATORS:
        return True
    # null where a value is required counts as missing
    return err.validator == "type" and err.instance is None


def validate_payload(
    payload: dict[str, Any],
    schema_name: str,
    *,
    missing_code: str,
    message: str,
) -> None:
    """Raise ``BadRequest`` if *payload* does not satisfy the named schema.

    Missing or empty required fields use *missing_code*; any other violation
    is reported as ``VALIDATION_ERROR``.
    """
    validator = jsonschema.Draft7Validator(load_schema(schema_name))
    errors = sorted(validator.iter_errors(payload), key=lambda e: list(e.absolute_path))
    if not errors:
        return

    missing = [e for e in errors if _is_missing(e)]
    err = missing[0] if missing else errors[0]
    path = ".".join(str(p) for p in err.absolute_path) or None
    logger.debug("Payload failed %s: %s at %s", schema_name, err.message, path)
    raise BadRequest(
        message if missing else f"Invalid request: {err.message}",
        code=missing_code if missing else VALIDATION_ERROR,
        details={"path": path, "reason": err.message},
    )
