"""Exercise operations: create (case + exercise + code), list, get by id or code."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from basis_hub.codes import ExerciseRef, find_code, insert_code, list_codes, new_id
from basis_hub.errors import (
    EXERCISE_NOT_FOUND,
    INVALID_EXERCISE_CODE,
    MISSING_EXERCISE_ID,
    MISSING_REQUIRED_FIELDS,
    BadRequest,
    DatabaseError,
    NotFound,
)
from basis_hub.rds_data import DatastoreError, RowStore
from basis_hub.validation import validate_payload

logger = logging.getLogger(__name__)

EXERCISE_ID_PREFIX = "ex"
CASE_ID_PREFIX = "case"


def create_exercise(store: RowStore, payload: dict[str, Any]) -> dict[str, Any]:
    """Insert a case, an exercise referencing it, and an ``EX-`` access code.

    The three inserts share one transaction, so a failed code insert does not
    leave an exercise behind without a code.
    """
    validate_payload(
        payload,
        "exercise_create",
        missing_code=MISSING_REQUIRED_FIELDS,
        message="Title, case.role and case.background are required",
    )
    case_in = payload["case"]

    step = "case"
    try:
        with store.transaction():
            case_row = store.insert(
                "cases",
                {
                    "id": new_id(CASE_ID_PREFIX),
                    "role": case_in["role"],
                    "background": case_in["background"],
                    "goals": case_in.get("goals"),
                },
            )
            step = "exercise"
            exercise_row = store.insert(
                "exercises",
                {
                    "id": new_id(EXERCISE_ID_PREFIX),
                    "title": payload["title"],
                    "case_id": case_row["id"],
                    "protocols": list(payload.get("protocolStack") or []),
                    "toggles": dict(payload.get("toggles") or {}),
                    "focus_hint": payload.get("focusHint"),
                },
            )
            step = "exercise code"
            code_row = insert_code(store, ExerciseRef(exercise_row["id"]))
    except DatastoreError as e:
        logger.error("Failed to create %s: %s", step, e)
        raise DatabaseError(f"Failed to create {step}: {e}") from e

    logger.info("Exercise %s created with code %s", exercise_row["id"], code_row["id"])
    return {
        "id": exercise_row["id"],
        "code": code_row["id"],
        "exercise": exercise_row,
        "accessCode": code_row,
    }


def list_exercises(store: RowStore) -> list[dict[str, Any]]:
    """Exercises newest first, each with its access code (or ``None``).

    The exercises read is required; the codes read is best effort.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        exercises_future = pool.submit(store.select, "exercises", order_by="created_at", descending=True)
        codes_future = pool.submit(list_codes, store, ExerciseRef.type)

        try:
            exercises = exercises_future.result()
        except DatastoreError as e:
            logger.error("Failed to fetch exercises: %s", e)
            raise DatabaseError("Failed to fetch exercises") from e

        code_by_exercise: dict[str, str] = {}
        try:
            for code in codes_future.result():
                # newest first; keep the most recent code per exercise
                code_by_exercise.setdefault(code.ref.target_id, code.id)
        except Exception as e:
            logger.warning("Failed to fetch exercise codes, returning exercises without codes: %s", e)
            code_by_exercise = {}

    return [{**ex, "code": code_by_exercise.get(ex["id"])} for ex in exercises]


def _lookup_by_id(store: RowStore, exercise_id: str) -> dict[str, Any] | None:
    try:
        return store.select_one("exercises", where={"id": exercise_id})
    except DatastoreError as e:
        logger.warning("Direct exercise lookup for %s failed, trying code: %s", exercise_id, e)
        return None


def get_exercise(store: RowStore, exercise_id: Any) -> dict[str, Any]:
    """Resolve an exercise by id, falling back to treating the input as a code."""
    if not exercise_id or not isinstance(exercise_id, str):
        raise BadRequest("Exercise ID is required", code=MISSING_EXERCISE_ID)

    row = _lookup_by_id(store, exercise_id)
    if row is not None:
        return row

    try:
        code = find_code(store, exercise_id)
    except (DatastoreError, ValueError) as e:
        logger.info("Code lookup for %s failed: %s", exercise_id, e)
        raise BadRequest("Invalid exercise code", code=INVALID_EXERCISE_CODE) from e

    if code is not None and isinstance(code.ref, ExerciseRef):
        row = _lookup_by_id(store, code.ref.target_id)
        if row is not None:
            return row

    raise NotFound("Exercise not found", code=EXERCISE_NOT_FOUND)


def insert_focus_exercise(
    store: RowStore,
    *,
    title: str,
    focus_area: str,
    lesson_id: str | None = None,
) -> dict[str, Any]:
    """Plain exercise row as created by the lesson-handler function (no case, no code)."""
    row: dict[str, Any] = {"id": new_id(EXERCISE_ID_PREFIX), "title": title, "focus_area": focus_area}
    if lesson_id:
        row["lesson_id"] = lesson_id
    return store.insert("exercises", row)
