"""lesson-handler function: the older direct-insert path for lessons and exercises.

POST {"type": "lesson", "title": ...}
POST {"type": "exercise", "title": ..., "focus_area": ..., "lesson_id"?: ...}
"""
from __future__ import annotations

import logging
from typing import Any

from basis_hub.config import load_config
from basis_hub.errors import VALIDATION_ERROR, BadRequest, DatabaseError
from basis_hub.exercises import insert_focus_exercise
from basis_hub.http import ApiRequest, ApiResponse, api_handler
from basis_hub.lessons import insert_lesson
from basis_hub.logging_utils import configure_logging
from basis_hub.rds_data import DatastoreError, RowStore
from basis_hub.validation import validate_payload

configure_logging()
logger = logging.getLogger(__name__)

_cfg = load_config()
_store: RowStore | None = None


def _get_store() -> RowStore:
    global _store
    if _store is None:
        _store = RowStore.from_config(_cfg)
    return _store


def _create_lesson(store: RowStore, body: dict[str, Any]) -> ApiResponse:
    validate_payload(body, "legacy_lesson", missing_code=VALIDATION_ERROR, message="Title is required for lessons")
    try:
        lesson = insert_lesson(store, title=body["title"])
    except DatastoreError as e:
        logger.error("Failed to create lesson: %s", e)
        raise DatabaseError(str(e)) from e
    logger.info("Lesson created successfully: %s", lesson["id"])
    return ApiResponse({"success": True, "newLesson": lesson}, status=201)


def _create_exercise(store: RowStore, body: dict[str, Any]) -> ApiResponse:
    validate_payload(
        body,
        "legacy_exercise",
        missing_code=VALIDATION_ERROR,
        message="Title and focus_area are required for exercises",
    )
    try:
        exercise = insert_focus_exercise(
            store,
            title=body["title"],
            focus_area=body["focus_area"],
            lesson_id=body.get("lesson_id"),
        )
    except DatastoreError as e:
        logger.error("Failed to create exercise: %s", e)
        raise DatabaseError(str(e)) from e
    logger.info("Exercise created successfully: %s", exercise["id"])
    return ApiResponse({"success": True, "newExercise": exercise}, status=201)


def route(store: RowStore, body: dict[str, Any]) -> ApiResponse:
    kind = body.get("type")
    logger.info("Processing request for type: %s", kind)
    if kind == "lesson":
        return _create_lesson(store, body)
    if kind == "exercise":
        return _create_exercise(store, body)
    raise BadRequest('Type must be either "lesson" or "exercise"', code=VALIDATION_ERROR)


@api_handler(methods=("POST",))
def handler(request: ApiRequest) -> ApiResponse:
    return route(_get_store(), request.body)
