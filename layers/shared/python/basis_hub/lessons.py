from __future__ import annotations

import logging
from typing import Any

from basis_hub.codes import LessonRef, find_code, insert_code, new_id
from basis_hub.errors import LESSON_NOT_FOUND, MISSING_LESSON_ID, MISSING_REQUIRED_FIELDS, BadRequest, DatabaseError, NotFound
from basis_hub.rds_data import DatastoreError, RowStore
from basis_hub.validation import validate_payload

logger = logging.getLogger(__name__)

LESSON_ID_PREFIX = "ls"


def insert_lesson(
    store: RowStore,
    *,
    title: str,
    objectives: list[str] | None = None,
    exercise_order: list[str] | None = None,
) -> dict[str, Any]:
    row: dict[str, Any] = {"id": new_id(LESSON_ID_PREFIX), "title": title}
    if objectives is not None:
        row["objectives"] = list(objectives)
    if exercise_order is not None:
        row["exercise_order"] = list(exercise_order)
    return store.insert("lessons", row)


def create_lesson(store: RowStore, payload: dict[str, Any]) -> dict[str, Any]:
    validate_payload(
        payload,
        "lesson_create",
        missing_code=MISSING_REQUIRED_FIELDS,
        message="Title and objectives array are required",
    )

    step = "lesson"
    try:
        with store.transaction():
            lesson = insert_lesson(
                store,
                title=payload["title"],
                objectives=payload["objectives"],
                exercise_order=payload.get("exerciseOrder") or [],
            )
            step = "lesson code"
            code_row = insert_code(store, LessonRef(lesson["id"]))
    except DatastoreError as e:
        logger.error("Failed to create %s: %s", step, e)
        raise DatabaseError(f"Failed to create {step}") from e

    logger.info("Lesson %s created with code %s", lesson["id"], code_row["id"])
    return {"id": lesson["id"], "code": code_row["id"], "lesson": lesson, "accessCode": code_row}


def list_lessons(store: RowStore) -> list[dict[str, Any]]:
    try:
        return store.select("lessons", order_by="created_at", descending=True)
    except DatastoreError as e:
        logger.error("Failed to fetch lessons: %s", e)
        raise DatabaseError("Failed to fetch lessons") from e


def get_lesson(store: RowStore, lesson_id: Any) -> dict[str, Any]:
    """Lesson by id, or by its ``LS-`` access code."""
    if not lesson_id or not isinstance(lesson_id, str):
        raise BadRequest("Lesson ID is required", code=MISSING_LESSON_ID)

    try:
        row = store.select_one("lessons", where={"id": lesson_id})
        if row is None:
            code = find_code(store, lesson_id)
            if code is not None and isinstance(code.ref, LessonRef):
                row = store.select_one("lessons", where={"id": code.ref.target_id})
    except (DatastoreError, ValueError) as e:
        logger.warning("Lesson lookup for %s failed: %s", lesson_id, e)
        row = None

    if row is None:
        raise NotFound("Lesson not found", code=LESSON_NOT_FOUND)
    return row
