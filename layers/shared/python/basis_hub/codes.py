"""Access codes: short shareable strings that point at an exercise or a lesson.

A code row stores its target as ``type`` + ``target_id``. In code that pair is
decoded into a ``ResourceRef`` (``ExerciseRef`` or ``LessonRef``) so callers
dispatch on the variant instead of comparing strings.
"""
from __future__ import annotations

import logging
import secrets
import string
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from basis_hub.rds_data import RowStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.digits + string.ascii_uppercase
CODE_LENGTH = 6
UNKNOWN_TITLE = "Unknown"
ENRICH_MAX_WORKERS = 8


@dataclass(frozen=True)
class ExerciseRef:
    target_id: str

    type: ClassVar[str] = "exercise"
    table: ClassVar[str] = "exercises"
    code_prefix: ClassVar[str] = "EX"


@dataclass(frozen=True)
class LessonRef:
    target_id: str

    type: ClassVar[str] = "lesson"
    table: ClassVar[str] = "lessons"
    code_prefix: ClassVar[str] = "LS"


ResourceRef = Union[ExerciseRef, LessonRef]

_REF_TYPES: dict[str, type] = {ExerciseRef.type: ExerciseRef, LessonRef.type: LessonRef}


def ref_for(type_: str, target_id: str) -> ResourceRef:
    try:
        cls = _REF_TYPES[type_]
    except KeyError:
        raise ValueError(f"Unknown code type: {type_!r}") from None
    return cls(target_id)


def new_id(prefix: str) -> str:
    """Resource id: ``<prefix>_`` followed by 18 lowercase hex characters."""
    return f"{prefix}_{secrets.token_hex(9)}"


def generate_code(prefix: str) -> str:
    """Display code such as ``EX-7K2Q9A``."""
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))
    return f"{prefix}-{suffix}"


def normalize_code(value: str) -> str:
    return value.strip().upper()


@dataclass(frozen=True)
class AccessCode:
    id: str
    ref: ResourceRef
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "AccessCode":
        return cls(id=row["id"], ref=ref_for(row["type"], row["target_id"]), created_at=row.get("created_at"))

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.ref.type,
            "target_id": self.ref.target_id,
            "created_at": self.created_at,
        }


def insert_code(store: RowStore, ref: ResourceRef) -> dict[str, Any]:
    """Create a new display code for *ref* and return the stored row."""
    return store.insert(
        "codes",
        {"id": generate_code(ref.code_prefix), "type": ref.type, "target_id": ref.target_id},
    )


def find_code(store: RowStore, code: str) -> AccessCode | None:
    row = store.select_one("codes", where={"id": normalize_code(code)})
    if row is None:
        return None
    return AccessCode.from_row(row)


def list_codes(store: RowStore, type_: str | None = None) -> list[AccessCode]:
    """All codes, newest first. Rows with an unknown type are skipped."""
    rows = store.select(
        "codes",
        where={"type": type_} if type_ else None,
        order_by="created_at",
        descending=True,
    )
    out: list[AccessCode] = []
    for row in rows:
        try:
            out.append(AccessCode.from_row(row))
        except (KeyError, ValueError) as e:
            logger.warning("Skipping malformed code row %r: %s", row.get("id"), e)
    return out


def _default_details(ref: ResourceRef) -> dict[str, Any]:
    if isinstance(ref, ExerciseRef):
        return {"focus_hint": None}
    if isinstance(ref, LessonRef):
        return {"objectives": []}
    raise TypeError(f"Unsupported resource reference: {ref!r}")


def describe_target(store: RowStore, ref: ResourceRef) -> tuple[str, dict[str, Any]]:
    """Title and variant-specific details of the resource a code points to."""
    details = _default_details(ref)
    if isinstance(ref, ExerciseRef):
        row = store.select_one("exercises", ("title", "focus_hint"), where={"id": ref.target_id})
        if row is not None:
            details["focus_hint"] = row.get("focus_hint")
    else:
        row = store.select_one("lessons", ("title", "objectives"), where={"id": ref.target_id})
        if row is not None:
            details["objectives"] = row.get("objectives") or []
    return (row or {}).get("title") or UNKNOWN_TITLE, details


def _enrich_one(store: RowStore, code: AccessCode) -> dict[str, Any]:
    out = code.to_row()
    try:
        title, details = describe_target(store, code.ref)
    except Exception as e:
        logger.warning("Lookup for code %s (%s %s) failed: %s", code.id, code.ref.type, code.ref.target_id, e)
        # same details shape as a missing target
        title, details = UNKNOWN_TITLE, _default_details(code.ref)
    out["title"] = title
    out["details"] = details
    return out


def enrich_codes(store: RowStore, codes: list[AccessCode]) -> list[dict[str, Any]]:
    """Attach a title to every code. One failed lookup never fails the batch."""
    if not codes:
        return []
    workers = min(ENRICH_MAX_WORKERS, len(codes))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda c: _enrich_one(store, c), codes))


def list_enriched_codes(store: RowStore) -> list[dict[str, Any]]:
    return enrich_codes(store, list_codes(store))
