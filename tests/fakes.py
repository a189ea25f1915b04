"""In-memory stand-ins shared by the tests."""
from __future__ import annotations

import copy
import importlib.util
import os
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Mapping

REPO_ROOT = Path(__file__).resolve().parents[1]
SHARED = REPO_ROOT / "layers" / "shared" / "python"

# Make the shared Lambda layer importable in local unit tests.
if str(SHARED) not in sys.path:
    sys.path.insert(0, str(SHARED))

from basis_hub.rds_data import DatastoreError  # noqa: E402


class MemoryStore:
    """Duck-typed ``RowStore`` backed by dicts.

    ``fail`` maps ``(operation, table)`` to an exception raised on that call,
    e.g. ``store.fail[("insert", "codes")] = DatastoreError("boom")``.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.fail: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []
        self.commits = 0
        self.rollbacks = 0
        self._clock = 0
        self._lock = threading.Lock()

    def _check(self, op: str, table: str) -> None:
        with self._lock:
            self.calls.append((op, table))
        exc = self.fail.get((op, table))
        if exc is not None:
            raise exc

    def _tick(self) -> str:
        self._clock += 1
        return f"2025-09-20T10:00:{self._clock:02d}+00:00"

    def seed(self, table: str, *rows: dict[str, Any]) -> None:
        for row in rows:
            row = dict(row)
            row.setdefault("created_at", self._tick())
            self.tables.setdefault(table, []).append(row)

    def select(
        self,
        table: str,
        columns: Iterable[str] | str = "*",
        *,
        where: Mapping[str, Any] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        self._check("select", table)
        rows = [r for r in self.tables.get(table, []) if all(r.get(k) == v for k, v in (where or {}).items())]
        if order_by:
            rows = sorted(rows, key=lambda r: r.get(order_by) or "", reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns != "*":
            cols = list(columns)
            rows = [{c: r.get(c) for c in cols} for r in rows]
        return copy.deepcopy(rows)

    def select_one(self, table: str, columns: Iterable[str] | str = "*", *, where: Mapping[str, Any] | None = None):
        rows = self.select(table, columns, where=where, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        self._check("insert", table)
        stored = dict(row)
        stored.setdefault("created_at", self._tick())
        self.tables.setdefault(table, []).append(stored)
        return copy.deepcopy(stored)

    def update(self, table: str, values: Mapping[str, Any], *, where: Mapping[str, Any]) -> list[dict[str, Any]]:
        self._check("update", table)
        out = []
        for r in self.tables.get(table, []):
            if all(r.get(k) == v for k, v in where.items()):
                r.update(values)
                out.append(copy.deepcopy(r))
        return out

    @contextmanager
    def transaction(self):
        snapshot = copy.deepcopy(self.tables)
        try:
            yield self
        except Exception:
            self.tables = snapshot
            self.rollbacks += 1
            raise
        self.commits += 1


def boom(message: str = "connection reset") -> DatastoreError:
    return DatastoreError(message)


def load_function_module(dir_name: str):
    """Load functions/<dir_name>/handler.py as a module without requiring it be a package."""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-west-2")
    os.environ.setdefault("DB_RESOURCE_ARN", "arn:aws:rds:us-west-2:123:cluster:dummy")
    os.environ.setdefault("DB_SECRET_ARN", "arn:aws:secretsmanager:us-west-2:123:secret:dummy")
    os.environ.setdefault("DB_NAME", "dummy")
    os.environ.setdefault("STAGE", "test")

    handler_py = REPO_ROOT / "functions" / dir_name / "handler.py"
    spec = importlib.util.spec_from_file_location(f"{dir_name}_handler_for_tests", handler_py)
    assert spec and spec.loader
    mod = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = mod
    spec.loader.exec_module(mod)
    return mod


def proxy_event(method: str = "POST", body: Any = None, *, raw: str | None = None) -> dict[str, Any]:
    import json

    if raw is None and body is not None:
        raw = json.dumps(body)
    return {"httpMethod": method, "path": "/", "headers": {}, "body": raw, "isBase64Encoded": False}
