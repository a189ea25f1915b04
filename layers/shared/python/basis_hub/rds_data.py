from __future__ import annotations

import json
import logging
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from basis_hub.config import HubConfig

logger = logging.getLogger(__name__)

# Columns stored as jsonb, per table. Values are cast on insert and decoded on read.
JSON_COLUMNS: dict[str, tuple[str, ...]] = {
    "exercises": ("protocols", "toggles"),
    "lessons": ("objectives", "exercise_order"),
}

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DatastoreError(RuntimeError):
    """Raised when a Data API call fails."""


def _ident(name: str) -> str:
    if not _IDENT_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


@dataclass(frozen=True)
class RdsDataEnv:
    resource_arn: str
    secret_arn: str
    database: str


class RdsData:
    """Tiny wrapper around the Aurora/RDS Data API.

    We use this so Lambdas don't need VPC networking to reach Postgres.
    """

    def __init__(self, env: RdsDataEnv, client: Any = None):
        self.env = env
        self.client = client if client is not None else boto3.client("rds-data")

    @staticmethod
    def _param_value(value: Any) -> dict:
        if value is None:
            return {"isNull": True}
        if isinstance(value, bool):
            return {"booleanValue": value}
        if isinstance(value, int):
            return {"longValue": value}
        if isinstance(value, float):
            return {"doubleValue": value}
        if isinstance(value, (dict, list)):
            # store JSON as string; cast in SQL
            return {"stringValue": json.dumps(value)}
        return {"stringValue": str(value)}

    @classmethod
    def build_parameters(cls, params: Mapping[str, Any] | None) -> list[dict]:
        if not params:
            return []
        return [{"name": k, "value": cls._param_value(v)} for k, v in params.items()]

    @staticmethod
    def _field_to_python(field: dict) -> Any:
        # Data API returns one of these keys.
        for k in ("isNull", "stringValue", "longValue", "doubleValue", "booleanValue", "blobValue"):
            if k in field:
                if k == "isNull":
                    return None
                return field[k]
        return None

    def execute(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
        *,
        transaction_id: str | None = None,
        include_result_metadata: bool = False,
    ) -> dict:
        req: dict[str, Any] = {
            "resourceArn": self.env.resource_arn,
            "secretArn": self.env.secret_arn,
            "database": self.env.database,
            "sql": sql,
            "parameters": self.build_parameters(params),
            "includeResultMetadata": include_result_metadata,
        }
        if transaction_id:
            req["transactionId"] = transaction_id
        try:
            return self.client.execute_statement(**req)
        except (BotoCoreError, ClientError) as e:
            raise DatastoreError(str(e)) from e

    def query(
        self,
        sql: str,
        params: Mapping[str, Any] | None = None,
        *,
        transaction_id: str | None = None,
    ) -> list[dict[str, Any]]:
        resp = self.execute(sql, params, transaction_id=transaction_id, include_result_metadata=True)
        meta = resp.get("columnMetadata", [])
        col_names = [m.get("name") for m in meta]
        rows: list[dict[str, Any]] = []
        for rec in resp.get("records", []) or []:
            row: dict[str, Any] = {}
            for idx, field in enumerate(rec):
                name = col_names[idx] if idx < len(col_names) else str(idx)
                row[name] = self._field_to_python(field)
            rows.append(row)
        return rows

    def begin(self) -> str:
        try:
            resp = self.client.begin_transaction(
                resourceArn=self.env.resource_arn,
                secretArn=self.env.secret_arn,
                database=self.env.database,
            )
        except (BotoCoreError, ClientError) as e:
            raise DatastoreError(str(e)) from e
        return resp["transactionId"]

    def commit(self, transaction_id: str) -> None:
        try:
            self.client.commit_transaction(
                resourceArn=self.env.resource_arn,
                secretArn=self.env.secret_arn,
                transactionId=transaction_id,
            )
        except (BotoCoreError, ClientError) as e:
            raise DatastoreError(str(e)) from e

    def rollback(self, transaction_id: str) -> None:
        try:
            self.client.rollback_transaction(
                resourceArn=self.env.resource_arn,
                secretArn=self.env.secret_arn,
                transactionId=transaction_id,
            )
        except (BotoCoreError, ClientError) as e:
            raise DatastoreError(str(e)) from e


class RowStore:
    """Row-level select/insert/update on top of ``RdsData``.

    One instance is built per process and handed to every domain operation.
    Statements issued inside ``transaction()`` on the same thread share the
    open transaction id.
    """

    def __init__(self, data: RdsData, json_columns: Mapping[str, Sequence[str]] | None = None):
        self.data = data
        self.json_columns = {k: tuple(v) for k, v in (json_columns or JSON_COLUMNS).items()}
        self._local = threading.local()

    @classmethod
    def from_config(cls, cfg: HubConfig) -> "RowStore":
        if not cfg.has_database:
            raise DatastoreError("Database is not configured")
        env = RdsDataEnv(resource_arn=cfg.db_resource_arn, secret_arn=cfg.db_secret_arn, database=cfg.db_name)
        return cls(RdsData(env))

    @property
    def _tx(self) -> str | None:
        return getattr(self._local, "tx", None)

    def _decode(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        for col in self.json_columns.get(table, ()):
            v = row.get(col)
            if isinstance(v, str):
                try:
                    row[col] = json.loads(v)
                except json.JSONDecodeError:
                    logger.warning("Column %s.%s holds invalid JSON", table, col)
        return row

    @staticmethod
    def _where(where: Mapping[str, Any] | None, params: dict[str, Any]) -> str:
        if not where:
            return ""
        clauses = []
        for k, v in where.items():
            params[f"w_{k}"] = v
            clauses.append(f"{_ident(k)} = :w_{k}")
        return " WHERE " + " AND ".join(clauses)

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
        cols = columns if columns == "*" else ", ".join(_ident(c) for c in columns)
        params: dict[str, Any] = {}
        sql = f"SELECT {cols} FROM {_ident(table)}" + self._where(where, params)
        if order_by:
            sql += f" ORDER BY {_ident(order_by)} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT :limit"
            params["limit"] = int(limit)
        rows = self.data.query(sql, params, transaction_id=self._tx)
        return [self._decode(table, r) for r in rows]

    def select_one(
        self,
        table: str,
        columns: Iterable[str] | str = "*",
        *,
        where: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        rows = self.select(table, columns, where=where, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored (``RETURNING *``)."""
        json_cols = self.json_columns.get(table, ())
        names = [_ident(k) for k in row]
        values = [f":{k}::jsonb" if k in json_cols else f":{k}" for k in names]
        sql = f"INSERT INTO {_ident(table)} ({', '.join(names)}) VALUES ({', '.join(values)}) RETURNING *"
        rows = self.data.query(sql, dict(row), transaction_id=self._tx)
        if not rows:
            raise DatastoreError(f"Insert into {table} returned no row")
        return self._decode(table, rows[0])

    def update(self, table: str, values: Mapping[str, Any], *, where: Mapping[str, Any]) -> list[dict[str, Any]]:
        if not values:
            raise ValueError("update() needs at least one column")
        json_cols = self.json_columns.get(table, ())
        params: dict[str, Any] = {}
        sets = []
        for k, v in values.items():
            params[f"v_{k}"] = v
            cast = "::jsonb" if k in json_cols else ""
            sets.append(f"{_ident(k)} = :v_{k}{cast}")
        sql = f"UPDATE {_ident(table)} SET {', '.join(sets)}" + self._where(where, params) + " RETURNING *"
        rows = self.data.query(sql, params, transaction_id=self._tx)
        return [self._decode(table, r) for r in rows]

    @contextmanager
    def transaction(self) -> Iterator["RowStore"]:
        if self._tx is not None:
            # Already inside a transaction on this thread.
            yield self
            return
        tx = self.data.begin()
        self._local.tx = tx
        try:
            yield self
        except Exception:
            self._local.tx = None
            try:
                self.data.rollback(tx)
            except DatastoreError:
                logger.exception("Rollback of transaction %s failed", tx)
            raise
        self._local.tx = None
        try:
            self.data.commit(tx)
        except DatastoreError:
            try:
                self.data.rollback(tx)
            except DatastoreError:
                logger.exception("Rollback of transaction %s failed", tx)
            raise
