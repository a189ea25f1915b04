from __future__ import annotations

import logging
from pathlib import Path

from basis_hub.rds_data import RdsData

logger = logging.getLogger(__name__)

DEFAULT_SQL_DIR = Path(__file__).resolve().parents[1] / "sql"


def split_sql(sql_text: str) -> list[str]:
    # Naive splitter: good enough for our small schema file.
    stmts: list[str] = []
    buf: list[str] = []
    for line in sql_text.splitlines():
        if line.strip().startswith("--"):
            continue
        buf.append(line)
        if ";" in line:
            parts = "\n".join(buf).split(";")
            stmts.extend(p.strip() for p in parts[:-1] if p.strip())
            buf = [parts[-1]]
    tail = "\n".join(buf).strip()
    if tail:
        stmts.append(tail)
    return stmts


def list_migrations(sql_dir: Path = DEFAULT_SQL_DIR) -> list[Path]:
    """All *.sql files in lexical order (001_..., 002_..., ...)."""
    return sorted((p for p in sql_dir.glob("*.sql") if p.is_file()), key=lambda p: p.name)


def apply_sql(data: RdsData | None, paths: list[Path], *, dry_run: bool = False) -> int:
    """Run every statement from *paths*; returns the number of statements."""
    count = 0
    for path in paths:
        stmts = split_sql(path.read_text(encoding="utf-8"))
        logger.info("Applying %d SQL statements from %s", len(stmts), path)
        for i, stmt in enumerate(stmts, start=1):
            logger.info("[%d/%d] %s", i, len(stmts), stmt.splitlines()[0][:80])
            if not dry_run and data is not None:
                data.execute(stmt)
            count += 1
    return count
