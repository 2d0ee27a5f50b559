from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection

from classgrid.db.base import Base
from classgrid.db.session import engine
import classgrid.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "datasets": {"key", "version", "payload", "updated_at"},
}


def find_schema_gaps(connection: Connection) -> list[str]:
    """Return missing tables as `table` and missing columns as `table.column`."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    gaps: list[str] = []
    for table_name, required in sorted(REQUIRED_COLUMNS.items()):
        if table_name not in table_names:
            gaps.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        gaps.extend(f"{table_name}.{column_name}" for column_name in sorted(required - existing))
    return gaps


def ensure_runtime_schema_compatibility() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        with engine.connect() as connection:
            gaps = find_schema_gaps(connection)
        if gaps:
            raise RuntimeError(f"Missing required schema objects: {', '.join(gaps)}")
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
