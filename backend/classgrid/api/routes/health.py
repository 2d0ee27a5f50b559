from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from classgrid.api.deps import get_db
from classgrid.core.config import get_settings
from classgrid.core.exceptions import AppError
from classgrid.db.bootstrap import find_schema_gaps
from classgrid.schemas.timetable import ScheduleTemplate
from classgrid.services.kv_store import KeyValueStore, SqlKeyValueStore
from classgrid.services.timetable_store import TimetableStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _timetable_status(kv_store: KeyValueStore, key: str) -> dict:
    try:
        store = TimetableStore.load(kv_store, key)
    except AppError as exc:
        return {"ok": False, "version": kv_store.load(key).version, "error": exc.message}
    return {"ok": True, "version": store.version, "entries": len(store)}


def _templates_status(kv_store: KeyValueStore, key: str) -> dict:
    blob = kv_store.load(key)
    if blob.data is not None and not isinstance(blob.data, dict):
        return {"ok": False, "version": blob.version, "error": f"Dataset {key} is not a mapping"}
    valid = 0
    malformed: list[str] = []
    for class_id, item in (blob.data or {}).items():
        try:
            ScheduleTemplate.model_validate(item)
        except ValidationError:
            malformed.append(class_id)
            continue
        valid += 1
    # Malformed templates are kept as-is and skipped by the template routes.
    return {"ok": True, "version": blob.version, "templates": valid, "malformed": sorted(malformed)}


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(db: Session = Depends(get_db)) -> JSONResponse:
    """Ready when the datasets table is in place and the timetable parses."""
    settings = get_settings()
    database: dict = {"ok": True, "missing": [], "error": None}
    datasets: dict[str, dict] = {}

    try:
        database["missing"] = find_schema_gaps(db.connection())
        if not database["missing"]:
            kv_store = SqlKeyValueStore(db)
            datasets[settings.timetable_dataset_key] = _timetable_status(kv_store, settings.timetable_dataset_key)
            datasets[settings.templates_dataset_key] = _templates_status(kv_store, settings.templates_dataset_key)
    except SQLAlchemyError as exc:
        logger.warning("Readiness check could not reach the database: %s", exc)
        database["ok"] = False
        database["error"] = str(exc)

    ready = (
        database["ok"]
        and not database["missing"]
        and bool(datasets)
        and all(status["ok"] for status in datasets.values())
    )
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "datasets": datasets,
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
