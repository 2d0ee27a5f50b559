from collections.abc import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from classgrid.core.config import get_settings
from classgrid.db.session import SessionLocal
from classgrid.services.engine import TimetableEngine, build_engine
from classgrid.services.kv_store import SqlKeyValueStore


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_kv_store(db: Session = Depends(get_db)) -> SqlKeyValueStore:
    return SqlKeyValueStore(db)


def get_engine(kv_store: SqlKeyValueStore = Depends(get_kv_store)) -> TimetableEngine:
    return build_engine(kv_store, settings=get_settings())
