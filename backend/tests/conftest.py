import os

os.environ.setdefault("CLASSGRID_DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classgrid.api.deps import get_db
from classgrid.core.config import get_settings
from classgrid.db.base import Base
from classgrid.main import app
from classgrid.services.catalog import StaticCatalog
from classgrid.services.engine import build_engine
from classgrid.services.ids import SequentialIdGenerator
from classgrid.services.kv_store import InMemoryKeyValueStore
import classgrid.models  # noqa: F401

CLASSES = [
    {"id": "10-A", "name": "Grade 10 A", "roomId": "R-101", "roomName": "Room 101"},
    {"id": "10-B", "name": "Grade 10 B", "roomId": "R-102", "roomName": "Room 102"},
    # 10-C shares its room with 10-A
    {"id": "10-C", "name": "Grade 10 C", "roomId": "R-101", "roomName": "Room 101"},
    {"id": "11-A", "name": "Grade 11 A", "roomId": None},
]
STAFF = [{"id": "T1", "name": "U Aung"}, {"id": "T2", "name": "Daw Mya"}, {"id": "T3", "name": "U Kyaw"}]
SUBJECTS = [{"id": "MATH", "nameEn": "Mathematics"}, {"id": "PHYS", "nameEn": "Physics"}, {"id": "ENG", "nameEn": "English"}]


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def seeded_client(client):
    for key, data in (("classes", CLASSES), ("staff", STAFF), ("subjects", SUBJECTS)):
        response = client.put(f"/api/sync/{key}", json={"data": data})
        assert response.status_code == 200
    return client


@pytest.fixture()
def catalog():
    return StaticCatalog(
        classes=CLASSES,
        teachers={item["id"]: item["name"] for item in STAFF},
        subjects={item["id"]: item["nameEn"] for item in SUBJECTS},
    )


@pytest.fixture()
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture()
def timetable(kv_store, catalog):
    return build_engine(
        kv_store,
        settings=get_settings(),
        catalog=catalog,
        id_generator=SequentialIdGenerator(),
    )
