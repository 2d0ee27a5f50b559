"""Seed demo master data and a sample week for ClassGrid.

Run:
  PYTHONPATH=backend python scripts/seed_school_data.py
"""

from __future__ import annotations

import logging
import os

from classgrid.core.config import get_settings
from classgrid.core.exceptions import SlotOccupiedError
from classgrid.core.logging import configure_logging
from classgrid.db.bootstrap import ensure_runtime_schema_compatibility
from classgrid.db.session import SessionLocal
from classgrid.services.engine import build_engine
from classgrid.services.kv_store import SqlKeyValueStore

logger = logging.getLogger("classgrid.seed")

RESET_TIMETABLE = os.getenv("SEED_RESET_TIMETABLE", "false").strip().lower() in {"1", "true", "yes", "on"}

ROOMS = [
    {"id": "RM-101", "number": "101", "building": "Building A", "type": "Classroom", "capacity": 40},
    {"id": "RM-102", "number": "102", "building": "Building A", "type": "Classroom", "capacity": 40},
    {"id": "RM-LAB", "number": "Lab-A", "building": "Building B", "type": "Laboratory", "capacity": 30},
]

CLASSES = [
    {"id": "CL-10A", "name": "Grade 10 A", "roomId": "RM-101", "roomName": "101"},
    {"id": "CL-10B", "name": "Grade 10 B", "roomId": "RM-102", "roomName": "102"},
    {"id": "CL-11A", "name": "Grade 11 A", "roomId": "RM-101", "roomName": "101"},
]

STAFF = [
    {"id": "TF-001", "name": "U Aung Min", "department": "Mathematics"},
    {"id": "TF-002", "name": "Daw Mya Mya", "department": "English"},
    {"id": "TF-003", "name": "Daw Hla Hla", "department": "Myanmar"},
    {"id": "TF-004", "name": "U Kyaw Zin", "department": "IT"},
]

SUBJECTS = [
    {"id": "SUB-001", "code": "MYA-10", "nameEn": "Myanmar"},
    {"id": "SUB-002", "code": "ENG-10", "nameEn": "English"},
    {"id": "SUB-003", "code": "MAT-10", "nameEn": "Mathematics"},
    {"id": "SUB-004", "code": "PHY-10", "nameEn": "Physics"},
    {"id": "SUB-010", "code": "CS-10", "nameEn": "Computer Science"},
    {"id": "SUB-IGCSE-ENG", "code": "IG-ENG", "nameEn": "IGCSE English"},
]

# (class, day, period, subject, teacher, curriculum)
SAMPLE_WEEK = [
    ("CL-10A", "Monday", 1, "SUB-001", "TF-003", "Public"),
    ("CL-10A", "Monday", 2, "SUB-002", "TF-001", "Public"),
    ("CL-10A", "Monday", 4, "SUB-003", "TF-001", "Public"),
    ("CL-10A", "Tuesday", 1, "SUB-003", "TF-001", "Public"),
    ("CL-10A", "Tuesday", 2, "SUB-004", "TF-002", "Public"),
    ("CL-10B", "Monday", 1, "SUB-003", "TF-001", "Public"),
    # TF-001 is also teaching CL-10A here; kept to demonstrate conflict reporting.
    ("CL-10B", "Monday", 2, "SUB-003", "TF-001", "Public"),
    ("CL-10A", "Wednesday", 1, "SUB-IGCSE-ENG", "TF-002", "Private"),
    ("CL-10A", "Wednesday", 2, "SUB-010", "TF-004", "Private"),
]


def seed_catalog(kv_store: SqlKeyValueStore) -> None:
    settings = get_settings()
    for key, data in (
        (settings.rooms_dataset_key, ROOMS),
        (settings.classes_dataset_key, CLASSES),
        (settings.staff_dataset_key, STAFF),
        (settings.subjects_dataset_key, SUBJECTS),
    ):
        version = kv_store.save(key, data)
        logger.info("Seeded %s (%s records, version %s)", key, len(data), version)


def seed_sample_week(kv_store: SqlKeyValueStore) -> tuple[int, int]:
    engine = build_engine(kv_store)
    if RESET_TIMETABLE:
        for class_id in {item[0] for item in SAMPLE_WEEK}:
            engine.store.replace_for_class(class_id, [])

    created = 0
    warned = 0
    for class_id, day, period_id, subject_id, teacher_id, curriculum in SAMPLE_WEEK:
        try:
            result = engine.mutator.assign(
                class_id, day, period_id, subject_id, teacher_id, curriculum_type=curriculum
            )
        except SlotOccupiedError:
            logger.info("Skipping %s %s/%s: slot already scheduled", class_id, day, period_id)
            continue
        created += 1
        for warning in result.warnings:
            warned += 1
            logger.warning("%s %s/%s: %s", class_id, day, period_id, warning.description)
    return created, warned


def main() -> None:
    configure_logging(get_settings())
    ensure_runtime_schema_compatibility()
    session = SessionLocal()
    try:
        kv_store = SqlKeyValueStore(session)
        seed_catalog(kv_store)
        created, warned = seed_sample_week(kv_store)
    finally:
        session.close()

    print(f"Seeded {len(CLASSES)} classes, {len(STAFF)} teachers, {len(SUBJECTS)} subjects.")
    print(f"Scheduled {created} lessons ({warned} conflict warning(s)).")


if __name__ == "__main__":
    main()
