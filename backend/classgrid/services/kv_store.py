from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classgrid.core.exceptions import VersionConflictError
from classgrid.models.dataset import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredBlob:
    key: str
    data: Any
    version: int
    updated_at: datetime | None = None


class KeyValueStore(Protocol):
    def load(self, key: str) -> StoredBlob: ...

    def save(self, key: str, data: Any, *, base_version: int | None = None) -> int: ...


def _check_version(key: str, base_version: int | None, current_version: int) -> None:
    if base_version is not None and base_version != current_version:
        logger.warning(
            "Rejected stale write to dataset %s (base version %s, server version %s)",
            key,
            base_version,
            current_version,
        )
        raise VersionConflictError(key, base_version, current_version)


class InMemoryKeyValueStore:
    """Process-local store, used by tests and non-persistent tooling."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._blobs: dict[str, StoredBlob] = {}
        for key, data in (initial or {}).items():
            self.save(key, data)

    def load(self, key: str) -> StoredBlob:
        blob = self._blobs.get(key)
        if blob is None:
            return StoredBlob(key=key, data=None, version=0)
        return StoredBlob(key=key, data=copy.deepcopy(blob.data), version=blob.version, updated_at=blob.updated_at)

    def save(self, key: str, data: Any, *, base_version: int | None = None) -> int:
        current = self._blobs.get(key)
        current_version = current.version if current is not None else 0
        _check_version(key, base_version, current_version)
        next_version = current_version + 1
        self._blobs[key] = StoredBlob(
            key=key,
            data=copy.deepcopy(data),
            version=next_version,
            updated_at=datetime.now(timezone.utc),
        )
        return next_version


class SqlKeyValueStore:
    """Datasets persisted as JSON rows in the `datasets` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def load(self, key: str) -> StoredBlob:
        record = self.db.get(Dataset, key)
        if record is None:
            return StoredBlob(key=key, data=None, version=0)
        return StoredBlob(key=key, data=record.payload, version=record.version, updated_at=record.updated_at)

    def save(self, key: str, data: Any, *, base_version: int | None = None) -> int:
        record = self.db.get(Dataset, key, populate_existing=True)
        current_version = record.version if record is not None else 0
        _check_version(key, base_version, current_version)

        next_version = current_version + 1
        if record is None:
            self.db.add(Dataset(key=key, version=next_version, payload=data))
            try:
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                self._raise_lost_race(key, current_version, exc)
        else:
            # Another writer may have committed since the read above; only the
            # row still at current_version is updated.
            result = self.db.execute(
                update(Dataset)
                .where(Dataset.key == key, Dataset.version == current_version)
                .values(version=next_version, payload=data, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                self._raise_lost_race(key, current_version)
            self.db.commit()
        logger.debug("Saved dataset %s at version %s", key, next_version)
        return next_version

    def _raise_lost_race(self, key: str, expected_version: int, cause: Exception | None = None) -> None:
        actual_version = self.load(key).version
        logger.warning(
            "Concurrent write to dataset %s (expected version %s, server version %s)",
            key,
            expected_version,
            actual_version,
        )
        raise VersionConflictError(key, expected_version, actual_version) from cause
