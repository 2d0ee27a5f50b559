from fastapi import APIRouter, Depends

from classgrid.api.deps import get_kv_store
from classgrid.core.config import get_settings
from classgrid.core.exceptions import NotFoundError
from classgrid.schemas.catalog import DatasetOut, DatasetPush
from classgrid.services.kv_store import SqlKeyValueStore

router = APIRouter()

settings = get_settings()


def _require_catalog_key(key: str) -> str:
    # Timetable and template datasets only change through the timetable routes.
    if key not in settings.catalog_dataset_keys:
        raise NotFoundError("Dataset", key)
    return key


@router.get("/{key}", response_model=DatasetOut)
def pull_dataset(key: str, kv_store: SqlKeyValueStore = Depends(get_kv_store)) -> DatasetOut:
    blob = kv_store.load(_require_catalog_key(key))
    return DatasetOut(
        key=blob.key,
        version=blob.version,
        data=blob.data,
        updated_at=blob.updated_at.isoformat() if blob.updated_at else None,
    )


@router.put("/{key}", response_model=DatasetOut)
def push_dataset(
    key: str,
    payload: DatasetPush,
    kv_store: SqlKeyValueStore = Depends(get_kv_store),
) -> DatasetOut:
    _require_catalog_key(key)
    kv_store.save(key, payload.data, base_version=payload.base_version)
    blob = kv_store.load(key)
    return DatasetOut(
        key=blob.key,
        version=blob.version,
        data=blob.data,
        updated_at=blob.updated_at.isoformat() if blob.updated_at else None,
    )
