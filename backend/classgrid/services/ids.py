from __future__ import annotations

import itertools
import uuid
from typing import Protocol


class IdGenerator(Protocol):
    def __call__(self) -> str: ...


class UuidIdGenerator:
    def __init__(self, prefix: str = "TT") -> None:
        self.prefix = prefix

    def __call__(self) -> str:
        return f"{self.prefix}-{uuid.uuid4().hex}"


class SequentialIdGenerator:
    """Deterministic ids (TT-0001, TT-0002, ...) for tests and fixtures."""

    def __init__(self, prefix: str = "TT", start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter):04d}"
