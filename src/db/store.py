from __future__ import annotations

import sqlite3
from typing import Dict, Optional

from db import crud
from utils.logger import get_logger

_logger = get_logger(__name__)

_STORAGE_ERRORS = (sqlite3.Error, OSError)


class Store:
    """
    Durable string key/value store backed by a local sqlite file.

    If the file cannot be used (unwritable location, corrupt or locked file,
    disk full) the store logs once and keeps serving from memory for the
    rest of the process. No storage error ever reaches the caller.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._memory: Dict[str, str] = {}
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """True once the store has fallen back to memory only."""
        return self._degraded

    def _degrade(self, op: str, exc: BaseException) -> None:
        if not self._degraded:
            _logger.warning(
                f"Local store {self.db_path!r} unavailable during {op} ({exc}); "
                "continuing with in-memory persistence."
            )
        self._degraded = True

    async def get(self, key: str) -> Optional[str]:
        if self._degraded:
            return self._memory.get(key)
        try:
            value = await crud.kv_get(self.db_path, key)
        except _STORAGE_ERRORS as exc:
            self._degrade("get", exc)
            return self._memory.get(key)
        if value is not None:
            self._memory[key] = value
        return value

    async def set(self, key: str, value: str) -> None:
        self._memory[key] = value
        if self._degraded:
            return
        try:
            await crud.kv_set(self.db_path, key, value)
        except _STORAGE_ERRORS as exc:
            self._degrade("set", exc)

    async def remove(self, key: str) -> None:
        self._memory.pop(key, None)
        if self._degraded:
            return
        try:
            await crud.kv_remove(self.db_path, key)
        except _STORAGE_ERRORS as exc:
            self._degrade("remove", exc)
