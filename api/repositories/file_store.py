"""
JSON file persistence adapter.

Each collection lives in its own file (<base_dir>/<name>.json) holding a
JSON array. Reads always return the whole collection and writes always
replace the whole file; there is no in-memory copy between calls.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


class FileStore:
    """Reads and writes one JSON array per named collection."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self._locks: dict[str, asyncio.Lock] = {}

    def path_for(self, name: str) -> Path:
        return self.base_dir / f"{name}.json"

    def collection_lock(self, name: str) -> asyncio.Lock:
        """Lock serializing read-modify-write cycles on one collection."""
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    def _load(self, name: str) -> Any:
        path = self.path_for(name)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read collection %s from %s: %s", name, path, exc)
            return []

    def _save(self, name: str, entities: list[dict]) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.path_for(name).write_text(json.dumps(entities, ensure_ascii=False, indent=2), encoding="utf-8")

    async def read_collection(self, name: str) -> Any:
        return await run_in_threadpool(self._load, name)

    async def update_collection(self, name: str, entities: list[dict]) -> None:
        await run_in_threadpool(self._save, name, entities)
