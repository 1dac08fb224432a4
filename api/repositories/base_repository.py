"""Generic CRUD repository over a single flat-file collection."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from api.domain.schema import (
    CollectionFormatError,
    Schema,
    same_value,
    validate_entity_fields,
    validate_entity_uniqueness,
)
from api.repositories.file_store import FileStore

logger = logging.getLogger(__name__)


class Repository:
    """Find/create helpers for one named collection validated by a schema."""

    def __init__(self, name: str, schema: Schema, store: FileStore) -> None:
        self.name = name
        self.schema = dict(schema)
        self.store = store

    async def find(self, where: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Return every entity matching all fields of `where` (exact equality).

        Without a filter, or when the stored data is empty or not a list,
        the stored data comes back unfiltered.
        """
        try:
            data = await self.store.read_collection(self.name)
        except Exception:
            logger.exception("find failed for collection %s", self.name)
            return []
        if where and isinstance(data, list) and len(data) > 0:
            return [
                item
                for item in data
                if isinstance(item, Mapping)
                and all(field in item and same_value(item[field], value) for field, value in where.items())
            ]
        return data

    async def find_one(self, where: Mapping[str, Any]) -> Optional[dict]:
        found = await self.find(where)
        if isinstance(found, list) and found:
            return found[0]
        return None

    async def find_by_id(self, entity_id: int) -> Optional[dict]:
        try:
            data = await self.store.read_collection(self.name)
        except Exception:
            logger.exception("find_by_id failed for collection %s", self.name)
            return None
        if not isinstance(data, list):
            return None
        for entity in data:
            if isinstance(entity, Mapping) and same_value(entity.get("id"), entity_id):
                return entity
        return None

    async def create_one(self, new_item: Mapping[str, Any]) -> dict:
        validate_entity_fields(self.schema, new_item)
        async with self.store.collection_lock(self.name):
            existing = await self.find()
            if not isinstance(existing, list):
                logger.error("Refusing to overwrite collection %s: stored value is not a list", self.name)
                raise CollectionFormatError(self.name, type(existing))
            validate_entity_uniqueness(self.schema, new_item, existing)
            entity = {**new_item, "id": len(existing) + 1}
            existing.append(entity)
            try:
                await self.store.update_collection(self.name, existing)
            except OSError:
                logger.exception("create_one failed to persist collection %s", self.name)
                raise
        return entity
