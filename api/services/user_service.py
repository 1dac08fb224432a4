"""
Sign-up and sign-in use cases for the user collection.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from starlette.concurrency import run_in_threadpool

from api.core.config import get_settings
from api.core.http import HttpResponse
from api.core.security import hash_password, verify_password
from api.domain.users import USER_SCHEMA, USERS_COLLECTION
from api.repositories.base_repository import Repository
from api.repositories.file_store import FileStore

logger = logging.getLogger(__name__)


@dataclass
class UserService:
    """Registers users and checks their credentials."""

    repository: Optional[Repository] = field(default=None)

    def __post_init__(self):
        if self.repository is None:
            store = FileStore(get_settings().data_dir)
            self.repository = Repository(USERS_COLLECTION, USER_SCHEMA, store)

    async def insert_user(self, user: Mapping[str, Any]) -> dict:
        """Persist a new user, storing only the password hash."""
        raw_password = user.get("password")
        password = await run_in_threadpool(hash_password, raw_password) if raw_password else None
        created = await self.repository.create_one({"username": user.get("username"), "password": password})
        logger.info("Created user %s with id %s", created["username"], created["id"])
        return created

    async def verify_user(self, credentials: Mapping[str, Any]) -> Optional[dict]:
        username = credentials.get("username")
        password = credentials.get("password")
        if not username or not isinstance(password, str):
            return None
        stored = await self.repository.find_one({"username": username})
        if not stored:
            return None
        # argon2 is CPU-bound, keep it off the event loop
        if not await run_in_threadpool(verify_password, password, stored.get("password")):
            return None
        return stored


def handle_auth_response(response: HttpResponse, is_successful: bool = False) -> None:
    data = {"status": "success" if is_successful else "fail"}
    response.set_header("Content-Type", "application/json")
    response.end(json.dumps(data))
