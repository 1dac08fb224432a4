from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.core import config as core_config  # noqa: E402
from api.domain.users import USER_SCHEMA, USERS_COLLECTION  # noqa: E402
from api.repositories.base_repository import Repository  # noqa: E402
from api.repositories.file_store import FileStore  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def data_env(tmp_path, monkeypatch):
    """Point DATA_DIR at a temporary directory and reset cached settings."""
    data_dir = tmp_path / "database"
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    core_config.get_settings.cache_clear()
    yield data_dir
    core_config.get_settings.cache_clear()


@pytest.fixture()
def store(data_env):
    return FileStore(data_env)


@pytest.fixture()
def user_repo(store):
    return Repository(USERS_COLLECTION, USER_SCHEMA, store)
