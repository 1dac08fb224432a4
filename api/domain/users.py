"""User collection layout."""
from __future__ import annotations

from api.domain.schema import FieldRule

USERS_COLLECTION = "users"

USER_SCHEMA = {
    "username": FieldRule(required=True, unique=True),
    "password": FieldRule(required=True),
}
