"""Schema rules and validation helpers for flat-file collections."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class FieldRule:
    required: bool = False
    unique: bool = False


Schema = Mapping[str, FieldRule]


class RepositoryError(Exception):
    """Base exception for repository workflow."""


class ValidationError(RepositoryError):
    """Raised when a required field is missing from a new entity."""

    def __init__(self, field: str):
        super().__init__(f"Field '{field}' is required")
        self.field = field


class UniquenessError(RepositoryError):
    """Raised when a unique field value is already taken."""

    def __init__(self, field: str, value: Any):
        super().__init__(f"Field '{field}' must be unique, '{value}' already exists")
        self.field = field
        self.value = value


class CollectionFormatError(RepositoryError):
    """Raised when a stored collection is not a JSON array."""

    def __init__(self, name: str, found: type):
        super().__init__(f"Collection '{name}' holds {found.__name__}, expected a list")
        self.name = name


def same_value(left: Any, right: Any) -> bool:
    """Equality that also requires matching types, so True != 1 and 1.0 != 1."""
    return type(left) is type(right) and left == right


def validate_entity_fields(schema: Schema, item: Mapping[str, Any]) -> None:
    """Raise ValidationError for the first required field that is absent."""
    for name, rule in schema.items():
        if rule.required and item.get(name) is None:
            raise ValidationError(name)


def validate_entity_uniqueness(
    schema: Schema, item: Mapping[str, Any], existing: Iterable[Mapping[str, Any]]
) -> None:
    unique_fields = [name for name, rule in schema.items() if rule.unique and name in item]
    if not unique_fields:
        return
    for entity in existing:
        if not isinstance(entity, Mapping):
            continue
        for name in unique_fields:
            if name in entity and same_value(entity[name], item[name]):
                raise UniquenessError(name, item[name])
