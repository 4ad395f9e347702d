"""Typed key-value collections stored in SQLite tables."""

from .domain.errors import (
    ConstraintViolation,
    EngineFailure,
    InvalidCollectionName,
    KVError,
    NotFound,
    NotInitialized,
    SchemaError,
    TypeMismatch,
)
from .domain.value_objects.enums import ScalarKind
from .domain.value_objects.scalar import Scalar
from .repositories.collections import Binding, CollectionDescriptor

__version__ = "0.1.0"

__all__ = [
    "Binding",
    "CollectionDescriptor",
    "ConstraintViolation",
    "EngineFailure",
    "InvalidCollectionName",
    "KVError",
    "NotFound",
    "NotInitialized",
    "Scalar",
    "ScalarKind",
    "SchemaError",
    "TypeMismatch",
]
