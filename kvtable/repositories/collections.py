from __future__ import annotations

import re
import sqlite3
from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType
from typing import Optional, Type

from ..domain.errors import InvalidCollectionName
from ..domain.value_objects.scalar import KindLike, ScalarValue

KEY_COLUMN = "k"
VALUE_COLUMN = "v"
MAX_NAME_LENGTH = 64

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_RESERVED_PREFIX = "sqlite_"


def validate_collection_name(name: str) -> str:
    """Return ``name`` unchanged if it is safe to splice into SQL as a table name."""

    if not isinstance(name, str) or not _NAME_RE.fullmatch(name):
        raise InvalidCollectionName(f"invalid collection name: {name!r}")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidCollectionName(
            f"collection name longer than {MAX_NAME_LENGTH} characters: {name!r}"
        )
    if name.lower().startswith(_RESERVED_PREFIX):
        raise InvalidCollectionName(f"collection name uses reserved prefix: {name!r}")
    return name


class Binding(ABC):
    """Handle coupling a collection name to a caller-owned connection."""

    def __init__(self, name: str) -> None:
        self._name = validate_collection_name(name)

    @property
    def name(self) -> str:
        return self._name

    @abstractmethod
    def set(self, key: str, value: ScalarValue) -> None:
        """Insert a new entry; an existing key is a constraint violation."""

    @abstractmethod
    def replace(self, key: str, value: ScalarValue) -> None:
        """Insert or overwrite the entry for ``key``."""

    @abstractmethod
    def get(self, key: str, kind: KindLike = str) -> ScalarValue:
        """Read the entry for ``key`` coerced to ``kind``."""

    @abstractmethod
    def remove(self, key: str) -> int:
        """Delete the entry for ``key`` and return the affected row count."""

    @abstractmethod
    def release(self) -> None:
        """Detach from the connection; later calls fail."""

    def __enter__(self) -> "Binding":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.release()


@dataclass(frozen=True)
class CollectionDescriptor:
    """Names a logical collection and creates its table on demand."""

    name: str

    def __post_init__(self) -> None:
        validate_collection_name(self.name)

    def materialize(self, conn: sqlite3.Connection) -> Binding:
        """Create the collection table if missing and bind to it."""
        from .sqlite.collections_sqlite import BindingSqlite, create_collection_table

        create_collection_table(conn, self.name)
        return BindingSqlite(self.name, conn)

    @classmethod
    def bind_existing(cls, name: str, conn: sqlite3.Connection) -> Binding:
        """Bind to a table the caller asserts already exists; no schema statement is run."""
        from .sqlite.collections_sqlite import BindingSqlite

        return BindingSqlite(cls(name).name, conn)
