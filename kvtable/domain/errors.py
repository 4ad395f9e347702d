"""Error taxonomy for collection and binding operations.

Every failure raised by :mod:`kvtable.repositories` derives from
:class:`KVError`. Each class carries an HTTP-equivalent ``status_code`` so
surrounding glue (the CLI, a web layer) can map failures onto its own
response vocabulary without inspecting messages.
"""

from __future__ import annotations

from typing import ClassVar, Optional


class KVError(RuntimeError):
    """Base class for all key-value store failures."""

    status_code: ClassVar[int] = 500

    def __init__(self, message: str, *, collection: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.collection = collection


class InvalidCollectionName(KVError, ValueError):
    """Raised when a collection name is not a safe SQL identifier."""

    status_code = 400


class SchemaError(KVError):
    """Raised when the collection table cannot be created or is incompatible."""

    status_code = 500


class NotInitialized(KVError):
    """Raised when the collection table does not exist."""

    status_code = 404


class ConstraintViolation(KVError):
    """Raised when a write breaks the key uniqueness constraint."""

    status_code = 400


class NotFound(KVError):
    """Raised when no row matches the requested key."""

    status_code = 404

    def __init__(self, key: str, *, collection: Optional[str] = None) -> None:
        super().__init__(f"key {key!r} not found", collection=collection)
        self.key = key


class TypeMismatch(KVError, TypeError):
    """Raised when a value cannot be stored or read back as the requested kind."""

    status_code = 400


class EngineFailure(KVError):
    """Raised for storage engine or connection errors not classified above."""

    status_code = 500
