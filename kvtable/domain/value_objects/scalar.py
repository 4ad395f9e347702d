"""Tagged scalar values and the coercion table between them.

``Scalar.of`` is the only way values enter storage and ``Scalar.coerce`` the
only way they leave it, so supporting a new kind means extending
:class:`ScalarKind` and the ``_COERCIONS`` table below.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Union

from pydantic import BaseModel, ConfigDict, model_validator

from ..errors import TypeMismatch
from .enums import ScalarKind

ScalarValue = Union[bool, int, float, str]
KindLike = Union[ScalarKind, str, type]

_PY_TYPES: dict[ScalarKind, type] = {
    ScalarKind.TEXT: str,
    ScalarKind.INTEGER: int,
    ScalarKind.REAL: float,
    ScalarKind.BOOLEAN: bool,
}
_KINDS_BY_TYPE: dict[type, ScalarKind] = {t: k for k, t in _PY_TYPES.items()}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_REAL_RE = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")
_TRUE_SET = {"1", "true", "yes", "on"}
_FALSE_SET = {"0", "false", "no", "off"}


def resolve_kind(kind: KindLike) -> ScalarKind:
    """Map a ``ScalarKind``, its value, or a Python type onto a ``ScalarKind``."""

    if isinstance(kind, ScalarKind):
        return kind
    if isinstance(kind, type):
        try:
            return _KINDS_BY_TYPE[kind]
        except KeyError:
            raise TypeMismatch(f"unsupported scalar type: {kind.__name__}") from None
    try:
        return ScalarKind(str(kind).lower())
    except ValueError:
        raise TypeMismatch(f"unsupported scalar kind: {kind!r}") from None


def ensure_utf8(text: str) -> str:
    """Return ``text`` if it can be stored as UTF-8 (no lone surrogates)."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise TypeMismatch(f"text is not valid UTF-8: {text!r}") from exc
    return text


def _text_to_int(value: str) -> int:
    text = value.strip()
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"not an integer literal: {value!r}")
    return int(text)


def _text_to_real(value: str) -> float:
    text = value.strip()
    if not _REAL_RE.fullmatch(text):
        raise ValueError(f"not a real literal: {value!r}")
    return float(text)


def _text_to_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE_SET:
        return True
    if text in _FALSE_SET:
        return False
    raise ValueError(f"not a boolean literal: {value!r}")


def _real_to_int(value: float) -> int:
    if not value.is_integer():
        raise ValueError(f"real value {value!r} is not integral")
    return int(value)


# (stored kind, requested kind) -> converter. Missing pairs are mismatches.
_COERCIONS: dict[tuple[ScalarKind, ScalarKind], Callable[[Any], ScalarValue]] = {
    (ScalarKind.TEXT, ScalarKind.TEXT): str,
    (ScalarKind.TEXT, ScalarKind.INTEGER): _text_to_int,
    (ScalarKind.TEXT, ScalarKind.REAL): _text_to_real,
    (ScalarKind.TEXT, ScalarKind.BOOLEAN): _text_to_bool,
    (ScalarKind.INTEGER, ScalarKind.TEXT): str,
    (ScalarKind.INTEGER, ScalarKind.INTEGER): int,
    (ScalarKind.INTEGER, ScalarKind.REAL): float,
    (ScalarKind.INTEGER, ScalarKind.BOOLEAN): bool,
    (ScalarKind.REAL, ScalarKind.TEXT): str,
    (ScalarKind.REAL, ScalarKind.INTEGER): _real_to_int,
    (ScalarKind.REAL, ScalarKind.REAL): float,
    (ScalarKind.BOOLEAN, ScalarKind.TEXT): lambda v: "true" if v else "false",
    (ScalarKind.BOOLEAN, ScalarKind.INTEGER): int,
    (ScalarKind.BOOLEAN, ScalarKind.BOOLEAN): bool,
}


def coercion_pairs() -> list[tuple[ScalarKind, ScalarKind]]:
    """Return every supported ``(stored, requested)`` coercion pair."""
    return list(_COERCIONS)


class Scalar(BaseModel):
    """A single value of one of the supported scalar kinds."""

    kind: ScalarKind
    value: ScalarValue

    model_config = ConfigDict(frozen=True, strict=True)

    @model_validator(mode="after")
    def _value_matches_kind(self) -> "Scalar":
        if type(self.value) is not _PY_TYPES[self.kind]:
            raise ValueError(
                f"{type(self.value).__name__} value does not match kind {self.kind.value}"
            )
        if self.kind is ScalarKind.REAL and not math.isfinite(self.value):
            raise ValueError("real values must be finite")
        return self

    @classmethod
    def of(cls, value: Any) -> "Scalar":
        """Wrap a Python value, inferring its kind."""
        if isinstance(value, Scalar):
            return value
        # bool is a subclass of int, so look up the exact type
        kind = _KINDS_BY_TYPE.get(type(value))
        if kind is None:
            raise TypeMismatch(f"unsupported value type: {type(value).__name__}")
        if kind is ScalarKind.REAL and not math.isfinite(value):
            raise TypeMismatch(f"non-finite real value: {value!r}")
        if kind is ScalarKind.INTEGER and not INT64_MIN <= value <= INT64_MAX:
            raise TypeMismatch(f"integer out of 64-bit range: {value}")
        if kind is ScalarKind.TEXT:
            ensure_utf8(value)
        return cls(kind=kind, value=value)

    @classmethod
    def from_storage(cls, raw: Any) -> "Scalar":
        """Wrap a value as returned by the storage engine."""
        if raw is None:
            raise TypeMismatch("stored value is NULL")
        if isinstance(raw, (bytes, bytearray, memoryview)):
            raise TypeMismatch("stored value is a blob")
        return cls.of(raw)

    def to_storage(self) -> int | float | str:
        """Return the engine-native representation (booleans become 1/0)."""
        if self.kind is ScalarKind.BOOLEAN:
            return int(self.value)
        return self.value  # type: ignore[return-value]

    def coerce(self, kind: KindLike) -> ScalarValue:
        """Convert to the requested kind or raise :class:`TypeMismatch`."""
        target = resolve_kind(kind)
        converter = _COERCIONS.get((self.kind, target))
        if converter is None:
            raise TypeMismatch(
                f"cannot read {self.kind.value} value as {target.value}"
            )
        try:
            return converter(self.value)
        except ValueError as exc:
            raise TypeMismatch(str(exc)) from exc
