from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Iterable, Iterator, Tuple

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


class Kind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT = "float"
    STRING = "string"
    LIST = "list"
    MAP = "map"


SCALAR_KINDS = frozenset({Kind.NULL, Kind.BOOL, Kind.INT32, Kind.INT64, Kind.FLOAT, Kind.STRING})


def kind_of(value: Any) -> Kind:
    """
    Classify a value tree node.

    ``bool`` is checked before ``int`` (it is a subclass of it). Integers
    outside the signed 32-bit range report INT64. Plain ``list``/``dict``
    are accepted so hand-built trees can be traversed the same way as
    parsed ones.
    """
    if value is None:
        return Kind.NULL
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INT32 if INT32_MIN <= value <= INT32_MAX else Kind.INT64
    if isinstance(value, float):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (tuple, list)):
        return Kind.LIST
    if isinstance(value, Mapping):
        return Kind.MAP
    raise TypeError(f"Not a relaxed-JSON value: {type(value).__name__}")


def _slot(key: Any) -> Tuple[str, Any]:
    # INT32 and INT64 share a slot tag; a number can only ever be one of them
    kind = kind_of(key)
    if kind in (Kind.LIST, Kind.MAP):
        raise TypeError(f"unhashable map key kind: {kind.value}")
    if kind in (Kind.INT32, Kind.INT64):
        return ("int", key)
    return (kind.value, key)


class RelaxedMap(Mapping):
    """
    Read-only, declaration-ordered object node.

    Entries are keyed by (kind, value), so ``True``, ``1`` and ``1.0`` are
    three distinct keys, and a coerced key ``2`` is not reachable as ``"2"``.
    A repeated key replaces the earlier value but keeps its position.
    """

    __slots__ = ("_entries",)

    def __init__(self, pairs: Iterable[Tuple[Any, Any]] = ()):
        if isinstance(pairs, Mapping):
            pairs = pairs.items()
        entries = {}
        for key, value in pairs:
            entries[_slot(key)] = (key, value)
        self._entries = entries

    def __getitem__(self, key: Any) -> Any:
        try:
            return self._entries[_slot(key)][1]
        except (KeyError, TypeError):
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[Any]:
        for key, _ in self._entries.values():
            yield key

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RelaxedMap):
            return self._entries == other._entries
        if isinstance(other, Mapping):
            return self._entries == RelaxedMap(other.items())._entries
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self._entries.values())
        return f"RelaxedMap({{{body}}})"


class _NoValue:
    """Result of parsing an empty or whitespace-only document."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE = _NoValue()


def to_python(value: Any) -> Any:
    """
    Materialize a value tree into plain ``dict``/``list`` natives.

    Keys that only differ by kind (``True`` vs ``1``) collapse in a plain
    dict; keep the RelaxedMap when that matters.
    """
    kind = kind_of(value)
    if kind is Kind.LIST:
        return [to_python(v) for v in value]
    if kind is Kind.MAP:
        return {k: to_python(v) for k, v in value.items()}
    return value


def render(value: Any) -> str:
    """Compact relaxed-JSON text of a fragment, for diagnostics."""
    kind = kind_of(value)
    if kind is Kind.LIST:
        return "[" + ",".join(render(v) for v in value) + "]"
    if kind is Kind.MAP:
        return "{" + ",".join(f"{render(k)}:{render(v)}" for k, v in value.items()) + "}"
    return json.dumps(value, ensure_ascii=False)
