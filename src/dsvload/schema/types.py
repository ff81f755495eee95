from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from dsvload.errors import InvalidColumnReference


@dataclass(frozen=True)
class ColumnRef:
    """
    Reference to one source column of a data row.

    Exactly one of ``position`` (0-based) or ``name`` is set. Type, encoding
    and prefix are carried for the downstream converter; nothing here
    converts values.
    """

    position: Optional[int] = None
    name: Optional[str] = None
    src_type: Optional[str] = None
    dst_type: Optional[str] = None
    encoding: Optional[str] = None
    remove_prefix: Optional[str] = None

    def __post_init__(self):
        if (self.position is None) == (self.name is None):
            raise InvalidColumnReference(
                "exactly one of column_position or column_name must be set",
                fragment={"position": self.position, "name": self.name},
            )

    def index_in(self, header: Optional[Sequence[str]] = None) -> Optional[int]:
        """0-based column index, looking names up in ``header``."""
        if self.position is not None:
            return self.position
        if header is None:
            return None
        try:
            return list(header).index(self.name)
        except ValueError:
            return None

    def strip_prefix(self, raw: str) -> str:
        if self.remove_prefix and raw.startswith(self.remove_prefix):
            return raw[len(self.remove_prefix):]
        return raw

    def pick(self, columns: Sequence[str], header: Optional[Sequence[str]] = None) -> Optional[str]:
        """Raw text of the referenced column with the prefix removed, or None if absent."""
        idx = self.index_in(header)
        if idx is None or idx >= len(columns):
            return None
        return self.strip_prefix(columns[idx])


@dataclass(frozen=True)
class MetaDef:
    """Key or set definition: a static value or a column reference."""

    static_value: Optional[str] = None
    column: Optional[ColumnRef] = None

    @property
    def is_static(self) -> bool:
        return self.column is None

    @property
    def src_type(self) -> Optional[str]:
        return self.column.src_type if self.column is not None else None

    def resolve(self, columns: Sequence[str], header: Optional[Sequence[str]] = None) -> Optional[str]:
        if self.column is None:
            return self.static_value
        return self.column.pick(columns, header)


@dataclass(frozen=True)
class BinDef:
    """A destination bin: name and value, each static or taken from a column."""

    static_name: Optional[str] = None
    name_column: Optional[ColumnRef] = None
    static_value: Optional[str] = None
    value_column: Optional[ColumnRef] = None

    def resolve_name(self, columns: Sequence[str], header: Optional[Sequence[str]] = None) -> Optional[str]:
        if self.name_column is None:
            return self.static_name
        return self.name_column.pick(columns, header)

    def resolve_value(self, columns: Sequence[str], header: Optional[Sequence[str]] = None) -> Optional[str]:
        if self.value_column is None:
            return self.static_value
        return self.value_column.pick(columns, header)


@dataclass(frozen=True)
class MappingDefinition:
    secondary_mapping: bool
    key: MetaDef
    set: MetaDef
    bins: Tuple[BinDef, ...]


@dataclass(frozen=True)
class CompiledSchema:
    """
    Result of a successful compile. Shared read-only by all row workers.

    Unpacks as ``dsv_config, mappings = schema``.
    """

    dsv_config: Mapping[str, str]
    mappings: Tuple[MappingDefinition, ...] = ()

    def __iter__(self) -> Iterator:
        yield self.dsv_config
        yield self.mappings

    @property
    def primary(self) -> Optional[MappingDefinition]:
        return next((m for m in self.mappings if not m.secondary_mapping), None)

    @property
    def secondary(self) -> Tuple[MappingDefinition, ...]:
        return tuple(m for m in self.mappings if m.secondary_mapping)
