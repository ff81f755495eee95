# dsvload/schema/compile.py

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from dsvload.errors import (
    EmptyOrInvalidMappingList,
    InvalidColumnReference,
    InvalidFieldValue,
    MissingRequiredField,
    SchemaError,
)
from dsvload.relaxed.value import NO_VALUE, Kind, kind_of, render
from dsvload.schema.types import BinDef, ColumnRef, CompiledSchema, MappingDefinition, MetaDef

log = logging.getLogger(__name__)

# Config document field names
VERSION = "version"
DSV_CONFIG = "dsv_config"
N_COLUMNS = "n_columns"
DELIMITER = "delimiter"
HEADER_EXIST = "header_exist"
MAPPINGS = "mappings"
SECONDARY_MAPPING = "secondary_mapping"
KEY = "key"
SET = "set"
BIN_LIST = "binList"
NAME = "name"
VALUE = "value"
COLUMN_POSITION = "column_position"
COLUMN_NAME = "column_name"
TYPE = "type"
DST_TYPE = "dst_type"
ENCODING = "encoding"
REMOVE_PREFIX = "remove_prefix"

DEFAULT_SET_TYPE = "string"

_INT_TEXT = re.compile(r"[+-]?[0-9]+")


def _join(path: str, field: str) -> str:
    return f"{path}.{field}" if path else field


# -------------------------
# Node helpers
# -------------------------

def _require_map(node: Any, path: str) -> Mapping:
    if kind_of(node) is not Kind.MAP:
        raise InvalidFieldValue(f"expected an object, got {kind_of(node).value}", path, node)
    return node


def _get(node: Mapping, field: str) -> Any:
    """Field value, with an explicit null treated the same as absent."""
    return node.get(field)


def _text(value: Any, path: str) -> str:
    kind = kind_of(value)
    if kind is Kind.STRING:
        return value
    if kind is Kind.BOOL:
        return "true" if value else "false"
    if kind in (Kind.INT32, Kind.INT64, Kind.FLOAT):
        return str(value)
    raise InvalidFieldValue(f"expected a scalar, got {kind.value}", path, value)


def _opt_text(node: Mapping, field: str, path: str) -> Optional[str]:
    value = _get(node, field)
    return None if value is None else _text(value, _join(path, field))


def _bool(value: Any, path: str) -> bool:
    kind = kind_of(value)
    if kind is Kind.BOOL:
        return value
    if kind is Kind.STRING and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise InvalidFieldValue(f"expected a boolean, got {render(value)}", path, value)


def _position(value: Any, path: str) -> int:
    """1-based column_position from the config, returned 0-based."""
    kind = kind_of(value)
    if kind in (Kind.INT32, Kind.INT64):
        n = value
    elif kind is Kind.STRING and _INT_TEXT.fullmatch(value.strip()) and len(value.strip()) <= 20:
        n = int(value.strip())
    else:
        raise InvalidFieldValue(f"column_position must be an integer, got {render(value)}", path, value)
    if n < 1:
        raise InvalidFieldValue(f"column_position is 1-based, got {n}", path, value)
    return n - 1


def _column_ref(node: Mapping, path: str, **extra: Optional[str]) -> ColumnRef:
    pos = _get(node, COLUMN_POSITION)
    name = _get(node, COLUMN_NAME)
    if pos is not None and name is not None:
        raise InvalidColumnReference(
            f"{COLUMN_POSITION} and {COLUMN_NAME} are mutually exclusive", path, node
        )
    if pos is None and name is None:
        raise InvalidColumnReference(f"{COLUMN_POSITION} or {COLUMN_NAME} is required", path, node)
    if pos is not None:
        return ColumnRef(position=_position(pos, _join(path, COLUMN_POSITION)), **extra)
    return ColumnRef(name=_text(name, _join(path, COLUMN_NAME)), **extra)


# -------------------------
# Document sections
# -------------------------

def _compile_dsv_config(root: Mapping) -> Mapping[str, str]:
    version = _get(root, VERSION)
    if version is None:
        raise MissingRequiredField(f"'{VERSION}' key is missing in config", VERSION, root)

    dsv = _get(root, DSV_CONFIG)
    if dsv is None:
        raise MissingRequiredField(f"'{DSV_CONFIG}' key is missing in config", DSV_CONFIG, root)
    dsv = _require_map(dsv, DSV_CONFIG)

    n_columns = _get(dsv, N_COLUMNS)
    if n_columns is None:
        raise MissingRequiredField(
            f"'{N_COLUMNS}' key is missing in {DSV_CONFIG}", _join(DSV_CONFIG, N_COLUMNS), dsv
        )

    config: Dict[str, str] = {
        VERSION: _text(version, VERSION),
        N_COLUMNS: _text(n_columns, _join(DSV_CONFIG, N_COLUMNS)),
    }
    for optional in (DELIMITER, HEADER_EXIST):
        value = _opt_text(dsv, optional, DSV_CONFIG)
        if value is not None:
            config[optional] = value
    return MappingProxyType(config)


def _compile_meta(node: Any, path: str, default_type: Optional[str] = None) -> MetaDef:
    node = _require_map(node, path)
    src_type = _opt_text(node, TYPE, path) or default_type
    prefix = _opt_text(node, REMOVE_PREFIX, path)
    return MetaDef(column=_column_ref(node, path, src_type=src_type, remove_prefix=prefix))


def _compile_bin(node: Any, path: str) -> BinDef:
    """
    Sample bin object:
        {"name": "age", "value": {"column_name": "age", "type": "integer"}}
    """
    node = _require_map(node, path)
    fields: Dict[str, Any] = {}

    name = _get(node, NAME)
    name_path = _join(path, NAME)
    if name is None:
        raise MissingRequiredField(f"'{NAME}' key is missing in bin", name_path, node)
    if kind_of(name) is Kind.STRING:
        fields["static_name"] = name
    elif kind_of(name) is Kind.MAP:
        fields["name_column"] = _column_ref(name, name_path)
    else:
        raise InvalidFieldValue("bin name must be a string or an object", name_path, name)

    value = _get(node, VALUE)
    value_path = _join(path, VALUE)
    if value is None:
        raise MissingRequiredField(f"'{VALUE}' key is missing in bin", value_path, node)
    if kind_of(value) is Kind.STRING:
        fields["static_value"] = value
    elif kind_of(value) is Kind.MAP:
        src_type = _opt_text(value, TYPE, value_path)
        if src_type is None:
            raise MissingRequiredField(
                f"'{TYPE}' key is missing in bin value", _join(value_path, TYPE), node
            )
        fields["value_column"] = _column_ref(
            value,
            value_path,
            src_type=src_type,
            dst_type=_opt_text(value, DST_TYPE, value_path),
            encoding=_opt_text(value, ENCODING, value_path),
            remove_prefix=_opt_text(value, REMOVE_PREFIX, value_path),
        )
    else:
        raise InvalidFieldValue("bin value must be a string or an object", value_path, value)

    return BinDef(**fields)


def _compile_mapping(node: Any, path: str) -> MappingDefinition:
    node = _require_map(node, path)

    secondary = _get(node, SECONDARY_MAPPING)
    secondary = False if secondary is None else _bool(secondary, _join(path, SECONDARY_MAPPING))

    key = _get(node, KEY)
    if key is None:
        raise MissingRequiredField(f"'{KEY}' key is missing in mapping", _join(path, KEY), node)
    key_def = _compile_meta(key, _join(path, KEY))

    set_node = _get(node, SET)
    if set_node is None:
        raise MissingRequiredField(f"'{SET}' key is missing in mapping", _join(path, SET), node)
    if kind_of(set_node) is Kind.STRING:
        set_def = MetaDef(static_value=set_node)
    else:
        set_def = _compile_meta(set_node, _join(path, SET), default_type=DEFAULT_SET_TYPE)

    bins_node = _get(node, BIN_LIST)
    bins_path = _join(path, BIN_LIST)
    if bins_node is None:
        raise MissingRequiredField(f"'{BIN_LIST}' key is missing in mapping", bins_path, node)
    if kind_of(bins_node) is not Kind.LIST:
        raise EmptyOrInvalidMappingList(f"'{BIN_LIST}' must be an array", bins_path, bins_node)
    if not bins_node:
        raise EmptyOrInvalidMappingList(f"'{BIN_LIST}' must not be empty", bins_path, node)
    bins = tuple(_compile_bin(b, f"{bins_path}[{i}]") for i, b in enumerate(bins_node))

    return MappingDefinition(secondary_mapping=secondary, key=key_def, set=set_def, bins=bins)


def _compile_mappings(root: Mapping) -> List[MappingDefinition]:
    node = _get(root, MAPPINGS)
    if node is None:
        return []
    if kind_of(node) is not Kind.LIST:
        raise EmptyOrInvalidMappingList(f"'{MAPPINGS}' must be an array", MAPPINGS, node)
    return [_compile_mapping(m, f"{MAPPINGS}[{i}]") for i, m in enumerate(node)]


# -------------------------
# Public API
# -------------------------

def compile_schema_strict(value: Any) -> CompiledSchema:
    """
    Compile a parsed config document, raising the first ``SchemaError``.

    Works on RelaxedMap trees from ``dsvload.relaxed.parse`` as well as
    plain dict/list documents.
    """
    if value is None or value is NO_VALUE:
        raise MissingRequiredField("config document is empty")
    root = _require_map(value, "")
    dsv_config = _compile_dsv_config(root)
    mappings = _compile_mappings(root)
    return CompiledSchema(dsv_config=dsv_config, mappings=tuple(mappings))


def describe_fragment(fragment: Any) -> str:
    try:
        return render(fragment)
    except TypeError:
        return repr(fragment)


def compile_schema(value: Any) -> Optional[CompiledSchema]:
    """
    Compile a parsed config document.

    Fail-fast: the first problem anywhere aborts the whole compile. It is
    logged with its path and the offending fragment, and None is returned.
    """
    try:
        return compile_schema_strict(value)
    except SchemaError as e:
        log.error("Invalid config: %s. Fragment: %s", e, describe_fragment(e.fragment))
        return None
