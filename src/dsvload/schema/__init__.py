"""
Config schema compiler.

Exports the public API:
- compile_schema, compile_schema_strict
- load_config_text, load_config_file
- CompiledSchema, MappingDefinition, MetaDef, BinDef, ColumnRef
- DsvOptions
"""
from .compile import compile_schema, compile_schema_strict
from .load import load_config_file, load_config_text
from .options import DsvOptions
from .types import BinDef, ColumnRef, CompiledSchema, MappingDefinition, MetaDef

__all__ = [
    "compile_schema",
    "compile_schema_strict",
    "load_config_text",
    "load_config_file",
    "CompiledSchema",
    "MappingDefinition",
    "MetaDef",
    "BinDef",
    "ColumnRef",
    "DsvOptions",
]
