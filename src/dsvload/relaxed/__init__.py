"""
Relaxed-JSON value parser.

Exports the public API:
- parse, ParseOptions, RELAXED, STRICT
- coerce_key
- RelaxedMap, Kind, kind_of, NO_VALUE, to_python, render
"""
from .coerce import coerce_key
from .parse import RELAXED, STRICT, ParseOptions, parse
from .value import NO_VALUE, Kind, RelaxedMap, kind_of, render, to_python

__all__ = [
    "parse",
    "ParseOptions",
    "RELAXED",
    "STRICT",
    "coerce_key",
    "RelaxedMap",
    "Kind",
    "kind_of",
    "NO_VALUE",
    "to_python",
    "render",
]
