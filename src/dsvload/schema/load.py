from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from dsvload.errors import MalformedConfigSyntax
from dsvload.relaxed.parse import RELAXED, ParseOptions, parse
from dsvload.relaxed.value import NO_VALUE, render
from dsvload.schema.compile import compile_schema
from dsvload.schema.types import CompiledSchema

log = logging.getLogger(__name__)


def load_config_text(text: str, *, options: ParseOptions = RELAXED) -> Optional[CompiledSchema]:
    """
    Parse and compile a config document.

    Returns None (after logging why) on a syntax error, an empty document
    or an invalid schema.
    """
    try:
        doc = parse(text, options=options)
    except MalformedConfigSyntax as e:
        log.error("Config syntax error: %s", e)
        return None

    if doc is NO_VALUE:
        log.error("Empty config file.")
        return None
    log.debug("Config file contents: %s", render(doc))

    return compile_schema(doc)


def load_config_file(path: Union[str, Path], *, options: ParseOptions = RELAXED) -> Optional[CompiledSchema]:
    """Read ``path`` and compile it. I/O errors propagate as OSError."""
    path = Path(path).expanduser()
    text = path.read_text(encoding="utf-8")
    schema = load_config_text(text, options=options)
    if schema is None:
        log.error("File: %s: config rejected", path.name)
    return schema
