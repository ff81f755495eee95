from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict
from itertools import islice
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml

from dsvload.dsv.tokenize import DEFAULT_DELIMITER, DsvTokenizer
from dsvload.errors import InvalidFieldValue
from dsvload.schema.load import load_config_file
from dsvload.schema.options import DsvOptions
from dsvload.schema.types import CompiledSchema

app = typer.Typer(help="dsv-loader CLI")

LOG_LEVEL_ENV = "DSVLOAD_LOG_LEVEL"


def _setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("dsvload")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("[dsvload] %(levelname)s %(message)s"))
        logger.addHandler(handler)
    level = "DEBUG" if verbose else os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise typer.BadParameter(f"{LOG_LEVEL_ENV}={level!r} is not a logging level")
    logger.setLevel(level)


def _plain(obj: Any) -> Any:
    # yaml.safe_dump only knows dict/list scalars; drop unset fields
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items() if v is not None}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


def schema_to_doc(schema: CompiledSchema) -> Dict[str, Any]:
    return {
        "dsv_config": dict(schema.dsv_config),
        "mappings": [_plain(asdict(m)) for m in schema.mappings],
    }


def _load_or_exit(config: Path) -> CompiledSchema:
    try:
        schema = load_config_file(config)
    except OSError as e:
        raise typer.BadParameter(f"cannot read {config}: {e}")
    if schema is None:
        typer.secho(f"Invalid config: {config}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return schema


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    _setup_logging(verbose)


@app.command("check-config")
def check_config(
    config: Path = typer.Argument(..., help="Relaxed-JSON config file"),
):
    """Compile CONFIG and print the compiled schema as YAML."""
    schema = _load_or_exit(config)
    typer.echo(yaml.safe_dump(schema_to_doc(schema), sort_keys=False))


@app.command("tokenize")
def tokenize_file(
    data: Path = typer.Argument(..., help="DSV data file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Take delimiter/header from this config"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Column delimiter (overrides config)"),
    limit: int = typer.Option(0, "--limit", "-n", help="Max rows to print (0 = no limit)"),
):
    """Print the columns of each DATA line as one JSON array per line."""
    skip_header = False
    if config is not None:
        schema = _load_or_exit(config)
        try:
            opts = DsvOptions.from_config(schema.dsv_config)
        except InvalidFieldValue as e:
            typer.secho(f"Invalid config: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        delimiter = delimiter or opts.delimiter
        skip_header = opts.header_exist

    tokenizer = DsvTokenizer(delimiter or DEFAULT_DELIMITER)
    if not data.is_file():
        raise typer.BadParameter(f"{data} not found")

    with data.open("r", encoding="utf-8") as f:
        rows = tokenizer.iter_rows(f)
        if skip_header:
            next(rows, None)
        if limit:
            rows = islice(rows, limit)
        for columns in rows:
            typer.echo(json.dumps(columns, ensure_ascii=False))


if __name__ == "__main__":
    app()
