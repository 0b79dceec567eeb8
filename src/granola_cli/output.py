"""Writing results to stdout as JSON, JSON Lines or markdown."""

import json
import sys
from typing import Any, Literal

import click
from pydantic import BaseModel

from .errors import ConfigurationError

OutputFormat = Literal["json", "markdown"]


def resolve_output_format(value: str | None, isatty: bool | None = None) -> OutputFormat:
    """``--output`` value, defaulting to markdown on a terminal and JSON otherwise."""
    if value is None:
        tty = sys.stdout.isatty() if isatty is None else isatty
        return "markdown" if tty else "json"
    if value not in ("json", "markdown"):
        raise ConfigurationError(f"Invalid output format: {value}")
    return value  # type: ignore[return-value]


def to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(data, dict):
        return {k: to_jsonable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [to_jsonable(v) for v in data]
    return data


def print_json(data: Any, jsonl: bool = False) -> None:
    data = to_jsonable(data)
    if jsonl and isinstance(data, list):
        for item in data:
            click.echo(json.dumps(item, ensure_ascii=False))
        return
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def print_text(text: str) -> None:
    click.echo(text)
