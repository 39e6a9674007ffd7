from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from typing import Any, Literal, cast

import yaml
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

OutputFormat = Literal["json", "yaml", "table"]
JsonLike = dict[str, Any] | list[Any] | str | int | float | bool | None


def to_plain_data(value: Any) -> JsonLike:
    """Convert pydantic/dataclass/native objects into plain JSON-serializable structures."""

    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if is_dataclass(value) and not isinstance(value, type):
        return to_plain_data(asdict(value))
    if isinstance(value, dict):
        return {str(key): to_plain_data(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain_data(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_plain_data(item) for item in value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return cast(JsonLike, value)


def emit(value: Any, *, output: OutputFormat = "json") -> None:
    """Render CLI output as json, yaml, or table."""

    plain = to_plain_data(value)
    if output == "json":
        print(json.dumps(plain, indent=2))
        return
    if output == "yaml":
        print(yaml.safe_dump(plain, sort_keys=False))
        return

    console = Console()
    if isinstance(plain, dict):
        table = Table(show_header=True, header_style="bold")
        table.add_column("key")
        table.add_column("value")
        for key, val in plain.items():
            rendered = json.dumps(val) if isinstance(val, (dict, list)) else str(val)
            table.add_row(str(key), rendered)
        console.print(table)
        return

    console.print(str(plain))
