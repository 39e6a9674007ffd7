from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer

from throttlekit import __version__
from throttlekit.client import AsyncThrottledClient
from throttlekit.config import ClientConfig, ThrottleConfig, default_config_candidates, load_config, save_config
from throttlekit.errors import ThrottleKitError
from throttlekit.jitter import apply_jitter
from throttlekit.settings import RuntimeSettings
from throttlekit.utils.output import OutputFormat, emit
from throttlekit.wait_time import compute_wait_ms

app = typer.Typer(no_args_is_help=True, add_completion=False, help="Throttle-aware HTTP client")
config_app = typer.Typer(no_args_is_help=True, help="Config commands")

app.add_typer(config_app, name="config")


class CLIState:
    def __init__(self, *, config_file: Path | None, output: OutputFormat) -> None:
        self.config_file = config_file
        self.output = output


T = TypeVar("T")


def _run(awaitable: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(awaitable)


def _state(ctx: typer.Context) -> CLIState:
    obj = ctx.obj
    if not isinstance(obj, CLIState):
        raise typer.BadParameter("CLI context was not initialized")
    return obj


def _parse_headers(entries: list[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for entry in entries:
        if ":" not in entry:
            raise typer.BadParameter(f"expected 'Name: value' format, got: {entry}")
        key, value = entry.split(":", 1)
        parsed[key.strip()] = value.strip()
    return parsed


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"throttlekit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Annotated[
        Path | None,
        typer.Option("--config-file", "-c", help="Path to config file"),
    ] = None,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = "json",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log throttled attempts")] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = None,
) -> None:
    _ = version
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.obj = CLIState(config_file=config_file, output=output)


def _throttle_config(
    base: ThrottleConfig,
    *,
    codes: str | None,
    default_wait_ms: int | None,
    jitter: float | None,
    max_retries: int | None,
    enabled: bool,
) -> ThrottleConfig:
    values = {
        "codes": codes,
        "default_wait_ms": default_wait_ms,
        "jitter_percent": jitter,
        "max_retries": max_retries,
    }
    overrides: dict[str, Any] = {key: value for key, value in values.items() if value is not None}
    if not enabled:
        overrides["enabled"] = False
    if not overrides:
        return base
    return ThrottleConfig.model_validate({**base.model_dump(), **overrides})


def _make_client(state: CLIState, throttle_overrides: dict[str, Any]) -> AsyncThrottledClient:
    resolved = load_config(config_path=state.config_file)
    effective = RuntimeSettings().apply(resolved.data)
    throttle = _throttle_config(effective.throttle, **throttle_overrides)
    return AsyncThrottledClient(effective, throttle=throttle)


@app.command("request")
def request(
    ctx: typer.Context,
    method: Annotated[str, typer.Argument(help="HTTP method")],
    url: Annotated[str, typer.Argument(help="Absolute URL, or a path relative to the configured base_url")],
    header: Annotated[list[str] | None, typer.Option("--header", "-H", help="Header as 'Name: value'")] = None,
    json_body: Annotated[str | None, typer.Option("--json", help="JSON request body")] = None,
    data: Annotated[str | None, typer.Option("--data", "-d", help="Raw request body")] = None,
    codes: Annotated[str | None, typer.Option(help="Comma-separated throttle status codes")] = None,
    default_wait_ms: Annotated[int | None, typer.Option(help="Wait when no header gives guidance")] = None,
    jitter: Annotated[float | None, typer.Option(help="Random jitter in +/- percent")] = None,
    max_retries: Annotated[int | None, typer.Option(help="Maximum throttled attempts")] = None,
    throttle: Annotated[bool, typer.Option("--throttle/--no-throttle", help="Enable throttling")] = True,
    ignore_errors: Annotated[
        bool,
        typer.Option("--ignore-errors", help="Return non-throttle error responses instead of failing"),
    ] = False,
) -> None:
    state = _state(ctx)
    if json_body is not None and data is not None:
        raise typer.BadParameter("use either --json or --data, not both")

    body: Any = None
    if json_body is not None:
        try:
            body = json.loads(json_body)
        except ValueError as exc:
            raise typer.BadParameter(f"--json is not valid JSON: {exc}") from exc

    headers = _parse_headers(header or [])
    overrides = {
        "codes": codes,
        "default_wait_ms": default_wait_ms,
        "jitter": jitter,
        "max_retries": max_retries,
        "enabled": throttle,
    }

    async def run() -> Any:
        async with _make_client(state, overrides) as client:
            return await client.request(
                method,
                url,
                headers=headers,
                json_data=body,
                content=data,
                ignore_http_status_errors=ignore_errors,
            )

    response = _run(run())
    emit(
        {"status_code": response.status_code, "headers": response.headers, "body": response.body},
        output=state.output,
    )


@app.command("wait-time")
def wait_time(
    ctx: typer.Context,
    header: Annotated[list[str] | None, typer.Option("--header", "-H", help="Header as 'Name: value'")] = None,
    default_wait_ms: Annotated[int | None, typer.Option(help="Wait when no header gives guidance")] = None,
    jitter: Annotated[float | None, typer.Option(help="Random jitter in +/- percent")] = None,
) -> None:
    state = _state(ctx)
    config = RuntimeSettings().apply(load_config(config_path=state.config_file).data).throttle
    default = default_wait_ms if default_wait_ms is not None else config.default_wait_ms
    jitter_pct = jitter if jitter is not None else config.jitter_percent

    base = compute_wait_ms(_parse_headers(header or []), default)
    emit(
        {"wait_ms": base, "jittered_wait_ms": round(apply_jitter(base, jitter_pct)), "jitter_percent": jitter_pct},
        output=state.output,
    )


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    state = _state(ctx)
    resolved = load_config(config_path=state.config_file)
    effective = RuntimeSettings().apply(resolved.data)
    emit(
        {"source": resolved.source, "path": str(resolved.path) if resolved.path else None, "config": effective},
        output=state.output,
    )


@config_app.command("init")
def config_init(
    ctx: typer.Context,
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file")] = False,
) -> None:
    state = _state(ctx)
    target = state.config_file or default_config_candidates()[0]
    if target.expanduser().exists() and not force:
        raise typer.BadParameter(f"{target} already exists (use --force to overwrite)")
    written = save_config(ClientConfig(), path=target)
    typer.echo(str(written))


def run() -> None:
    try:
        app()
    except ThrottleKitError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":
    run()
