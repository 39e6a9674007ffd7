from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import tomli_w
import yaml

from throttlekit.config.models import ClientConfig, ConfigInput, ResolvedConfig
from throttlekit.constants import DEFAULT_CONFIG_DIR
from throttlekit.errors import ConfigError

CONFIG_PATH_ENVS = ("THROTTLEKIT_CONFIG", "THROTTLEKIT_CONFIG_FILE")

_DECODERS: dict[str, Callable[[str], Any]] = {
    ".yml": lambda raw: yaml.safe_load(raw) or {},
    ".yaml": lambda raw: yaml.safe_load(raw) or {},
    ".json": json.loads,
    ".toml": tomllib.loads,
}

_ENCODERS: dict[str, Callable[[dict[str, Any]], str]] = {
    ".yml": lambda payload: yaml.safe_dump(payload, sort_keys=False),
    ".yaml": lambda payload: yaml.safe_dump(payload, sort_keys=False),
    ".json": lambda payload: json.dumps(payload, indent=2) + "\n",
    ".toml": tomli_w.dumps,
}


def default_config_candidates() -> list[Path]:
    base = Path(DEFAULT_CONFIG_DIR).expanduser()
    return [base / f"config{suffix}" for suffix in (".yml", ".yaml", ".toml", ".json")]


def _codec(table: dict[str, Callable[..., Any]], path: Path) -> Callable[..., Any]:
    suffix = path.suffix.lower()
    if suffix not in table:
        raise ConfigError(f"unsupported config extension: {suffix or '<none>'}")
    return table[suffix]


def parse_config_file(path: Path) -> dict[str, Any]:
    decode = _codec(_DECODERS, path)
    try:
        parsed = decode(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to parse config file '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise ConfigError(f"config file '{path}' must decode to an object/map")
    return parsed


def _file_sources(config_path: str | Path | None) -> Iterator[tuple[str, Path]]:
    if config_path is not None:
        yield "explicit-path", Path(config_path)
        return

    for env_name in CONFIG_PATH_ENVS:
        env_path = os.getenv(env_name)
        if env_path:
            yield f"env:{env_name}", Path(env_path)
            return

    for candidate in default_config_candidates():
        if candidate.exists():
            yield "default-path", candidate
            return


def load_config(
    config: ConfigInput | str | Path | None = None,
    *,
    config_path: str | Path | None = None,
) -> ResolvedConfig:
    """Resolve client configuration.

    A runtime model or dict wins, then an explicit path, then
    ``THROTTLEKIT_CONFIG``, then the default config directory. A named file
    that does not exist resolves to defaults rather than failing.
    """

    if isinstance(config, (str, Path)):
        config, config_path = None, config_path or config

    if isinstance(config, ClientConfig):
        return ResolvedConfig(source="runtime-model", data=config)
    if config is not None:
        try:
            return ResolvedConfig(source="runtime-dict", data=ClientConfig.model_validate(config))
        except ValueError as exc:
            raise ConfigError(f"invalid runtime config: {exc}") from exc

    for source, raw_path in _file_sources(config_path):
        path = raw_path.expanduser().resolve()
        if not path.exists():
            return ResolvedConfig(source=f"{source}-missing", path=path, data=ClientConfig())
        payload = parse_config_file(path)
        try:
            return ResolvedConfig(source=source, path=path, data=ClientConfig.model_validate(payload))
        except ValueError as exc:
            raise ConfigError(f"invalid config structure for '{path}': {exc}") from exc

    return ResolvedConfig(source="default-empty", data=ClientConfig())


def save_config(config: ClientConfig, *, path: Path | None = None) -> Path:
    target = (path or default_config_candidates()[0]).expanduser()
    encode = _codec(_ENCODERS, target)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(encode(config.model_dump(mode="json", exclude_none=True)), encoding="utf-8")
    return target.resolve()
