from throttlekit.config.loader import (
    CONFIG_PATH_ENVS,
    default_config_candidates,
    load_config,
    parse_config_file,
    save_config,
)
from throttlekit.config.models import ClientConfig, ConfigInput, ResolvedConfig, ThrottleConfig

__all__ = [
    "CONFIG_PATH_ENVS",
    "ClientConfig",
    "ConfigInput",
    "ResolvedConfig",
    "ThrottleConfig",
    "default_config_candidates",
    "load_config",
    "parse_config_file",
    "save_config",
]
