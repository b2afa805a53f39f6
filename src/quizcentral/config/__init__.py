"""Engine configuration management."""

from quizcentral.config.engine import (
    CONFIG_ENV_VAR,
    EngineConfig,
    load_engine_config,
    resolve_config_path,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "EngineConfig",
    "load_engine_config",
    "resolve_config_path",
]
