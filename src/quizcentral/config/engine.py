"""Engine configuration schema and loader.

Configuration is read from a YAML file: an explicit path, else the path in
the QUIZCENTRAL_CONFIG environment variable, else ./quizcentral.yaml.
A missing file means defaults.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "QUIZCENTRAL_CONFIG"
DEFAULT_CONFIG_FILENAME = "quizcentral.yaml"


class EngineConfig(BaseModel):
    """Quiz engine settings.

    Attributes:
        shuffle_seed: Seed for container shuffle/pick-n. None draws a fresh
            permutation per session.
        max_cascade_depth: Nested listener cascades deeper than this are cut off.
        guard_navigation: Ignore NAVIGATE actions that target unknown pages.
    """

    model_config = ConfigDict(extra="forbid")

    shuffle_seed: Optional[int] = Field(
        default=None,
        description="Seed for container shuffle and pick-n selection",
    )
    max_cascade_depth: int = Field(
        default=32,
        ge=1,
        description="Maximum depth of nested listener cascades",
    )
    guard_navigation: bool = Field(
        default=True,
        description="Ignore navigation to page ids that do not exist",
    )


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    """Return the config file to read (which may not exist)."""
    if config_path is not None:
        return Path(config_path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def load_engine_config(config_path: Optional[Path] = None) -> EngineConfig:
    """Load engine configuration from YAML.

    Args:
        config_path: Optional explicit path to the config file.

    Returns:
        EngineConfig (defaults when no file is found or the file is empty).

    Raises:
        ValueError: If the file exists but contains invalid configuration.
    """
    path = resolve_config_path(config_path)

    if not path.exists():
        if config_path is not None:
            raise ValueError(f"Engine config not found: {path}")
        logger.debug(f"No engine config found at {path}, using defaults")
        return EngineConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            logger.warning(f"Empty engine config at {path}")
            return EngineConfig()

        config = EngineConfig.model_validate(data)
        logger.debug(f"Loaded engine config from {path}")
        return config

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in engine config {path}: {e}")
    except Exception as e:
        raise ValueError(f"Failed to load engine config from {path}: {e}")
