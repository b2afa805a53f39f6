"""Centralized initialization for quizcentral entry points.

Loads a .env file from the project root (so QUIZCENTRAL_CONFIG and friends
can live there) exactly once per process.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class StartupState:
    """Result of initialization."""

    project_root: Path
    env_loaded: bool = False


_state: Optional[StartupState] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find the project root by looking for quizcentral.yaml, .env or pyproject.toml.

    Args:
        start_path: Starting path for search. Defaults to the working directory.

    Returns:
        Project root directory.
    """
    current = (start_path or Path.cwd()).resolve()
    for parent in [current] + list(current.parents):
        for marker in ("quizcentral.yaml", ".env", "pyproject.toml"):
            if (parent / marker).exists():
                return parent
    return current


def _load_env(project_root: Path) -> bool:
    env_path = project_root / ".env"
    if not env_path.exists():
        logger.debug(f".env not found at {env_path}")
        return False
    # Variables already set in the environment win
    load_dotenv(env_path, override=False)
    logger.debug(f"Loaded .env from {env_path}")
    return True


def ensure_initialized(start_path: Optional[Path] = None) -> StartupState:
    """Ensure the application is initialized (idempotent).

    Returns:
        Current StartupState.
    """
    global _state

    if _state is not None:
        return _state

    project_root = _find_project_root(start_path)
    _state = StartupState(project_root=project_root, env_loaded=_load_env(project_root))
    return _state


def reset() -> None:
    """Forget the initialization state (used by tests)."""
    global _state
    _state = None
