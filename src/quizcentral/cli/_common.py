"""Shared CLI utilities."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler

from quizcentral.runtime.schema_loader import SchemaLoadError, load_domains, load_templates
from quizcentral.startup import ensure_initialized as _ensure_initialized

logger = logging.getLogger(__name__)


def ensure_initialized() -> None:
    """Load .env from the project root."""
    _ensure_initialized()


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def load_optional_domains(path: Optional[Path]) -> List[Dict[str, Any]]:
    return load_domains(path) if path else []


def load_optional_templates(path: Optional[Path]) -> List[Dict[str, Any]]:
    return load_templates(path) if path else []


def parse_value(raw: str) -> Any:
    """Parse a command-line value as JSON, falling back to the raw string.

    "5" -> 5, "true" -> True, "[1, 2]" -> [1, 2], "abc" -> "abc"
    """
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def read_actions(path: Path) -> List[Dict[str, Any]]:
    """Read a JSON list of actions to replay.

    Raises:
        SchemaLoadError: If the file is missing or not a list of objects
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            actions = json.load(f)
    except FileNotFoundError:
        raise SchemaLoadError(f"Actions file not found: {path}")
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in actions file: {e}")

    if not isinstance(actions, list) or not all(isinstance(a, dict) for a in actions):
        raise SchemaLoadError("Actions file must contain a list of objects")
    return actions
