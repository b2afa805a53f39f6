"""CLI package - Typer-based command-line interface.

Usage:
    quizcentral --help
    quizcentral domain --help
"""

from quizcentral.cli._app import app

# Register command modules (side-effect imports)
import quizcentral.cli.cmd_compile  # noqa: F401
import quizcentral.cli.cmd_domain  # noqa: F401
import quizcentral.cli.cmd_session  # noqa: F401

__all__ = ["app"]
