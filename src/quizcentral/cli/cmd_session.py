"""Run command - replay actions against a fresh quiz session."""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from quizcentral.cli._app import app
from quizcentral.cli._common import (
    ensure_initialized,
    load_optional_domains,
    load_optional_templates,
    read_actions,
    setup_logging,
)
from quizcentral.cli._console import output_nodes, output_result, print_err, print_ok


@app.command("run", help="Replay a list of actions and print the final session snapshot.")
def run_cmd(
    ctx: typer.Context,
    schema: Path = typer.Argument(..., help="Quiz schema file (JSON or YAML)"),
    actions: Path = typer.Option(..., "--actions", "-a", help="JSON list of actions to replay"),
    domains: Optional[Path] = typer.Option(None, "--domains", "-d", help="Domain definitions file"),
    templates: Optional[Path] = typer.Option(None, "--templates", "-t", help="Template definitions file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Engine config YAML"),
    full: bool = typer.Option(False, "--full", help="Print the full session state instead of the snapshot"),
):
    """Start a session and replay actions.

    Each action is either an engine action ({"type": "SET_VALUE", "id": ..., "value": ...})
    or a logic action ({"logic": {...}, "context_id": "..."}) run through execute_logic_action.
    """
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from quizcentral.config import load_engine_config
    from quizcentral.domains import DomainError
    from quizcentral.runtime.engine import QuizEngine
    from quizcentral.runtime.schema_loader import SchemaLoadError, load_schema
    from quizcentral.runtime.template_compiler import TemplateError

    try:
        engine_config = load_engine_config(config)
        engine = QuizEngine(
            load_schema(schema),
            templates=load_optional_templates(templates),
            domains=load_optional_domains(domains),
            config=engine_config,
        )
        replay = read_actions(actions)
    except (SchemaLoadError, TemplateError, DomainError) as e:
        print_err(str(e))
        raise SystemExit(1)
    except ValidationError as e:
        print_err(f"Invalid quiz document: {e}")
        raise SystemExit(1)
    except ValueError as e:
        print_err(str(e))
        raise SystemExit(1)

    for action in replay:
        if "logic" in action:
            engine.execute_logic_action(action["logic"], action.get("context_id", ""))
        else:
            engine.dispatch(action)

    state = engine.get_state()
    if not ctx.obj["json"] and not ctx.obj["quiet"]:
        print_ok(f"Replayed {len(replay)} action(s) on session {state.session_id}")
        if ctx.obj["verbose"]:
            output_nodes(state.nodes, title="Nodes")

    output_result(state if full else engine.snapshot(), ctx=ctx, title="Session")
