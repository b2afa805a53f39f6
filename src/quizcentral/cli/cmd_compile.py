"""Compile command - expand template instances in a quiz schema."""

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from quizcentral.cli._app import app
from quizcentral.cli._common import ensure_initialized, load_optional_templates, setup_logging
from quizcentral.cli._console import output_result, print_err, print_ok


@app.command("compile", help="Expand template instances and validate a quiz schema.")
def compile_cmd(
    ctx: typer.Context,
    schema: Path = typer.Argument(..., help="Quiz schema file (JSON or YAML)"),
    templates: Optional[Path] = typer.Option(None, "--templates", "-t", help="Template definitions file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the compiled schema to this file"),
):
    """Compile a quiz schema and print (or write) the expanded document."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from quizcentral.runtime.schema_loader import SchemaLoadError, load_schema
    from quizcentral.runtime.template_compiler import TemplateCompiler, TemplateError

    try:
        raw = load_schema(schema)
        compiler = TemplateCompiler(load_optional_templates(templates))
        compiled = compiler.compile(raw)
    except (SchemaLoadError, TemplateError) as e:
        print_err(str(e))
        raise SystemExit(1)
    except ValidationError as e:
        print_err(f"Compiled schema is invalid: {e}")
        raise SystemExit(1)

    document = compiled.model_dump(mode="json", by_alias=True, exclude_none=True)

    if output:
        output.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        if not ctx.obj["quiet"]:
            print_ok(f"Compiled {compiled.id} ({len(compiled.pages)} pages) -> {output}")
        return

    output_result(document, ctx=ctx, title=f"Compiled {compiled.id}")
