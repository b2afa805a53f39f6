"""Domain commands - generate and validate domains."""

from pathlib import Path

import typer

from quizcentral.cli._app import app
from quizcentral.cli._common import ensure_initialized, parse_value, setup_logging
from quizcentral.cli._console import console, output_result, output_values, print_err, print_ok

domain_app = typer.Typer(
    no_args_is_help=True,
    help="Generate and validate value domains.",
)
app.add_typer(domain_app, name="domain")


def _build_registry(domains: Path):
    from quizcentral.domains import DomainRegistry
    from quizcentral.runtime.schema_loader import SchemaLoadError, load_domains

    try:
        definitions = load_domains(domains)
    except SchemaLoadError as e:
        print_err(str(e))
        raise SystemExit(1)

    registry = DomainRegistry()
    try:
        registry.register(definitions)
    except ValueError as e:
        print_err(f"Invalid domain definitions: {e}")
        raise SystemExit(1)
    return registry


@domain_app.command("generate", help="Materialize a finite domain.")
def domain_generate(
    ctx: typer.Context,
    domain_id: str = typer.Argument(..., help="Domain id"),
    domains: Path = typer.Option(..., "--domains", "-d", help="Domain definitions file"),
):
    """Run a domain pipeline forward and print its values."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    from quizcentral.domains import DomainError

    registry = _build_registry(domains)
    try:
        values = registry.generate(domain_id)
    except DomainError as e:
        print_err(str(e))
        raise SystemExit(1)

    output_values(values, ctx=ctx, title=f"{domain_id} ({len(values)} values)")


@domain_app.command("validate", help="Check whether a value belongs to a domain.")
def domain_validate(
    ctx: typer.Context,
    domain_id: str = typer.Argument(..., help="Domain id"),
    value: str = typer.Argument(..., help="Value (parsed as JSON, else taken as a string)"),
    domains: Path = typer.Option(..., "--domains", "-d", help="Domain definitions file"),
):
    """Validate a value by running the domain pipeline backward. Exits 1 when invalid."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    registry = _build_registry(domains)
    parsed = parse_value(value)
    check = registry.check(parsed, domain_id)

    if ctx.obj["json"]:
        output_result(
            {
                "domain_id": domain_id,
                "value": parsed,
                "valid": check.is_valid,
                "status": check.status.value,
                "reason": check.reason,
            },
            ctx=ctx,
        )
    elif check.is_valid:
        print_ok(f"{value} is in {domain_id}")
    else:
        print_err(f"{value} is not in {domain_id}")
        console.print(f"  Status: {check.status.value}")
        if check.reason:
            console.print(f"  Reason: {check.reason}")

    if not check.is_valid:
        raise SystemExit(1)
