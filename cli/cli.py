"""CLI for the Mova+ plan engine.

Developer CLI to generate plans, gate plan files (e.g., LLM output)
through the validator, and run the API locally.
"""

import json
import os
import sys
from pathlib import Path

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from movaplan.domains.training_plan.duration import estimate_day_minutes
from movaplan.domains.training_plan.enums import Environment
from movaplan.domains.training_plan.errors import InvalidPlanRequestError
from movaplan.domains.training_plan.generator import generate_training_plan_structure
from movaplan.domains.training_plan.models import TrainingPlan
from movaplan.domains.training_plan.schemas import ValidationContext
from movaplan.domains.training_plan.validator import is_training_plan_usable
from movaplan.metrics.plan_rejections import PlanRejectionMetrics, collect_rejections

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="movaplan",
    help="Mova+ CLI - training plan generation and validation",
    add_completion=False,
)

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")


def _setup_logging(debug: bool = False) -> None:
    """Send logs to stderr so JSON output on stdout stays clean.

    Args:
        debug: Enable debug logging level
    """
    logger.remove()
    log_level = "DEBUG" if debug else "WARNING"
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{file.name}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        level=log_level,
        colorize=True,
    )


def _format_plan(plan: dict, pretty: bool = True) -> str:
    if pretty:
        return json.dumps(plan, indent=2, ensure_ascii=False)
    return json.dumps(plan, ensure_ascii=False)


def _print_summary(plan: TrainingPlan) -> None:
    table = Table(title="Weekly schedule")
    table.add_column("Day")
    table.add_column("Type")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Minutes", justify="right")
    for day in plan.weekly_schedule:
        table.add_row(
            day.day,
            day.type or "-",
            str(len(day.exercises)),
            str(sum(exercise.sets for exercise in day.exercises)),
            f"{estimate_day_minutes(day.exercises):.0f}",
        )
    console.print(table)


def _print_verdict(usable: bool, reasons: list[str]) -> None:
    if usable:
        console.print(Panel("[bold green]✓ Plan accepted[/bold green]", expand=False))
    else:
        console.print(
            Panel(
                f"[bold red]✗ Plan rejected[/bold red]\nReasons: {', '.join(reasons) or 'unknown'}",
                expand=False,
            )
        )


@app.command()
def generate(
    days: int = typer.Option(..., "--days", "-d", help="Training days per week (1-7)"),
    level: str = typer.Option("Moderado", "--level", "-l", help="Activity level"),
    division: str | None = typer.Option(None, "--division", help="Requested division"),
    time: float | None = typer.Option(None, "--time", "-t", help="Available minutes per session"),
    imc: float | None = typer.Option(None, "--imc", help="Body mass index"),
    objective: str | None = typer.Option(None, "--objective", "-o", help="Training objective"),
    shoulder: bool = typer.Option(False, "--shoulder", help="Shoulder restriction"),
    knee: bool = typer.Option(False, "--knee", help="Knee restriction"),
    environment: Environment | None = typer.Option(None, "--environment", "-e", help="Training environment"),
    age: int | None = typer.Option(None, "--age", help="User age"),
    output_file: Path | None = typer.Option(None, "--output", help="Write the plan JSON to a file"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Generate a plan and report whether it passes validation."""
    _setup_logging(debug)
    try:
        plan = generate_training_plan_structure(
            days,
            level,
            division=division,
            available_time_minutes=time,
            imc=imc,
            objective=objective,
            has_shoulder_restriction=shoulder,
            has_knee_restriction=knee,
            environment=environment,
            age=age,
        )
    except InvalidPlanRequestError as e:
        console.print(f"[bold red]✗ Invalid request:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    context = ValidationContext(
        imc=imc,
        objective=objective,
        age=age,
        has_shoulder_restriction=shoulder,
        has_knee_restriction=knee,
    )
    with collect_rejections() as collector:
        usable = is_training_plan_usable(plan, days, level, time, context, metrics=PlanRejectionMetrics())

    payload = _format_plan(plan.to_dict())
    if output_file:
        output_file.write_text(payload, encoding="utf-8")
        console.print(f"[green]Plan written to {output_file}[/green]")
    else:
        console.print(JSON(payload))
    _print_summary(plan)
    _print_verdict(usable, collector.reasons)
    if not usable:
        raise typer.Exit(code=1)


@app.command()
def validate(
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plan JSON file"),
    days: int = typer.Option(..., "--days", "-d", help="Training days per week"),
    level: str | None = typer.Option(None, "--level", "-l", help="Activity level"),
    time: float | None = typer.Option(None, "--time", "-t", help="Available minutes per session"),
    age: int | None = typer.Option(None, "--age", help="User age"),
    shoulder: bool = typer.Option(False, "--shoulder", help="Shoulder restriction"),
    knee: bool = typer.Option(False, "--knee", help="Knee restriction"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Validate a plan file (e.g., an LLM output)."""
    _setup_logging(debug)
    try:
        payload = json.loads(plan_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[bold red]✗ Invalid JSON:[/bold red] {e}")
        raise typer.Exit(code=2) from e

    context = ValidationContext(age=age, has_shoulder_restriction=shoulder, has_knee_restriction=knee)
    with collect_rejections() as collector:
        usable = is_training_plan_usable(payload, days, level, time, context, metrics=PlanRejectionMetrics())

    _print_verdict(usable, collector.reasons)
    if not usable:
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Run the FastAPI server."""
    logger.info(f"Starting FastAPI server on {host}:{port} (reload={reload})")
    uvicorn.run("movaplan.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
