"""Main CLI entry point using Typer."""

import json
from pathlib import Path

import anyio
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from conductor import __version__
from conductor.core.config import get_settings
from conductor.core.exceptions import ConductorError, NoSavedStateError
from conductor.core.state import StateStore
from conductor.decomposition.models import (
    ExecutionResult,
    ProgressEvent,
    SubTaskStatus,
    TaskPlan,
)

app = typer.Typer(
    name="conductor",
    help="Conductor - multi-agent task orchestration",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Conductor[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Conductor - decompose a task and run it through specialized agents.

    Research, implementation, test and review agents run one sub-task at a
    time in dependency order; their outputs are synthesized into one summary.
    """
    pass


# =============================================================================
# HELPERS
# =============================================================================


def _read_text_arg(value: str) -> str:
    """Treat an argument naming an existing file as that file's contents."""
    path = Path(value)
    try:
        is_file = path.is_file()
    except OSError:
        # Inline text too long to be a file name
        return value
    if is_file:
        console.print(f"[dim]Loaded {path}[/dim]")
        return path.read_text()
    return value


def _build_conductor(state_dir: Path | None, dry_run: bool = False):
    from conductor.core.orchestrator import Conductor
    from conductor.sessions.dry_run import DryRunCompletion

    complete = DryRunCompletion() if dry_run else None
    return Conductor(complete=complete, state_dir=state_dir)


def _render_plan(plan: TaskPlan) -> Table:
    """Render a plan as a table of sub-tasks."""
    table = Table(title=f"Plan {plan.task_id} ({len(plan.sub_tasks)} sub-tasks)")
    table.add_column("ID", style="cyan")
    table.add_column("Role")
    table.add_column("Title", style="bold")
    table.add_column("After")
    table.add_column("Status")

    status_colors = {
        SubTaskStatus.PENDING: "dim",
        SubTaskStatus.RUNNING: "yellow",
        SubTaskStatus.COMPLETED: "green",
        SubTaskStatus.FAILED: "red",
        SubTaskStatus.SKIPPED: "magenta",
    }

    for sub_task in plan.sub_tasks:
        color = status_colors[sub_task.status]
        table.add_row(
            sub_task.id,
            sub_task.agent_type.value,
            sub_task.title,
            ", ".join(sub_task.depends_on) or "-",
            f"[{color}]{sub_task.status.value}[/{color}]",
        )

    return table


def _print_progress(event: ProgressEvent) -> None:
    """Print one line per progress event."""
    if event.type == "subtask_start":
        console.print(f"[yellow]>[/yellow] {event.sub_task.title}...")
    elif event.type == "subtask_complete":
        console.print(f"[green]ok[/green] {event.sub_task.title}")
    elif event.type == "subtask_failed":
        console.print(f"[red]failed[/red] {event.sub_task.title}: {event.error}")
    elif event.type == "synthesis_start":
        console.print("[dim]Synthesizing results...[/dim]")


def _print_result(result: ExecutionResult) -> None:
    """Print counts and the synthesized summary."""
    skipped = len(result.skipped_sub_tasks)
    failed = len(result.failed_sub_tasks) - skipped
    color = "green" if result.success else "yellow"

    console.print(
        f"\n[bold {color}]Done:[/bold {color}] "
        f"{len(result.completed_sub_tasks)} completed, {failed} failed, {skipped} skipped "
        f"in {result.total_duration:.1f}s\n"
    )
    console.print(Panel(result.synthesized_result, title="Summary", border_style=color))


# =============================================================================
# COMMANDS
# =============================================================================


@app.command()
def plan(
    task: str = typer.Argument(..., help="Task description or path to a file"),
    context: Path | None = typer.Option(
        None,
        "--context",
        "-c",
        help="File with project context for decomposition",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the plan as JSON to this file",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Use the offline backend instead of the API",
    ),
) -> None:
    """
    Decompose a task into sub-tasks without executing them.

    Example:
        conductor plan "Add rate limiting to the public API"
    """
    task_text = _read_text_arg(task)
    project_context = context.read_text() if context else None

    async def do_plan() -> TaskPlan:
        conductor = _build_conductor(None, dry_run)
        return await conductor.plan(task_text, project_context)

    console.print("[bold]Decomposing task...[/bold]")
    try:
        task_plan = anyio.run(do_plan)
    except ConductorError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1) from e

    console.print(_render_plan(task_plan))

    if output:
        output.write_text(json.dumps(task_plan.to_dict(), indent=2))
        console.print(f"[green]Saved to {output}[/green]")


@app.command()
def run(
    task: str = typer.Argument(..., help="Task description or path to a file"),
    context: Path | None = typer.Option(
        None,
        "--context",
        "-c",
        help="File with project context for decomposition",
    ),
    state_dir: Path | None = typer.Option(
        None,
        "--state-dir",
        "-s",
        help="Directory for the resumable run snapshot",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Use the offline backend instead of the API",
    ),
) -> None:
    """
    Decompose a task and execute every sub-task.

    Example:
        conductor run "Add rate limiting to the public API"
    """
    task_text = _read_text_arg(task)
    project_context = context.read_text() if context else None

    console.print(
        Panel(
            f"[bold]Task:[/bold]\n{task_text[:200]}{'...' if len(task_text) > 200 else ''}",
            title="[bold blue]Conductor[/bold blue]",
            border_style="blue",
        )
    )

    async def execute() -> ExecutionResult:
        conductor = _build_conductor(state_dir, dry_run)
        task_plan = await conductor.plan(task_text, project_context)
        console.print(_render_plan(task_plan))
        return await conductor.execute(task_plan, _print_progress)

    try:
        result = anyio.run(execute)
    except ConductorError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1) from e

    _print_result(result)


@app.command()
def resume(
    state_dir: Path | None = typer.Option(
        None,
        "--state-dir",
        "-s",
        help="Directory holding the run snapshot",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Use the offline backend instead of the API",
    ),
) -> None:
    """
    Restart an interrupted run from its saved plan.

    Every sub-task runs again, including ones that had completed.
    """

    async def execute() -> ExecutionResult:
        conductor = _build_conductor(state_dir, dry_run)
        state = conductor.load_state()
        if state is None:
            raise NoSavedStateError("No saved orchestration state found")
        console.print(f"[bold]Resuming:[/bold] {state.plan.description}")
        return await conductor.execute(state.plan, _print_progress)

    try:
        result = anyio.run(execute)
    except NoSavedStateError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1) from e
    except ConductorError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1) from e

    _print_result(result)


@app.command()
def status(
    state_dir: Path | None = typer.Option(
        None,
        "--state-dir",
        "-s",
        help="Directory holding the run snapshot",
    ),
) -> None:
    """
    Show the snapshot of an interrupted run, if any.
    """
    store = StateStore(state_dir or get_settings().conductor_state_dir)
    state = store.load()

    if state is None:
        console.print("[dim]No run in progress[/dim]")
        return

    console.print(f"[bold]Task:[/bold] {state.plan.description}")
    console.print(f"[dim]Started: {state.started_at.isoformat()}[/dim]")
    if state.current_sub_task_id:
        console.print(f"[yellow]Interrupted during: {state.current_sub_task_id}[/yellow]")
    console.print(
        f"{len(state.completed_sub_task_ids)} completed, "
        f"{len(state.failed_sub_task_ids)} failed or skipped"
    )
    console.print(_render_plan(state.plan))


if __name__ == "__main__":
    app()
