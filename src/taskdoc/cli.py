"""CLI interface for taskdoc."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from taskdoc import __version__
from taskdoc.config import CONFIG_FILE, TaskdocConfig
from taskdoc.errors import StoreInternalError, TaskNotFoundError, TaskValidationError
from taskdoc.logging_setup import setup_logging
from taskdoc.models import PRIORITIES, Task
from taskdoc.query import TaskFilter
from taskdoc.store import TaskStore, store_from_config
from taskdoc.validation import (
    parse_list_query,
    parse_priority,
    parse_task_id,
    validate_create,
    validate_update,
)

console = Console()
logger = logging.getLogger(__name__)

EXIT_INTERNAL = 1
EXIT_INVALID = 2
EXIT_NOT_FOUND = 4


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="taskdoc")
@click.option(
    "--file",
    "-f",
    "document",
    type=click.Path(dir_okay=False),
    help="Task document to use (overrides config)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, document: str | None, verbose: bool) -> None:
    """taskdoc - manage tasks stored in a single JSON document.

    \b
    Examples:
      taskdoc add -t "Write docs" -d "Cover the CLI" -p high
      taskdoc list --completed false --field createdAt --asc false
      taskdoc update 3 --completed
      taskdoc delete 3
    """
    ctx.ensure_object(dict)
    try:
        config = TaskdocConfig.load()
    except (json.JSONDecodeError, ValidationError) as exc:
        raise click.ClickException(f"Invalid configuration in {CONFIG_FILE}: {exc}") from exc
    if document:
        config.store.path = document
    ctx.obj["config"] = config

    setup_logging("DEBUG" if verbose else config.logging.level, log_file=config.logging.file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _store(ctx: click.Context) -> TaskStore:
    return store_from_config(ctx.obj["config"])


@contextmanager
def _reporting(ctx: click.Context) -> Iterator[None]:
    """Translate store failures into messages and exit codes."""
    try:
        yield
    except TaskValidationError as exc:
        for message in exc.errors:
            console.print(f"[red]{escape(message)}[/red]")
        ctx.exit(EXIT_INVALID)
    except TaskNotFoundError as exc:
        console.print(f"[red]Task not found:[/red] {exc.task_id}")
        ctx.exit(EXIT_NOT_FOUND)
    except StoreInternalError as exc:
        logger.debug("Store failure", exc_info=exc)
        console.print(f"[red]Internal error:[/red] {escape(str(exc))}")
        ctx.exit(EXIT_INTERNAL)


def _print_tasks(tasks: list[Task], as_json: bool, title: str = "Tasks") -> None:
    if as_json:
        click.echo(json.dumps([task.model_dump(mode="json") for task in tasks], indent=2))
        return

    if not tasks:
        console.print("[dim]No tasks found.[/dim]")
        return

    table = Table(title=title, show_header=True)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Done")
    table.add_column("Created", style="dim")

    for task in tasks:
        table.add_row(
            str(task.id),
            escape(task.title),
            task.priority,
            "[green]✓[/green]" if task.completed else "[dim]○[/dim]",
            task.createdAt.isoformat(timespec="seconds"),
        )

    console.print(table)


def _print_task(task: Task, as_json: bool, heading: str | None = None) -> None:
    if as_json:
        click.echo(json.dumps(task.model_dump(mode="json"), indent=2))
        return

    if heading:
        console.print(heading)
    body = "\n".join(
        [
            f"[cyan]Description:[/cyan] {escape(task.description)}",
            f"[cyan]Priority:[/cyan] {task.priority}",
            f"[cyan]Completed:[/cyan] {'yes' if task.completed else 'no'}",
            f"[cyan]Created:[/cyan] {task.createdAt.isoformat(timespec='seconds')}",
        ]
    )
    console.print(Panel(body, title=f"#{task.id} {escape(task.title)}", title_align="left"))


def _fields(**values: Any) -> dict[str, Any]:
    """Keep only the options the user actually passed."""
    return {name: value for name, value in values.items() if value is not None}


@main.command("list")
@click.option("--completed", help="Filter by completion: true or false")
@click.option("--priority", "-p", help=f"Filter by priority: {', '.join(PRIORITIES)}")
@click.option("--field", "sort_field", help="Sort by: id or createdAt (default id)")
@click.option("--asc", help="Ascending order: true or false (default true)")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def list_command(
    ctx: click.Context,
    completed: str | None,
    priority: str | None,
    sort_field: str | None,
    asc: str | None,
    as_json: bool,
) -> None:
    """List tasks.

    Filtering by completion takes precedence over filtering by priority.

    Example:

        taskdoc list --completed false --field createdAt --asc false
    """
    with _reporting(ctx):
        query = parse_list_query(completed, sort_field, asc, priority).unwrap()
        tasks = _store(ctx).list_tasks(query.task_filter, query.order)
        _print_tasks(tasks, as_json)


@main.command("priority")
@click.argument("level")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def priority_command(ctx: click.Context, level: str, as_json: bool) -> None:
    """List tasks with priority LEVEL (low, medium or high)."""
    with _reporting(ctx):
        level = parse_priority(level).unwrap()
        tasks = _store(ctx).list_tasks(TaskFilter(priority=level))
        _print_tasks(tasks, as_json, title=f"Tasks: {level} priority")


@main.command("get")
@click.argument("task_id")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def get_command(ctx: click.Context, task_id: str, as_json: bool) -> None:
    """Show a single task."""
    with _reporting(ctx):
        task = _store(ctx).get_task(parse_task_id(task_id).unwrap())
        _print_task(task, as_json)


@main.command("add")
@click.option("--title", "-t", help="Task title (required)")
@click.option("--description", "-d", help="Task description (required)")
@click.option(
    "--completed/--not-completed", default=None, help="Completion state (default: not completed)"
)
@click.option("--priority", "-p", help=f"Priority: {', '.join(PRIORITIES)} (default low)")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def add_command(
    ctx: click.Context,
    title: str | None,
    description: str | None,
    completed: bool | None,
    priority: str | None,
    as_json: bool,
) -> None:
    """Create a task.

    Example:

        taskdoc add -t "Write docs" -d "Cover the CLI" -p high
    """
    with _reporting(ctx):
        fields = validate_create(
            _fields(title=title, description=description, completed=completed, priority=priority)
        ).unwrap()
        task = _store(ctx).create_task(fields)
        _print_task(task, as_json, heading=f"[green]Task created:[/green] {task.id}")


@main.command("update")
@click.argument("task_id")
@click.option("--title", "-t", help="New title")
@click.option("--description", "-d", help="New description")
@click.option("--completed/--not-completed", default=None, help="New completion state")
@click.option("--priority", "-p", help=f"New priority: {', '.join(PRIORITIES)}")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def update_command(
    ctx: click.Context,
    task_id: str,
    title: str | None,
    description: str | None,
    completed: bool | None,
    priority: str | None,
    as_json: bool,
) -> None:
    """Update fields of a task. Fields not given are left as they are."""
    with _reporting(ctx):
        parsed_id = parse_task_id(task_id).unwrap()
        fields = validate_update(
            _fields(title=title, description=description, completed=completed, priority=priority)
        ).unwrap()
        task = _store(ctx).update_task(parsed_id, fields)
        _print_task(task, as_json, heading=f"[green]Task updated:[/green] {task.id}")


@main.command("delete")
@click.argument("task_id")
@click.option("--json", "as_json", is_flag=True, help="Print JSON")
@click.pass_context
def delete_command(ctx: click.Context, task_id: str, as_json: bool) -> None:
    """Delete a task."""
    with _reporting(ctx):
        message = _store(ctx).delete_task(parse_task_id(task_id).unwrap())
        if as_json:
            click.echo(json.dumps({"message": message}))
        else:
            console.print(f"[green]{message}[/green]")


@main.command("config")
@click.pass_context
def config_command(ctx: click.Context) -> None:
    """Show the effective configuration."""
    config: TaskdocConfig = ctx.obj["config"]

    table = Table(title="taskdoc configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    source = str(CONFIG_FILE) if CONFIG_FILE.exists() else "[dim]defaults[/dim]"
    table.add_row("Config file", source)
    table.add_row("Document", escape(config.store.path))
    table.add_row("Id policy", config.store.id_policy)
    table.add_row("Lock timeout", f"{config.store.lock_timeout:g}s")
    table.add_row("Log level", config.logging.level)
    table.add_row("Log file", escape(config.logging.file or "-"))

    console.print(table)
