"""shift command line interface."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import click

from . import __version__
from .core import (
    DataIntegrityError,
    EventStore,
    ShiftError,
    TaskEvent,
    TaskTracker,
    Window,
    default_db_path,
)
from .core.runtime import log_level_from_env
from .utils import format_duration, format_local, parse_user_time, truncate_text

logger = logging.getLogger(__name__)

INTEGRITY_EXIT_CODE = 3


class IntegrityFailure(click.ClickException):
    """A corrupt event log, reported apart from ordinary user errors."""

    exit_code = INTEGRITY_EXIT_CODE

    def format_message(self) -> str:
        return f"data integrity error: {self.message}"


class UserTime(click.ParamType):
    """A time typed by the user: ``HH:MM``, ``YYYY-MM-DD HH:MM`` or ISO 8601."""

    name = "time"

    def convert(self, value, param, ctx):
        if isinstance(value, datetime):
            return value
        try:
            return parse_user_time(value)
        except ValueError as exc:
            self.fail(str(exc), param, ctx)


USER_TIME = UserTime()


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else log_level_from_env()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


@contextmanager
def _errors_as_click() -> Iterator[None]:
    try:
        yield
    except DataIntegrityError as exc:
        raise IntegrityFailure(str(exc)) from exc
    except (ShiftError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


def _tracker(ctx: click.Context) -> TaskTracker:
    """Open the store for this invocation; click closes it on exit."""
    db_path = ctx.find_root().obj["db_path"]
    with _errors_as_click():
        store = ctx.with_resource(EventStore.open(db_path))
    return TaskTracker(store)


def _window(start: datetime | None, end: datetime | None) -> Window | None:
    if start is not None and end is not None and start > end:
        raise click.UsageError("--from must not be later than --to")
    if start is None and end is None:
        return None
    return Window(start, end)


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2))


def _echo_events(verb: str, events: list[TaskEvent]) -> None:
    for event in events:
        click.echo(f"{verb} '{event.task_name}' at {format_local(event.timestamp)}")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Event database file (defaults to the shift data directory)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, db_path: Path | None, verbose: bool):
    """Track time spent on named tasks."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path or default_db_path()
    logger.debug("Using event database %s", ctx.obj["db_path"])


@cli.command()
@click.argument("name")
@click.option("--at", type=USER_TIME, default=None, help="Start time instead of now")
@click.pass_context
def start(ctx: click.Context, name: str, at: datetime | None):
    """Start task NAME."""
    tracker = _tracker(ctx)
    with _errors_as_click():
        event = tracker.start(name, at=at)
    _echo_events("Started", [event])


def _lifecycle_command(verb: str, past: str, help_text: str):
    """Build stop/pause/resume, which share their arguments."""

    @click.argument("name", required=False)
    @click.option(
        "--all", "-a", "all_tasks", is_flag=True, help=f"{verb.capitalize()} every eligible task"
    )
    @click.option("--at", type=USER_TIME, default=None, help=f"Time to {verb} instead of now")
    @click.pass_context
    def command(ctx: click.Context, name: str | None, all_tasks: bool, at: datetime | None):
        if name is not None and all_tasks:
            raise click.UsageError("Give a task name or --all, not both")
        tracker = _tracker(ctx)
        with _errors_as_click():
            events = getattr(tracker, verb)(name, at=at, all_tasks=all_tasks)
        _echo_events(past, events)

    command.__doc__ = help_text
    return cli.command(name=verb)(command)


stop = _lifecycle_command("stop", "Stopped", "Stop task NAME, or the only running task.")
pause = _lifecycle_command("pause", "Paused", "Pause task NAME, or the only running task.")
resume = _lifecycle_command("resume", "Resumed", "Resume task NAME, or the only paused task.")


@cli.command()
@click.argument("name")
@click.option("--at", type=USER_TIME, default=None, help="Switch time instead of now")
@click.pass_context
def switch(ctx: click.Context, name: str, at: datetime | None):
    """Stop every ongoing task and start NAME."""
    tracker = _tracker(ctx)
    with _errors_as_click():
        events = tracker.switch(name, at=at)
    for event in events:
        verb = "Started" if event.task_name == name else "Stopped"
        _echo_events(verb, [event])


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as json")
@click.pass_context
def status(ctx: click.Context, as_json: bool):
    """Show running and paused tasks."""
    tracker = _tracker(ctx)
    with _errors_as_click():
        statuses = tracker.status()

    if as_json:
        _echo_json([item.to_response().model_dump() for item in statuses])
        return
    if not statuses:
        click.echo("No ongoing tasks.")
        return

    header = f"{'Task':<25} {'State':<8} {'Since':<19} {'Elapsed':>12}"
    click.echo(header)
    click.echo("-" * len(header))
    for item in statuses:
        click.echo(
            f"{truncate_text(item.task_name, 25):<25} {item.state.value:<8} "
            f"{format_local(item.since):<19} {format_duration(item.elapsed):>12}"
        )


@cli.command()
@click.option("--from", "-f", "from_time", type=USER_TIME, default=None, help="Report from time")
@click.option("--to", "to_time", type=USER_TIME, default=None, help="Report to time")
@click.option("--task", "-t", "tasks", multiple=True, help="Task names (repeatable)")
@click.option(
    "--count",
    "-c",
    default=None,
    type=click.IntRange(min=0),
    help="Intervals listed per task, most recent; totals still cover the whole window",
)
@click.option("--json", "as_json", is_flag=True, help="Output as json")
@click.pass_context
def log(
    ctx: click.Context,
    from_time: datetime | None,
    to_time: datetime | None,
    tasks: tuple[str, ...],
    count: int | None,
    as_json: bool,
):
    """Report running time per task."""
    window = _window(from_time, to_time)
    tracker = _tracker(ctx)
    with _errors_as_click():
        report = tracker.log(window=window, tasks=list(tasks))

    if as_json:
        click.echo(report.to_response(count).model_dump_json(indent=2))
        return
    if not report.tasks:
        click.echo("No tasks tracked.")
        return

    for name, task_report in report.tasks.items():
        click.echo(f"{name}: {format_duration(task_report.total)}")
        for interval in task_report.recent(count):
            click.echo(
                f"  {format_local(interval.start)} - {format_local(interval.resolved_end())}"
                f"  {format_duration(interval.duration())}"
            )
    click.echo(f"Total: {format_duration(report.total)}")


@cli.command()
@click.option("--from", "-f", "from_time", type=USER_TIME, default=None, help="Search from time")
@click.option("--to", "to_time", type=USER_TIME, default=None, help="Search to time")
@click.option("--task", "-t", "tasks", multiple=True, help="Task names (repeatable)")
@click.option(
    "--count",
    "-c",
    default=10,
    show_default=True,
    type=click.IntRange(min=0),
    help="Maximum number of events, most recent first",
)
@click.option("--all", "-a", "show_all", is_flag=True, help="Show all events")
@click.option("--json", "as_json", is_flag=True, help="Output as json")
@click.pass_context
def events(
    ctx: click.Context,
    from_time: datetime | None,
    to_time: datetime | None,
    tasks: tuple[str, ...],
    count: int,
    show_all: bool,
    as_json: bool,
):
    """List recorded events, newest first."""
    window = _window(from_time, to_time)
    tracker = _tracker(ctx)
    with _errors_as_click():
        found = tracker.events(window=window, tasks=list(tasks), count=None if show_all else count)

    if as_json:
        _echo_json([event.to_response().model_dump() for event in found])
        return
    for event in found:
        click.echo(
            f"{event.id:>6}  {format_local(event.timestamp)}  {event.kind.value:<6}  {event.task_name}"
        )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
