"""
CLI (Command Line Interface).

This module provides terminal commands around the life timeline, e.g.:

    lifegrid show
    lifegrid add 2022-06-15 "Graduated"
    lifegrid add 2023-01-02 "Sabbatical" --end 2023-02-03 --type Travel
    lifegrid delete 2022-W24
    lifegrid types add Health "#00BCD4"
    lifegrid note
    lifegrid autofill

Global options select the settings file (--settings), the notes vault
directory (--vault) and the log level. Every handler returns an exit code;
main() exits via SystemExit with that code.
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import date, datetime
from typing import Any, Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from lifegrid.autofill import WEEKDAY_NAMES
from lifegrid.geometry import fit_to_screen_zoom, month_markers
from lifegrid.logger import setup_logger
from lifegrid.model import RangeEvent
from lifegrid.render import print_grid
from lifegrid.settings import SettingsStore
from lifegrid.timeline import Timeline
from lifegrid.weeks import is_week_key, parse_date, week_key, week_key_to_approx_date


def _today(args: argparse.Namespace) -> date:
    if args.today:
        return args.today
    return date.today()


def _date_arg(text: str) -> date:
    """
    argparse type: accepts YYYY-MM-DD or a week key (its Monday).
    """
    value = parse_date(text)
    if value is None and is_week_key(text):
        value = week_key_to_approx_date(text)
    if value is None:
        raise argparse.ArgumentTypeError(f"invalid date: {text!r} (use YYYY-MM-DD or YYYY-WNN)")
    return value


def _coerce(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    return value


def _report(console: Console, problem: Optional[str], success: str) -> int:
    if problem:
        console.print(problem)
        return 1
    console.print(success)
    return 0


def _cmd_show(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    today = _today(args)
    settings = timeline.store.settings
    cells, styles = asyncio.run(timeline.grid(today))
    markers = month_markers(settings.birthday, settings.lifespan, settings.month_marker_frequency)
    print_grid(console, settings, cells, styles, markers)

    lived = timeline.store.lived_weeks(today)
    total = settings.lifespan * 52
    console.print(f"Week {lived:,} of {total:,} ({min(lived / total, 1.0):.1%})")
    return 0


def _cmd_add(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    result = asyncio.run(
        timeline.add_event(args.date, args.description, category=args.type, color=args.color, end=args.end)
    )
    console.print(result.message)
    if result.note_path:
        console.print(f"Note: {result.note_path}")
    return 0 if result.ok else 1


def _cmd_delete(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    bad = [k for k in args.weeks if not is_week_key(k)]
    if bad:
        console.print(f"Invalid week key(s): {', '.join(bad)}")
        return 1
    removed = timeline.delete_week_events(args.weeks)
    console.print(f"Removed {removed} event(s).")
    return 0


def _cmd_find(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    if not is_week_key(args.week):
        console.print(f"Invalid week key: {args.week!r}")
        return 1
    matches = timeline.find(args.week)
    if not matches:
        console.print(f"No events in {args.week}.")
        return 0
    for m in matches:
        if isinstance(m.event, RangeEvent):
            span = f"{m.event.start_key} .. {m.event.end_key}"
        else:
            span = m.event.week_key
        console.print(f"{span} | {m.category} | {m.description}")
    return 0


def _cmd_types(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    store = timeline.store
    if args.action == "list":
        table = Table("Type", "Color", "Events", "Built-in")
        counts = store.events.event_counts()
        for category in store.events.categories():
            table.add_row(
                category.name,
                f"[{category.display_color}]{category.color or '-'}[/]",
                str(counts[category.name]),
                "yes" if category.builtin else "",
            )
        console.print(table)
        return 0
    if args.action == "add":
        return _report(console, store.add_event_type(args.name, args.color), f'Event type "{args.name}" added')
    if args.action == "rename":
        return _report(console, store.rename_event_type(args.name, args.new_name), f'Event type renamed to "{args.new_name}"')
    if args.action == "recolor":
        return _report(console, store.recolor_event_type(args.name, args.color), f'Event type "{args.name}" updated')
    if args.action == "delete":
        return _report(console, store.delete_event_type(args.name), f'Event type "{args.name}" deleted')
    return 2


def _cmd_fill(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    problem = timeline.store.toggle_filled_week(args.week, _today(args))
    state = "filled" if timeline.store.is_filled(args.week) else "not filled"
    return _report(console, problem, f"{args.week} is now {state}.")


def _cmd_autofill(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    settings = timeline.store.settings
    now = datetime.combine(args.today, datetime.now().time()) if args.today else datetime.now()
    if timeline.autofill.check_and_maybe_fill(now):
        console.print(f"Marked {week_key(now)} as filled.")
    elif not settings.enable_auto_fill:
        console.print("Auto-fill is disabled.")
    else:
        console.print(f"Nothing to do (fill day: {WEEKDAY_NAMES[settings.auto_fill_day]}).")
    return 0


def _cmd_note(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    if args.week and not is_week_key(args.week):
        console.print(f"Invalid week key: {args.week!r}")
        return 1
    path = asyncio.run(timeline.open_week_note(_today(args), args.week))
    if path is None:
        console.print("Error creating week note.")
        return 1
    console.print(path)
    return 0


def _cmd_note_deleted(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    removed = timeline.note_deleted(args.file)
    console.print(f"Removed {removed} event(s).")
    return 0


def _cmd_config(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    store = timeline.store
    if args.key is None:
        for name in SettingsStore.setting_names():
            value = getattr(store.settings, name)
            console.print(f"{name} = {getattr(value, 'value', value)}")
        return 0
    if args.value is None:
        console.print("Please provide a value.")
        return 1
    problem = store.update(**{args.key: _coerce(args.value)})
    return _report(console, problem, f"{args.key} updated")


def _cmd_fit(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    settings = timeline.store.settings
    zoom = fit_to_screen_zoom(args.width, args.height, settings.lifespan, orientation=settings.orientation)
    if args.apply:
        problem = timeline.store.update(zoom_level=zoom)
        if problem:
            console.print(problem)
            return 1
    console.print(f"{zoom:.2f}")
    return 0


def _cmd_markers(args: argparse.Namespace, timeline: Timeline, console: Console) -> int:
    settings = timeline.store.settings
    markers = month_markers(settings.birthday, settings.lifespan, settings.month_marker_frequency)
    for m in markers[: args.limit]:
        flags = []
        if m.is_first_of_year:
            flags.append("year")
        if m.is_birth_month:
            flags.append("birth")
        console.print(f"{m.week_index:>5}  {m.label} {m.year}  {' '.join(flags)}")
    return 0


HANDLERS = {
    "show": _cmd_show,
    "add": _cmd_add,
    "delete": _cmd_delete,
    "find": _cmd_find,
    "types": _cmd_types,
    "fill": _cmd_fill,
    "autofill": _cmd_autofill,
    "note": _cmd_note,
    "note-deleted": _cmd_note_deleted,
    "config": _cmd_config,
    "fit": _cmd_fit,
    "markers": _cmd_markers,
}


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="lifegrid", description="Your life in weeks")
    parser.add_argument("--settings", type=str, default=None, help="Settings file (default: ./.lifegrid/settings.json)")
    parser.add_argument("--vault", type=str, default=".", help="Notes vault directory (default: .)")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    parser.add_argument("--today", type=_date_arg, default=None, help=argparse.SUPPRESS)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Draw the life grid")

    p_add = sub.add_parser("add", help="Add an event")
    p_add.add_argument("date", type=_date_arg, help="Event date (YYYY-MM-DD) or week (YYYY-WNN)")
    p_add.add_argument("description", type=str, help="Event description")
    p_add.add_argument("--type", type=str, default="Major Life", help="Event type (default: Major Life)")
    p_add.add_argument("--color", type=str, default=None, help="Color for a new custom type (#RRGGBB)")
    p_add.add_argument("--end", type=_date_arg, default=None, help="End date for a range event")

    p_delete = sub.add_parser("delete", help="Delete events on the given weeks")
    p_delete.add_argument("weeks", nargs="+", help="Week keys (YYYY-WNN)")

    p_find = sub.add_parser("find", help="Show events covering a week")
    p_find.add_argument("week", type=str)

    p_types = sub.add_parser("types", help="Manage event types")
    types_sub = p_types.add_subparsers(dest="action", required=True)
    types_sub.add_parser("list", help="List event types")
    t_add = types_sub.add_parser("add", help="Add a custom type")
    t_add.add_argument("name")
    t_add.add_argument("color")
    t_rename = types_sub.add_parser("rename", help="Rename a custom type")
    t_rename.add_argument("name")
    t_rename.add_argument("new_name")
    t_recolor = types_sub.add_parser("recolor", help="Change a custom type's color")
    t_recolor.add_argument("name")
    t_recolor.add_argument("color")
    t_delete = types_sub.add_parser("delete", help="Delete a custom type and its events")
    t_delete.add_argument("name")

    p_fill = sub.add_parser("fill", help="Toggle a future week as filled")
    p_fill.add_argument("week", type=str)

    sub.add_parser("autofill", help="Run the auto-fill check now")

    p_note = sub.add_parser("note", help="Create/open a week note (current week by default)")
    p_note.add_argument("week", nargs="?", default=None)

    p_deleted = sub.add_parser("note-deleted", help="Drop events of a deleted note")
    p_deleted.add_argument("file", type=str)

    p_config = sub.add_parser("config", help="Show or change settings")
    p_config.add_argument("key", nargs="?", default=None)
    p_config.add_argument("value", nargs="?", default=None)

    p_fit = sub.add_parser("fit", help="Zoom level that fits a viewport")
    p_fit.add_argument("width", type=float)
    p_fit.add_argument("height", type=float)
    p_fit.add_argument("--apply", action="store_true", help="Store the zoom level")

    p_markers = sub.add_parser("markers", help="List month markers")
    p_markers.add_argument("--limit", type=int, default=24)

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(level=args.log_level.upper(), log_file=args.log_file)

    console = Console()
    try:
        timeline = Timeline.open(args.settings, args.vault)
    except OSError as exc:
        logger.error(f"Could not open timeline: {exc}")
        raise SystemExit(1)

    handler = HANDLERS.get(args.command)
    if handler is None:
        raise SystemExit(2)
    raise SystemExit(handler(args, timeline, console))
