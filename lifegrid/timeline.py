"""
Application service for the life timeline.

Wires the user-facing flows in one place:

    command -> SettingsStore mutation (saved) -> note frontmatter (best effort)

so the CLI (or any other front end) only parses input and prints results.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from loguru import logger

from lifegrid.autofill import AutoFillScheduler
from lifegrid.grid import CellStyle, GridCell, GridStyler, build_grid
from lifegrid.model import Event, EventMatch, RangeEvent, SingleEvent
from lifegrid.notes import FolderNoteStore, NoteFrontmatterSync, NoteStore
from lifegrid.settings import SettingsStore
from lifegrid.storage import JsonSettingsPersistence
from lifegrid.weeks import week_key


@dataclass(frozen=True)
class AddEventResult:
    ok: bool
    message: str
    event: Optional[Event] = None
    note_path: Optional[str] = None


class Timeline:
    def __init__(self, store: SettingsStore, notes: NoteStore) -> None:
        self.store = store
        self.sync = NoteFrontmatterSync(notes, store)
        self.styler = GridStyler(store, self.sync)
        self.autofill = AutoFillScheduler(store)

    @classmethod
    def open(cls, settings_path: str | Path | None = None, vault: str | Path = ".") -> "Timeline":
        store = SettingsStore(JsonSettingsPersistence(settings_path))
        store.load()
        return cls(store, FolderNoteStore(vault))

    async def add_event(
        self,
        on: date,
        description: str,
        category: str = "Major Life",
        color: Optional[str] = None,
        end: Optional[date] = None,
    ) -> AddEventResult:
        """
        Add a single-week event, or a range event when `end` is given.
        """
        description = (description or "").strip()
        category = (category or "").strip()
        start = on
        if end is not None and end < start:
            start, end = end, start

        event: Event
        if end is None or week_key(start) == week_key(end):
            event = SingleEvent(week_key(start), description)
            end = None
        else:
            event = RangeEvent(week_key(start), week_key(end), description)

        problem = self.store.add_event(category, event, color)
        if problem:
            return AddEventResult(False, problem)

        note_path = await self.sync.sync_event(category, event, start, end)
        message = f"Event added: {description}"
        if note_path is None:
            message += " (note could not be written)"
        return AddEventResult(True, message, event, note_path)

    def find(self, key: str) -> List[EventMatch]:
        return self.store.events.events_for_week(key)

    def delete_week_events(self, keys: List[str]) -> int:
        return self.store.delete_events_for_weeks(keys)

    def note_deleted(self, file_name: str) -> int:
        return self.sync.purge_events_for_deleted_note(file_name)

    async def open_week_note(self, today: date, key: Optional[str] = None) -> Optional[str]:
        """
        Create (if missing) and return the note of a week, the current week by default.
        """
        key = key or week_key(today)
        path = await self.sync.ensure_week_note(key)
        if path is None:
            logger.warning(f"No note available for week {key}")
        return path

    async def grid(self, today: date) -> Tuple[List[GridCell], List[CellStyle]]:
        """
        Build the grid and await every cell style before anything is drawn.
        """
        cells = build_grid(self.store.settings, today)
        styles = await self.styler.style_grid(cells)
        return cells, styles
