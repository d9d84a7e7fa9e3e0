"""
Grid model and cell styling.

build_grid() lays out one cell per week of the configured lifespan; the
GridStyler resolves each cell's color and tooltip. Styling is async because an
event cell's tooltip may come from its note, and the renderer awaits every
cell before drawing anything.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence

from lifegrid.geometry import CELL_GAP, DECADE_GAP, WEEKS_PER_YEAR, cell_position, scaled_cell_size
from lifegrid.model import CellShape, EventMatch, LifeState
from lifegrid.notes import NoteFrontmatterSync
from lifegrid.settings import Settings, SettingsStore
from lifegrid.weeks import week_key, weeks_between


@dataclass(frozen=True)
class GridCell:
    year_index: int
    week_index: int
    date: date
    week_key: str
    state: LifeState
    x: float
    y: float
    size: float

    @property
    def index(self) -> int:
        return self.year_index * WEEKS_PER_YEAR + self.week_index

    @property
    def is_decade_start(self) -> bool:
        return self.year_index % 10 == 0

    @property
    def is_birthday_week(self) -> bool:
        return self.week_index == 0


@dataclass(frozen=True)
class CellStyle:
    color: str
    shape: CellShape
    state: LifeState
    tooltip: str
    event: Optional[EventMatch] = None
    filled: bool = False


def life_state(index: int, lived_weeks: int) -> LifeState:
    if index < lived_weeks:
        return LifeState.PAST
    if index == lived_weeks:
        return LifeState.PRESENT
    return LifeState.FUTURE


def build_grid(settings: Settings, today: date) -> List[GridCell]:
    """
    Cells for every week of the lifespan, year by year.

    Every year has exactly 52 rows, so cell dates drift against calendar years
    and an ISO week 53 never gets a row of its own.
    """
    lived = weeks_between(settings.birthday, today)
    size = scaled_cell_size(settings.zoom_level)
    gap = CELL_GAP * settings.zoom_level
    decade_gap = DECADE_GAP * settings.zoom_level

    cells: List[GridCell] = []
    for year in range(settings.lifespan):
        for week in range(WEEKS_PER_YEAR):
            index = year * WEEKS_PER_YEAR + week
            cell_date = settings.birthday + timedelta(days=7 * index)
            x, y = cell_position(year, week, size, gap, settings.orientation, decade_gap)
            cells.append(
                GridCell(
                    year_index=year,
                    week_index=week,
                    date=cell_date,
                    week_key=week_key(cell_date),
                    state=life_state(index, lived),
                    x=x,
                    y=y,
                    size=size,
                )
            )
    return cells


class GridStyler:
    def __init__(self, store: SettingsStore, sync: NoteFrontmatterSync) -> None:
        self.store = store
        self.sync = sync

    def _state_color(self, state: LifeState) -> str:
        settings = self.store.settings
        if state is LifeState.PAST:
            return settings.past_cell_color
        if state is LifeState.PRESENT:
            return settings.present_cell_color
        return settings.future_cell_color

    async def style_for_cell(self, cell: GridCell) -> CellStyle:
        settings = self.store.settings
        shape = settings.cell_shape
        match = self.store.events.find_event_for_week(cell.week_key)

        if match is not None:
            tooltip = match.description
            meta = await self.sync.read_event_metadata(match.event)
            if meta and meta.get("type") == match.category and meta.get("description"):
                # the note may carry a hand-edited description
                tooltip = meta["description"]
            category = self.store.events.get(match.category)
            if category is None or not category.builtin:
                tooltip = f"{tooltip} ({match.category})"
            return CellStyle(match.color, shape, cell.state, tooltip, event=match)

        filled = self.store.is_filled(cell.week_key)
        if filled and cell.state is not LifeState.PAST:
            return CellStyle(settings.filled_week_color, shape, cell.state, f"{cell.week_key} (filled)", filled=True)

        return CellStyle(self._state_color(cell.state), shape, cell.state, cell.week_key)

    async def style_grid(self, cells: Sequence[GridCell]) -> List[CellStyle]:
        """
        Resolve all cell styles concurrently; the result is in cell order.
        """
        return list(await asyncio.gather(*(self.style_for_cell(c) for c in cells)))
