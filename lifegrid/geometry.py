"""
Grid geometry.

Pure functions mapping logical grid positions (year index, week index) to
pixel coordinates. Nothing in here touches settings, files or the clock, so
every function can be tested with plain numbers.

Layout:
- one cell per week, 52 rows per year
- a regular gap between cells
- an extra gap after every completed decade of years
- landscape: years run horizontally, weeks vertically; portrait swaps the axes
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Tuple

from lifegrid.model import GridOrientation, MarkerFrequency

BASE_CELL_SIZE = 16
CELL_GAP = 2
DECADE_GAP = 8
WEEKS_PER_YEAR = 52
MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
MIN_CELL_SIZE = 2
FIT_RATIO = 0.95

MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def year_position(year_index: int, cell_size: float, gap: float, decade_gap: float = DECADE_GAP) -> float:
    """
    Offset of a year's cells along the year axis.

    Each completed decade adds (decade_gap - gap): the regular gap is already
    part of the stride, so the space between year 9 and year 10 is exactly
    decade_gap.
    """
    return year_index * (cell_size + gap) + (year_index // 10) * (decade_gap - gap)


def week_position(week_index: int, cell_size: float, gap: float) -> float:
    return week_index * (cell_size + gap)


def cell_position(
    year_index: int,
    week_index: int,
    cell_size: float,
    gap: float,
    orientation: GridOrientation = GridOrientation.LANDSCAPE,
    decade_gap: float = DECADE_GAP,
) -> Tuple[float, float]:
    """
    Return the (x, y) pixel position of a cell's top-left corner.
    """
    along_years = year_position(year_index, cell_size, gap, decade_gap)
    along_weeks = week_position(week_index, cell_size, gap)
    if GridOrientation(orientation) is GridOrientation.PORTRAIT:
        return along_weeks, along_years
    return along_years, along_weeks


def _year_axis_length(years: int, cell_size: float, gap: float, decade_gap: float) -> float:
    if years <= 0:
        return 0.0
    return year_position(years - 1, cell_size, gap, decade_gap) + cell_size


def _week_axis_length(weeks: int, cell_size: float, gap: float) -> float:
    if weeks <= 0:
        return 0.0
    return week_position(weeks - 1, cell_size, gap) + cell_size


def grid_extent(
    years: int,
    weeks_per_year: int = WEEKS_PER_YEAR,
    cell_size: float = BASE_CELL_SIZE,
    gap: float = CELL_GAP,
    orientation: GridOrientation = GridOrientation.LANDSCAPE,
    decade_gap: float = DECADE_GAP,
) -> Tuple[float, float]:
    """
    Return the (width, height) in pixels of the whole grid.
    """
    along_years = _year_axis_length(years, cell_size, gap, decade_gap)
    along_weeks = _week_axis_length(weeks_per_year, cell_size, gap)
    if GridOrientation(orientation) is GridOrientation.PORTRAIT:
        return along_weeks, along_years
    return along_years, along_weeks


def scaled_cell_size(zoom: float, base_cell_size: float = BASE_CELL_SIZE) -> float:
    size = base_cell_size * zoom
    if not math.isfinite(size):
        return float(MIN_CELL_SIZE)
    return max(float(MIN_CELL_SIZE), size)


def fit_to_screen_zoom(
    available_width: float,
    available_height: float,
    years: int,
    weeks_per_year: int = WEEKS_PER_YEAR,
    base_cell_size: float = BASE_CELL_SIZE,
    gap: float = CELL_GAP,
    orientation: GridOrientation = GridOrientation.LANDSCAPE,
    decade_gap: float = DECADE_GAP,
    min_zoom: float = MIN_ZOOM,
    max_zoom: float = MAX_ZOOM,
) -> float:
    """
    Largest zoom at which the whole grid fits into 95% of the viewport,
    clamped to [min_zoom, max_zoom].

    Empty lifespans and empty viewports return min_zoom.
    """
    values = (available_width, available_height, base_cell_size)
    if years <= 0 or weeks_per_year <= 0 or not all(math.isfinite(v) and v > 0 for v in values):
        return min_zoom

    if GridOrientation(orientation) is GridOrientation.PORTRAIT:
        year_space, week_space = available_height, available_width
    else:
        year_space, week_space = available_width, available_height

    decades = (years - 1) // 10
    year_fixed = (years - 1) * gap + decades * (decade_gap - gap)
    cell_for_years = (year_space * FIT_RATIO - year_fixed) / years
    cell_for_weeks = (week_space * FIT_RATIO - (weeks_per_year - 1) * gap) / weeks_per_year

    cell = min(cell_for_years, cell_for_weeks)
    if cell <= 0:
        return min_zoom
    return min(max(cell / base_cell_size, min_zoom), max_zoom)


# ---------------------------------------------------------------------------
# Month markers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MonthMarker:
    week_index: int
    label: str
    is_first_of_year: bool
    is_birth_month: bool
    month: int
    year: int

    @property
    def year_index(self) -> int:
        return self.week_index // WEEKS_PER_YEAR

    @property
    def week_of_year(self) -> int:
        return self.week_index % WEEKS_PER_YEAR


def _month_selected(month: int, frequency: MarkerFrequency) -> bool:
    if frequency is MarkerFrequency.ALL:
        return True
    if frequency is MarkerFrequency.QUARTER:
        return (month - 1) % 3 == 0
    if frequency is MarkerFrequency.HALF_YEAR:
        return (month - 1) % 6 == 0
    return False


def month_markers(
    birth: date,
    total_years: int,
    frequency: MarkerFrequency = MarkerFrequency.ALL,
) -> List[MonthMarker]:
    """
    Walk the grid week by week from the birth date and emit one marker for the
    first week that falls into each selected calendar month.

    January and the birth month are always included.
    """
    frequency = MarkerFrequency(frequency)
    markers: List[MonthMarker] = []
    seen: set[tuple[int, int]] = set()

    for index in range(max(total_years, 0) * WEEKS_PER_YEAR):
        d = birth + timedelta(days=7 * index)
        key = (d.year, d.month)
        if key in seen:
            continue
        seen.add(key)

        is_january = d.month == 1
        is_birth_month = d.month == birth.month
        if not (is_january or is_birth_month or _month_selected(d.month, frequency)):
            continue

        markers.append(
            MonthMarker(
                week_index=index,
                label=MONTH_ABBR[d.month - 1],
                is_first_of_year=is_january,
                is_birth_month=is_birth_month,
                month=d.month,
                year=d.year,
            )
        )

    markers.sort(key=lambda m: m.week_index)
    return markers
