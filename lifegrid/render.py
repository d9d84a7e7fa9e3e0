"""
Terminal rendering of the life grid with rich.

Each cell becomes one colored glyph; decades are separated by an extra
column (or row, in portrait orientation). The renderer only draws styles that
were fully resolved beforehand, see Timeline.grid().
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from lifegrid.geometry import WEEKS_PER_YEAR, MonthMarker
from lifegrid.grid import CellStyle, GridCell
from lifegrid.model import CellShape, GridOrientation, LifeState
from lifegrid.settings import Settings

GLYPHS = {
    CellShape.SQUARE: "■",
    CellShape.CIRCLE: "●",
    CellShape.DIAMOND: "◆",
}
PRESENT_GLYPH = "▣"


def _glyph(style: CellStyle) -> Text:
    glyph = PRESENT_GLYPH if style.state is LifeState.PRESENT else GLYPHS[style.shape]
    text_style = style.color
    if style.event is not None:
        text_style = f"bold {style.color}"
    return Text(glyph, style=text_style)


def _year_header(years: int, show_decades: bool) -> Text:
    header = Text("    ")
    for year in range(years):
        if year and year % 10 == 0:
            header.append(" ")
        if show_decades and year % 10 == 0:
            label = str(year)
            header.append(label[0], style="dim")
        else:
            header.append(" ")
    return header


def _month_rows(markers: Sequence[MonthMarker]) -> Dict[Tuple[int, int], MonthMarker]:
    return {(m.year_index, m.week_of_year): m for m in markers}


def _months_by_year(markers: Sequence[MonthMarker]) -> Dict[int, List[str]]:
    labels: Dict[int, List[str]] = {}
    for m in markers:
        labels.setdefault(m.year_index, []).append(m.label)
    return labels


def render_grid(
    settings: Settings,
    cells: Sequence[GridCell],
    styles: Sequence[CellStyle],
    markers: Sequence[MonthMarker] = (),
) -> Group:
    """
    Build a renderable of the whole grid plus legend and quote.

    Month labels: in portrait every year row lists its own months. In
    landscape a row is one week across all years, so the row labels follow
    the first year (later years drift by about a week every six years).
    """
    by_position = {(c.year_index, c.week_index): s for c, s in zip(cells, styles)}
    month_at = _month_rows(markers) if settings.show_month_markers else {}
    months_of_year = _months_by_year(markers) if settings.show_month_markers else {}
    years = settings.lifespan
    lines: List[Text] = []

    if settings.orientation is GridOrientation.LANDSCAPE:
        lines.append(_year_header(years, settings.show_decade_markers))
        for week in range(WEEKS_PER_YEAR):
            label = f"{week:>3} " if settings.show_week_markers and week % 10 == 0 else "    "
            row = Text(label, style="dim")
            for year in range(years):
                if year and year % 10 == 0:
                    row.append(" ")
                style = by_position.get((year, week))
                row.append(_glyph(style) if style else Text(" "))
            marker = month_at.get((0, week))
            if marker is not None:
                row.append(f" {marker.label}", style="dim")
            lines.append(row)
    else:
        for year in range(years):
            if year and year % 10 == 0:
                lines.append(Text(""))
            label = f"{year:>3} " if settings.show_decade_markers and year % 10 == 0 else "    "
            row = Text(label, style="dim")
            for week in range(WEEKS_PER_YEAR):
                style = by_position.get((year, week))
                row.append(_glyph(style) if style else Text(" "))
            if year in months_of_year:
                row.append(" " + " ".join(months_of_year[year]), style="dim")
            lines.append(row)

    lines.append(Text(""))
    lines.append(Text(settings.quote, style="italic dim", justify="center"))
    return Group(*lines, legend(settings))


def legend(settings: Settings) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("color")
    table.add_column("name")
    for category in settings.events.categories():
        glyph = Text(GLYPHS[settings.cell_shape], style=category.display_color)
        name = category.name if category.registered else f"{category.name} (unregistered)"
        table.add_row(glyph, name)
    if settings.filled_weeks:
        table.add_row(Text(GLYPHS[settings.cell_shape], style=settings.filled_week_color), "Filled")
    return table


def print_grid(
    console: Console,
    settings: Settings,
    cells: Sequence[GridCell],
    styles: Sequence[CellStyle],
    markers: Sequence[MonthMarker] = (),
) -> None:
    console.print(render_grid(settings, cells, styles, markers))
