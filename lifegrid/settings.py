"""
Settings aggregate.

`Settings` is the typed in-memory form of everything the user configures or
records: life parameters, display options, fill mode, event categories and
filled weeks. `SettingsStore` owns one Settings instance and is the only way
to mutate it; every successful mutation is persisted immediately through the
Settings Persistence collaborator (last writer wins, no batching).

The persisted blob keeps the plugin's camelCase layout so existing data files
stay readable. Conversion happens in settings_from_blob / settings_to_blob.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from loguru import logger

from lifegrid.events import EventStore, decode_event, encode_event, validate_description
from lifegrid.geometry import MAX_ZOOM, MIN_ZOOM
from lifegrid.model import (
    BUILTIN_CATEGORIES,
    CellShape,
    Event,
    EventCategory,
    GridOrientation,
    MarkerFrequency,
)
from lifegrid.weeks import format_date, is_week_key, parse_date, week_key, weeks_between

COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
MAX_LIFESPAN = 150


class SettingsPersistence(Protocol):
    def load(self) -> Optional[Dict[str, Any]]: ...

    def save(self, blob: Dict[str, Any]) -> None: ...


@dataclass
class Settings:
    birthday: date = date(1990, 1, 1)
    lifespan: int = 90
    past_cell_color: str = "#88a0a8"
    present_cell_color: str = "#5dbcd2"
    future_cell_color: str = "#d8e2e6"
    filled_week_color: str = "#8bc34a"
    zoom_level: float = 1.0
    orientation: GridOrientation = GridOrientation.LANDSCAPE
    cell_shape: CellShape = CellShape.SQUARE
    show_decade_markers: bool = True
    show_week_markers: bool = True
    show_month_markers: bool = True
    show_birthday_marker: bool = True
    month_marker_frequency: MarkerFrequency = MarkerFrequency.ALL
    enable_manual_fill: bool = False
    enable_auto_fill: bool = False
    auto_fill_day: int = 1  # 0 = Sunday ... 6 = Saturday
    notes_folder: str = ""
    quote: str = "the only true luxury is time."
    filled_weeks: List[str] = field(default_factory=list)
    events: EventStore = field(default_factory=EventStore)


# ---------------------------------------------------------------------------
# Blob conversion
# ---------------------------------------------------------------------------


def _as_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def _as_color(value: Any) -> Optional[str]:
    if isinstance(value, str) and COLOR_RE.match(value.strip()):
        return value.strip()
    return None


def _as_lifespan(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        years = int(value)
    except (TypeError, ValueError):
        return None
    return years if 1 <= years <= MAX_LIFESPAN else None


def _as_zoom(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        zoom = float(value)
    except (TypeError, ValueError):
        return None
    if zoom != zoom:  # NaN
        return None
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


def _as_weekday(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        day = int(value)
    except (TypeError, ValueError):
        return None
    return day if 0 <= day <= 6 else None


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, date):
        return value
    return parse_date(value) if isinstance(value, str) else None


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_enum(enum_cls: Any) -> Callable[[Any], Any]:
    def convert(value: Any) -> Any:
        try:
            return enum_cls(value)
        except (TypeError, ValueError):
            return None

    return convert


# attribute name, blob key, converter (None result -> keep default)
_SCALAR_FIELDS: List[tuple[str, str, Callable[[Any], Any]]] = [
    ("birthday", "birthday", _as_date),
    ("lifespan", "lifespan", _as_lifespan),
    ("past_cell_color", "pastCellColor", _as_color),
    ("present_cell_color", "presentCellColor", _as_color),
    ("future_cell_color", "futureCellColor", _as_color),
    ("filled_week_color", "filledWeekColor", _as_color),
    ("zoom_level", "zoomLevel", _as_zoom),
    ("orientation", "gridOrientation", _as_enum(GridOrientation)),
    ("cell_shape", "cellShape", _as_enum(CellShape)),
    ("show_decade_markers", "showDecadeMarkers", _as_bool),
    ("show_week_markers", "showWeekMarkers", _as_bool),
    ("show_month_markers", "showMonthMarkers", _as_bool),
    ("show_birthday_marker", "showBirthdayMarker", _as_bool),
    ("month_marker_frequency", "monthMarkerFrequency", _as_enum(MarkerFrequency)),
    ("enable_manual_fill", "enableManualFill", _as_bool),
    ("enable_auto_fill", "enableAutoFill", _as_bool),
    ("auto_fill_day", "autoFillDay", _as_weekday),
    ("notes_folder", "notesFolder", _as_text),
    ("quote", "quote", _as_text),
]

_CONVERTERS = {attr: conv for attr, _, conv in _SCALAR_FIELDS}
_BLOB_KEYS = {b.name: b.blob_key for b in BUILTIN_CATEGORIES}


def _decode_list(raw: Any) -> tuple[List[Event], List[str]]:
    decoded: List[Event] = []
    undecoded: List[str] = []
    if not isinstance(raw, list):
        return decoded, undecoded
    for item in raw:
        if not isinstance(item, str):
            continue
        ev = decode_event(item)
        if ev is None:
            logger.warning(f"Keeping undecodable event string as-is: {item!r}")
            undecoded.append(item)
        else:
            decoded.append(ev)
    return decoded, undecoded


def settings_from_blob(blob: Optional[Dict[str, Any]]) -> Settings:
    """
    Build Settings from defaults overlaid with a persisted blob.

    Unknown keys are ignored and malformed values keep their default.
    """
    settings = Settings()
    if not blob:
        return settings

    for attr, key, convert in _SCALAR_FIELDS:
        if key not in blob:
            continue
        value = convert(blob[key])
        if value is None:
            logger.warning(f"Ignoring invalid setting {key}={blob[key]!r}")
            continue
        setattr(settings, attr, value)

    filled = blob.get("filledWeeks", [])
    if isinstance(filled, list):
        for key in filled:
            if isinstance(key, str) and is_week_key(key) and key not in settings.filled_weeks:
                settings.filled_weeks.append(key)

    store = EventStore()
    for builtin in BUILTIN_CATEGORIES:
        events, undecoded = _decode_list(blob.get(builtin.blob_key, []))
        store.restore_category(
            EventCategory(builtin.name, builtin.color, events, builtin=True, undecoded=undecoded)
        )

    colors: Dict[str, str] = {}
    types = blob.get("customEventTypes", [])
    if isinstance(types, list):
        for entry in types:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name")
            if not isinstance(name, str) or not name.strip() or name in store:
                continue
            colors[name] = _as_color(entry.get("color")) or "#FF9800"
            store.restore_category(EventCategory(name, colors[name]))

    custom_events = blob.get("customEvents", {})
    if isinstance(custom_events, dict):
        for name, raw in custom_events.items():
            events, undecoded = _decode_list(raw)
            category = store.get(name)
            if category is None:
                # events whose type entry is missing: kept, rendered with the default color
                logger.warning(f"Custom events for unregistered type {name!r}")
                store.restore_category(EventCategory(name, None, events, undecoded=undecoded))
            elif category.builtin:
                logger.warning(f"Custom events stored under built-in type {name!r}, merged into it")
                category.events.extend(events)
                category.undecoded.extend(undecoded)
            else:
                category.events = events
                category.undecoded = undecoded

    settings.events = store
    return settings


def settings_to_blob(settings: Settings) -> Dict[str, Any]:
    blob: Dict[str, Any] = {}
    for attr, key, _ in _SCALAR_FIELDS:
        value = getattr(settings, attr)
        if isinstance(value, date):
            value = format_date(value)
        elif isinstance(value, Enum):
            value = value.value
        blob[key] = value

    blob["filledWeeks"] = list(settings.filled_weeks)

    store = settings.events
    for category in store.categories():
        if category.builtin:
            blob[_BLOB_KEYS[category.name]] = [encode_event(e) for e in category.events] + list(category.undecoded)

    blob["customEventTypes"] = [
        {"name": c.name, "color": c.color} for c in store.custom_categories() if c.registered
    ]
    blob["customEvents"] = {
        c.name: [encode_event(e) for e in c.events] + list(c.undecoded) for c in store.custom_categories()
    }
    return blob


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SettingsStore:
    """
    Aggregate root: owns Settings, validates mutations, persists on change.

    Mutators return True/None on success; integrity problems are reported as a
    user-facing message (or False) before anything is changed.
    """

    def __init__(self, persistence: SettingsPersistence) -> None:
        self.persistence = persistence
        self.settings = Settings()

    @property
    def events(self) -> EventStore:
        return self.settings.events

    def load(self) -> Settings:
        self.settings = settings_from_blob(self.persistence.load())
        logger.debug(
            f"Settings loaded: lifespan={self.settings.lifespan} events={self.events.total_events()}"
        )
        return self.settings

    def save(self) -> None:
        self.persistence.save(settings_to_blob(self.settings))

    # -- plain settings -----------------------------------------------------

    def update(self, **changes: Any) -> Optional[str]:
        """
        Change plain settings (attribute names of Settings). All values are
        validated first; nothing is applied if any of them is invalid.
        """
        converted: Dict[str, Any] = {}
        for attr, value in changes.items():
            convert = _CONVERTERS.get(attr)
            if convert is None:
                return f"Unknown setting: {attr}"
            new_value = convert(value)
            if new_value is None:
                return f"Invalid value for {attr}: {value!r}"
            converted[attr] = new_value

        for attr, value in converted.items():
            setattr(self.settings, attr, value)
        if converted:
            self.save()
        return None

    @staticmethod
    def setting_names() -> List[str]:
        return [attr for attr, _, _ in _SCALAR_FIELDS]

    # -- events -------------------------------------------------------------

    def add_event(self, category: str, event: Event, color: Optional[str] = None) -> Optional[str]:
        problem = validate_description(event.description)
        if problem:
            return problem
        if category not in self.events:
            problem = self.events.check_category_name(category)
            if problem:
                return problem
        if not self.events.add_event(category, event, color):
            return f"Could not add event to {category!r}."
        self.save()
        return None

    def delete_events_for_weeks(self, week_keys: List[str]) -> int:
        removed = self.events.delete_events_for_weeks(week_keys)
        if removed:
            self.save()
        return removed

    def add_event_type(self, name: str, color: str) -> Optional[str]:
        problem = self.events.check_category_name(name)
        if problem:
            return problem
        if _as_color(color) is None:
            return f"Invalid color: {color!r}"
        self.events.add_category(name, color)
        self.save()
        return None

    def rename_event_type(self, old_name: str, new_name: str) -> Optional[str]:
        category = self.events.get(old_name)
        if category is None:
            return f"No event type named {old_name!r}."
        if category.builtin:
            return "Built-in types cannot be edited."
        problem = self.events.check_category_name(new_name, current=old_name)
        if problem:
            return problem
        self.events.rename_category(old_name, new_name)
        self.save()
        return None

    def recolor_event_type(self, name: str, color: str) -> Optional[str]:
        category = self.events.get(name)
        if category is None:
            return f"No event type named {name!r}."
        if category.builtin:
            return "Built-in types cannot be edited."
        if _as_color(color) is None:
            return f"Invalid color: {color!r}"
        self.events.recolor_category(name, color)
        self.save()
        return None

    def delete_event_type(self, name: str) -> Optional[str]:
        category = self.events.get(name)
        if category is None:
            return f"No event type named {name!r}."
        if category.builtin:
            return "Built-in types cannot be deleted."
        self.events.delete_category(name)
        self.save()
        return None

    # -- filled weeks -------------------------------------------------------

    def is_filled(self, key: str) -> bool:
        return key in self.settings.filled_weeks

    def add_filled_week(self, key: str) -> bool:
        if not is_week_key(key) or key in self.settings.filled_weeks:
            return False
        self.settings.filled_weeks.append(key)
        self.save()
        return True

    def toggle_filled_week(self, key: str, today: date) -> Optional[str]:
        """
        Manually mark or unmark a future week as filled.
        """
        if not self.settings.enable_manual_fill:
            return "Manual fill is disabled."
        if not is_week_key(key):
            return f"Invalid week key: {key!r}"
        # fixed-width keys sort chronologically
        if key <= week_key(today):
            return "Only future weeks can be marked as filled."

        if key in self.settings.filled_weeks:
            self.settings.filled_weeks.remove(key)
        else:
            self.settings.filled_weeks.append(key)
        self.save()
        return None

    def lived_weeks(self, today: date) -> int:
        return weeks_between(self.settings.birthday, today)
