"""
Central data model definitions used across the project.

This module defines the canonical structure of events and event categories so that:
- all modules share the same field names
- the flat string encoding only appears at the persistence boundary (events.py)
- grid, note and CLI code work with explicit types instead of re-parsing strings
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


DEFAULT_EVENT_COLOR = "#9E9E9E"
DEFAULT_CUSTOM_COLOR = "#FF9800"


class GridOrientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"


class CellShape(str, Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    DIAMOND = "diamond"


class MarkerFrequency(str, Enum):
    ALL = "all"
    QUARTER = "quarter"
    HALF_YEAR = "half-year"
    YEARLY = "yearly"


class LifeState(str, Enum):
    PAST = "past"
    PRESENT = "present"
    FUTURE = "future"


@dataclass(frozen=True)
class SingleEvent:
    """
    An event attached to exactly one ISO week.
    """

    week_key: str
    description: str


@dataclass(frozen=True)
class RangeEvent:
    """
    An event spanning consecutive weeks, both boundaries inclusive.
    """

    start_key: str
    end_key: str
    description: str


Event = Union[SingleEvent, RangeEvent]


@dataclass
class EventCategory:
    """
    One event category with its color and its ordered events.

    Built-in categories have fixed colors. A custom category loaded without a
    registered type entry has color None and renders with DEFAULT_EVENT_COLOR.
    """

    name: str
    color: Optional[str]
    events: List[Event] = field(default_factory=list)
    builtin: bool = False
    # stored strings that could not be decoded, kept so a save does not drop them
    undecoded: List[str] = field(default_factory=list)

    @property
    def registered(self) -> bool:
        return self.color is not None

    @property
    def display_color(self) -> str:
        return self.color or DEFAULT_EVENT_COLOR


@dataclass(frozen=True)
class EventMatch:
    """
    Result of an event lookup for a week.
    """

    category: str
    color: str
    event: Event

    @property
    def description(self) -> str:
        return self.event.description

    @property
    def is_range(self) -> bool:
        return isinstance(self.event, RangeEvent)


@dataclass(frozen=True)
class BuiltinCategory:
    name: str
    color: str
    blob_key: str


BUILTIN_CATEGORIES: tuple[BuiltinCategory, ...] = (
    BuiltinCategory("Major Life", "#4CAF50", "greenEvents"),
    BuiltinCategory("Travel", "#2196F3", "blueEvents"),
    BuiltinCategory("Relationship", "#E91E63", "pinkEvents"),
    BuiltinCategory("Education/Career", "#9C27B0", "purpleEvents"),
)

BUILTIN_NAMES = frozenset(c.name for c in BUILTIN_CATEGORIES)
