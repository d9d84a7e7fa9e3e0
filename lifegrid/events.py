"""
Event store.

Holds every event category (the four built-ins followed by custom types) in a
single name -> EventCategory mapping, so a category's color and its events
always move together on rename and delete.

Encoding rules (persistence boundary only):
    single:  "<weekKey>:<description>"
    range:   "<startWeekKey>:<endWeekKey>:<description>"

Lookups never raise for missing data; they return None/False and the caller
decides what to show the user.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Iterator, List, Optional

from lifegrid.model import (
    BUILTIN_CATEGORIES,
    BUILTIN_NAMES,
    DEFAULT_CUSTOM_COLOR,
    Event,
    EventCategory,
    EventMatch,
    RangeEvent,
    SingleEvent,
)
from lifegrid.weeks import is_week_key, week_key_to_approx_date


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def encode_event(event: Event) -> str:
    if isinstance(event, RangeEvent):
        return f"{event.start_key}:{event.end_key}:{event.description}"
    return f"{event.week_key}:{event.description}"


def decode_event(raw: str) -> Optional[Event]:
    """
    Decode one stored event string.

    Stored data written before descriptions were validated may contain extra
    colons: the second field only counts as an end week when it is a valid
    week key, everything after the keys is the description.
    """
    parts = str(raw).split(":")
    if len(parts) < 2 or not is_week_key(parts[0]):
        return None

    if len(parts) >= 3 and is_week_key(parts[1]):
        return RangeEvent(parts[0], parts[1], ":".join(parts[2:]))
    return SingleEvent(parts[0], ":".join(parts[1:]))


def validate_description(text: str) -> Optional[str]:
    """
    Return a user-facing problem with an event description, or None if it is fine.
    """
    desc = (text or "").strip()
    if not desc:
        return "Please add a description."
    if ":" in desc:
        return "Descriptions cannot contain ':'."
    return None


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class EventStore:
    def __init__(self) -> None:
        self._categories: Dict[str, EventCategory] = {}
        for builtin in BUILTIN_CATEGORIES:
            self._categories[builtin.name] = EventCategory(builtin.name, builtin.color, builtin=True)

    # -- inspection ---------------------------------------------------------

    def categories(self) -> Iterator[EventCategory]:
        """
        Built-in categories first, then custom ones in creation order.
        """
        return iter(list(self._categories.values()))

    def custom_categories(self) -> List[EventCategory]:
        return [c for c in self._categories.values() if not c.builtin]

    def get(self, name: str) -> Optional[EventCategory]:
        return self._categories.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._categories

    def event_counts(self) -> Dict[str, int]:
        return {c.name: len(c.events) for c in self._categories.values()}

    def total_events(self) -> int:
        return sum(len(c.events) for c in self._categories.values())

    # -- categories ---------------------------------------------------------

    def check_category_name(self, name: str, current: Optional[str] = None) -> Optional[str]:
        """
        Integrity pre-check for a new (or renamed) category name.

        `current` is the category being renamed, which may keep its own name.
        """
        cleaned = (name or "").strip()
        if not cleaned:
            return "Please enter a name for the event type."
        if ":" in cleaned:
            return "Event type names cannot contain ':'."
        if cleaned == current:
            return None
        if cleaned in self._categories:
            return "An event type with this name already exists."
        return None

    def add_category(self, name: str, color: str = DEFAULT_CUSTOM_COLOR) -> bool:
        name = (name or "").strip()
        if self.check_category_name(name) is not None:
            return False
        self._categories[name] = EventCategory(name, color or DEFAULT_CUSTOM_COLOR)
        return True

    def rename_category(self, old_name: str, new_name: str) -> bool:
        """
        Rename a custom category, keeping its position, color and events.
        """
        new_name = (new_name or "").strip()
        category = self._categories.get(old_name)
        if category is None or category.builtin:
            return False
        if self.check_category_name(new_name, current=old_name) is not None:
            return False
        if new_name == old_name:
            return True

        # rebuild to keep insertion order with the renamed key in place
        rebuilt: Dict[str, EventCategory] = {}
        for name, cat in self._categories.items():
            if name == old_name:
                cat.name = new_name
                rebuilt[new_name] = cat
            else:
                rebuilt[name] = cat
        self._categories = rebuilt
        return True

    def recolor_category(self, name: str, color: str) -> bool:
        category = self._categories.get(name)
        if category is None or category.builtin or not color:
            return False
        category.color = color
        return True

    def delete_category(self, name: str) -> bool:
        """
        Remove a custom category together with all of its events.
        """
        category = self._categories.get(name)
        if category is None or category.builtin:
            return False
        del self._categories[name]
        return True

    def restore_category(self, category: EventCategory) -> None:
        """
        Insert a category as loaded from persisted data (no validation).
        """
        existing = self._categories.get(category.name)
        if existing is not None and existing.builtin:
            existing.events = list(category.events)
            existing.undecoded = list(category.undecoded)
            return
        self._categories[category.name] = category

    # -- events -------------------------------------------------------------

    def add_event(self, category: str, event: Event, color: Optional[str] = None) -> bool:
        """
        Append an event. An unknown category is registered as a custom type first.
        """
        target = self._categories.get(category)
        if target is None:
            if not self.add_category(category, color or DEFAULT_CUSTOM_COLOR):
                return False
            target = self._categories[category.strip()]
        target.events.append(event)
        return True

    def _single_matches(self, key: str) -> Iterator[EventMatch]:
        for cat in self._categories.values():
            for ev in cat.events:
                if isinstance(ev, SingleEvent) and ev.week_key == key:
                    yield EventMatch(cat.name, cat.display_color, ev)

    def _range_matches(self, key: str) -> Iterator[EventMatch]:
        # compare absolute dates, not keys: ranges may cross a year boundary
        cell_date = week_key_to_approx_date(key)
        if cell_date is None:
            return
        for cat in self._categories.values():
            for ev in cat.events:
                if not isinstance(ev, RangeEvent):
                    continue
                if _range_contains(ev, cell_date):
                    yield EventMatch(cat.name, cat.display_color, ev)

    def find_event_for_week(self, key: str) -> Optional[EventMatch]:
        """
        First event covering a week: single events win over ranges, built-in
        categories are checked before custom ones, insertion order within a category.
        """
        for match in self._single_matches(key):
            return match
        for match in self._range_matches(key):
            return match
        return None

    def events_for_week(self, key: str) -> List[EventMatch]:
        return list(self._single_matches(key)) + list(self._range_matches(key))

    def has_event(self, key: str) -> bool:
        return self.find_event_for_week(key) is not None

    def delete_events_for_weeks(self, week_keys: Iterable[str]) -> int:
        """
        Remove single events on any of the weeks and whole range events that
        start or end on any of them. Returns the number of removed events.
        """
        keys = set(week_keys)
        removed = 0
        for cat in self._categories.values():
            kept: List[Event] = []
            for ev in cat.events:
                if isinstance(ev, RangeEvent):
                    hit = ev.start_key in keys or ev.end_key in keys
                else:
                    hit = ev.week_key in keys
                if hit:
                    removed += 1
                else:
                    kept.append(ev)
            cat.events = kept
        return removed


def _range_contains(event: RangeEvent, cell_date: date) -> bool:
    start = week_key_to_approx_date(event.start_key)
    end = week_key_to_approx_date(event.end_key)
    if start is None or end is None:
        return False
    if start > end:
        start, end = end, start
    return start <= cell_date <= end
