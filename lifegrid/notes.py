"""
Week notes and their frontmatter.

Every event gets a companion Markdown note whose frontmatter mirrors the
event (name, description, type, color, dates). The notes are a convenience
projection: the event store stays authoritative for the grid, and a note that
cannot be written never blocks the event mutation itself.

Note naming:
    single week:  2025-W23            -> 2025--W23.md
    range:        2023-W01..2023-W05  -> 2023--W01_to_2023--W05.md
"""

from __future__ import annotations

import asyncio
import re
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Protocol

from loguru import logger

from lifegrid.model import Event, RangeEvent
from lifegrid.weeks import format_date, is_week_key, parse_week_key, week_key_to_approx_date

if TYPE_CHECKING:
    from lifegrid.settings import SettingsStore


FRONTMATTER_RE = re.compile(r"^---\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n)*", re.DOTALL)
NEEDS_QUOTES_RE = re.compile(r"[:#\[\]{}|>*&!%@,]")
KEY_ORDER = ("name", "description", "event", "type", "color", "startDate", "endDate")
RANGE_SEPARATOR = "_to_"


# ---------------------------------------------------------------------------
# Frontmatter text
# ---------------------------------------------------------------------------


def _format_value(value: str) -> str:
    if NEEDS_QUOTES_RE.search(value):
        return f'"{value}"'
    return value


def format_frontmatter(metadata: Mapping[str, object]) -> str:
    """
    Render a frontmatter block followed by one blank line.

    Known keys come first in a fixed order. Empty values are skipped and
    `event` is dropped when it repeats `name`.
    """
    values: Dict[str, str] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        text = str(value).strip()
        if text:
            values[key] = text

    if "event" in values and values.get("event") == values.get("name"):
        del values["event"]

    ordered = [k for k in KEY_ORDER if k in values] + [k for k in values if k not in KEY_ORDER]
    lines = ["---"]
    lines.extend(f"{key}: {_format_value(values[key])}" for key in ordered)
    lines.append("---")
    return "\n".join(lines) + "\n\n"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_frontmatter(content: str) -> Optional[Dict[str, str]]:
    """
    Read the single-level key: value pairs of a leading frontmatter block.

    Returns None when the note has no frontmatter block.
    """
    m = FRONTMATTER_RE.match(content or "")
    if not m:
        return None

    data: Dict[str, str] = {}
    for line in m.group(1).splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        if key:
            data[key] = _strip_quotes(value.strip())
    return data


def replace_frontmatter(content: str, metadata: Mapping[str, object]) -> str:
    """
    Replace the whole existing frontmatter block, or prepend one.
    """
    block = format_frontmatter(metadata)
    if FRONTMATTER_RE.match(content):
        return FRONTMATTER_RE.sub(lambda _m: block, content, count=1)
    return block + content


# ---------------------------------------------------------------------------
# Note names
# ---------------------------------------------------------------------------


def week_note_name(key: str) -> str:
    return f"{key.replace('W', '-W', 1)}.md"


def range_note_name(start_key: str, end_key: str) -> str:
    return f"{start_key.replace('W', '-W', 1)}{RANGE_SEPARATOR}{end_key.replace('W', '-W', 1)}.md"


def note_name_for_event(event: Event) -> str:
    if isinstance(event, RangeEvent):
        return range_note_name(event.start_key, event.end_key)
    return week_note_name(event.week_key)


def week_keys_from_note_name(file_name: str) -> List[str]:
    """
    Recover the week key(s) from a note file name or path.

    Returns an empty list for files that do not follow the naming convention.
    """
    stem = str(file_name).replace("\\", "/").rsplit("/", 1)[-1]
    if stem.endswith(".md"):
        stem = stem[: -len(".md")]

    parts = stem.split(RANGE_SEPARATOR) if RANGE_SEPARATOR in stem else [stem]
    if len(parts) > 2:
        return []
    keys = [p.replace("--W", "-W", 1) for p in parts]
    if not all(is_week_key(k) for k in keys):
        return []
    return list(dict.fromkeys(keys))


def week_note_template(key: str) -> str:
    parsed = parse_week_key(key)
    year, week = parsed if parsed else (0, 0)
    return f"# Week {week}, {year}\n\n## Reflections\n\n## Tasks\n\n## Notes\n"


# ---------------------------------------------------------------------------
# Note Store
# ---------------------------------------------------------------------------


class NoteStore(Protocol):
    async def read(self, path: str) -> Optional[str]: ...

    async def create(self, path: str, content: str) -> None: ...

    async def modify(self, path: str, content: str) -> None: ...

    async def exists(self, path: str) -> bool: ...

    async def create_folder(self, path: str) -> None: ...


class FolderNoteStore:
    """
    Note Store over a local directory ("vault"). Paths are relative and use "/".
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def resolve(self, path: str) -> Path:
        return self.root.joinpath(*[p for p in path.split("/") if p])

    async def read(self, path: str) -> Optional[str]:
        target = self.resolve(path)
        if not target.is_file():
            return None
        return await asyncio.to_thread(target.read_text, encoding="utf-8")

    async def create(self, path: str, content: str) -> None:
        target = self.resolve(path)

        def write_new() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("x", encoding="utf-8") as fh:
                fh.write(content)

        await asyncio.to_thread(write_new)

    async def modify(self, path: str, content: str) -> None:
        target = self.resolve(path)
        if not target.is_file():
            raise FileNotFoundError(str(target))
        await asyncio.to_thread(target.write_text, content, encoding="utf-8")

    async def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    async def create_folder(self, path: str) -> None:
        await asyncio.to_thread(self.resolve(path).mkdir, parents=True, exist_ok=True)


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


class NoteFrontmatterSync:
    def __init__(self, notes: NoteStore, store: "SettingsStore") -> None:
        self.notes = notes
        self.store = store

    @property
    def folder(self) -> str:
        return self.store.settings.notes_folder.strip().strip("/")

    def note_path(self, file_name: str) -> str:
        return f"{self.folder}/{file_name}" if self.folder else file_name

    def week_note_path(self, key: str) -> str:
        return self.note_path(week_note_name(key))

    async def _ensure_folder(self) -> None:
        if not self.folder:
            return
        try:
            if not await self.notes.exists(self.folder):
                await self.notes.create_folder(self.folder)
        except OSError as exc:
            # the note write that follows reports its own failure
            logger.warning(f"Error checking/creating folder {self.folder!r}: {exc}")

    async def update_note(
        self, path: str, metadata: Mapping[str, object], body_if_new: str = ""
    ) -> bool:
        """
        Write metadata into a note's frontmatter, creating the note if needed.
        """
        try:
            await self._ensure_folder()
            content = await self.notes.read(path)
            if content is None:
                await self.notes.create(path, format_frontmatter(metadata) + body_if_new)
            else:
                await self.notes.modify(path, replace_frontmatter(content, metadata))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Could not update note {path!r}: {exc}")
            return False
        logger.debug(f"Frontmatter written to {path}")
        return True

    async def update_event_in_note(self, key: str, metadata: Mapping[str, object]) -> bool:
        return await self.update_note(self.week_note_path(key), metadata)

    def event_metadata(
        self,
        category: str,
        event: Event,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Dict[str, object]:
        cat = self.store.events.get(category)
        color = cat.display_color if cat is not None else None

        if isinstance(event, RangeEvent):
            start = start_date or week_key_to_approx_date(event.start_key)
            end = end_date or week_key_to_approx_date(event.end_key)
        else:
            start = start_date or week_key_to_approx_date(event.week_key)
            end = None

        metadata: Dict[str, object] = {
            "name": event.description,
            "description": event.description,
            "type": category,
            "color": color,
            "startDate": format_date(start) if start else None,
        }
        if end is not None:
            metadata["endDate"] = format_date(end)
        return metadata

    async def sync_event(
        self,
        category: str,
        event: Event,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Optional[str]:
        """
        Mirror one event into its note. Returns the note path, or None if the
        note could not be written.
        """
        path = self.note_path(note_name_for_event(event))
        metadata = self.event_metadata(category, event, start_date, end_date)
        body = f"# Event: {event.description}\n\n## Notes\n\n"
        if await self.update_note(path, metadata, body_if_new=body):
            return path
        return None

    def purge_events_for_deleted_note(self, file_name: str) -> int:
        """
        Drop the events tied to a note the user deleted.
        """
        keys = week_keys_from_note_name(file_name)
        if not keys:
            return 0
        removed = self.store.delete_events_for_weeks(keys)
        if removed:
            logger.info(f"Removed {removed} event(s) after deletion of {file_name}")
        return removed

    async def ensure_week_note(self, key: str) -> Optional[str]:
        """
        Return the path of a week's note, creating it from the template if missing.
        """
        if not is_week_key(key):
            return None
        path = self.week_note_path(key)
        try:
            if await self.notes.exists(path):
                return path
            await self._ensure_folder()
            await self.notes.create(path, week_note_template(key))
        except OSError as exc:
            logger.warning(f"Error creating week note {path!r}: {exc}")
            return None
        return path

    async def read_metadata(self, path: str) -> Optional[Dict[str, str]]:
        try:
            if not await self.notes.exists(path):
                return None
            content = await self.notes.read(path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Could not read note {path!r}: {exc}")
            return None
        if content is None:
            return None
        return parse_frontmatter(content)

    async def read_week_metadata(self, key: str) -> Optional[Dict[str, str]]:
        return await self.read_metadata(self.week_note_path(key))

    async def read_event_metadata(self, event: Event) -> Optional[Dict[str, str]]:
        """
        Frontmatter of the note an event was mirrored into (range events use the `_to_` note).
        """
        return await self.read_metadata(self.note_path(note_name_for_event(event)))
