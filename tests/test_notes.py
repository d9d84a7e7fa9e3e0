"""
Tests for note frontmatter formatting/parsing and note synchronization.

Sync tests use a FolderNoteStore in a temporary directory so no real vault
is touched.
"""

import tempfile
import unittest
from datetime import date
from pathlib import Path

from lifegrid.model import RangeEvent, SingleEvent
from lifegrid.notes import (
    FolderNoteStore,
    NoteFrontmatterSync,
    format_frontmatter,
    parse_frontmatter,
    range_note_name,
    replace_frontmatter,
    week_keys_from_note_name,
    week_note_name,
)
from lifegrid.settings import SettingsStore
from lifegrid.storage import MemorySettingsPersistence


class TestFrontmatterText(unittest.TestCase):
    def test_format_orders_keys_and_ends_with_blank_line(self) -> None:
        text = format_frontmatter(
            {"color": "#4CAF50", "name": "Graduated", "type": "Major Life", "startDate": "2022-06-15"}
        )
        self.assertEqual(
            text,
            '---\nname: Graduated\ntype: Major Life\ncolor: "#4CAF50"\nstartDate: 2022-06-15\n---\n\n',
        )

    def test_special_characters_are_quoted(self) -> None:
        text = format_frontmatter({"name": "Rock & Roll", "description": "plain"})
        self.assertIn('name: "Rock & Roll"', text)
        self.assertIn("description: plain", text)

    def test_event_dropped_when_equal_to_name(self) -> None:
        self.assertNotIn("event:", format_frontmatter({"name": "Trip", "event": "Trip"}))
        self.assertIn("event: Other", format_frontmatter({"name": "Trip", "event": "Other"}))

    def test_parse_strips_quotes_and_splits_on_first_colon(self) -> None:
        content = '---\nname: "Trip: Japan"\ntype: Travel\n---\n\n# Body\n'
        self.assertEqual(parse_frontmatter(content), {"name": "Trip: Japan", "type": "Travel"})

    def test_parse_without_block_returns_none(self) -> None:
        self.assertIsNone(parse_frontmatter("# Just a note\n"))
        self.assertIsNone(parse_frontmatter(""))

    def test_format_then_parse(self) -> None:
        meta = {"name": "A, B", "type": "Travel", "color": "#2196F3", "startDate": "2023-01-02"}
        self.assertEqual(parse_frontmatter(format_frontmatter(meta)), meta)

    def test_replace_keeps_body(self) -> None:
        content = "---\nname: Old\n---\n\n# Week 23\n\nbody text\n"
        updated = replace_frontmatter(content, {"name": "New"})
        self.assertEqual(updated, "---\nname: New\n---\n\n# Week 23\n\nbody text\n")

    def test_replace_prepends_when_missing(self) -> None:
        updated = replace_frontmatter("# Week 23\n", {"name": "New"})
        self.assertTrue(updated.startswith("---\nname: New\n---\n\n# Week 23"))


class TestNoteNames(unittest.TestCase):
    def test_week_and_range_names(self) -> None:
        self.assertEqual(week_note_name("2025-W23"), "2025--W23.md")
        self.assertEqual(range_note_name("2023-W01", "2023-W05"), "2023--W01_to_2023--W05.md")

    def test_keys_from_names(self) -> None:
        self.assertEqual(week_keys_from_note_name("2025--W23.md"), ["2025-W23"])
        self.assertEqual(week_keys_from_note_name("notes/2025--W23.md"), ["2025-W23"])
        self.assertEqual(
            week_keys_from_note_name("2023--W01_to_2023--W05.md"), ["2023-W01", "2023-W05"]
        )
        self.assertEqual(week_keys_from_note_name("shopping list.md"), [])


class TestNoteSync(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.vault = Path(self._tmp.name)
        self.store = SettingsStore(MemorySettingsPersistence())
        self.store.load()
        self.store.update(notes_folder="Life")
        self.sync = NoteFrontmatterSync(FolderNoteStore(self.vault), self.store)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_sync_single_event_creates_note(self) -> None:
        ev = SingleEvent("2022-W24", "Graduated")
        self.store.add_event("Major Life", ev)
        path = await self.sync.sync_event("Major Life", ev, date(2022, 6, 15))
        self.assertEqual(path, "Life/2022--W24.md")

        text = (self.vault / "Life" / "2022--W24.md").read_text(encoding="utf-8")
        meta = parse_frontmatter(text)
        assert meta is not None
        self.assertEqual(meta["type"], "Major Life")
        self.assertEqual(meta["startDate"], "2022-06-15")
        self.assertEqual(meta["color"], "#4CAF50")
        self.assertNotIn("endDate", meta)
        self.assertIn("# Event: Graduated", text)

    async def test_sync_range_event_uses_range_note(self) -> None:
        ev = RangeEvent("2023-W01", "2023-W05", "Sabbatical")
        self.store.add_event("Travel", ev)
        path = await self.sync.sync_event("Travel", ev)
        self.assertEqual(path, "Life/2023--W01_to_2023--W05.md")
        meta = await self.sync.notes.read(path)
        assert meta is not None
        parsed = parse_frontmatter(meta)
        assert parsed is not None
        self.assertEqual(parsed["startDate"], "2023-01-02")
        self.assertEqual(parsed["endDate"], "2023-01-30")

    async def test_update_replaces_existing_frontmatter(self) -> None:
        note = self.vault / "Life" / "2025--W23.md"
        note.parent.mkdir(parents=True)
        note.write_text("---\nname: Old\nmood: fine\n---\n\nMy text\n", encoding="utf-8")

        ok = await self.sync.update_event_in_note("2025-W23", {"name": "New", "type": "Travel"})
        self.assertTrue(ok)
        text = note.read_text(encoding="utf-8")
        self.assertEqual(text, "---\nname: New\ntype: Travel\n---\n\nMy text\n")

    async def test_update_prepends_to_note_without_frontmatter(self) -> None:
        note = self.vault / "Life" / "2025--W23.md"
        note.parent.mkdir(parents=True)
        note.write_text("# Week 23, 2025\n", encoding="utf-8")
        await self.sync.update_event_in_note("2025-W23", {"name": "New"})
        self.assertEqual(note.read_text(encoding="utf-8"), "---\nname: New\n---\n\n# Week 23, 2025\n")

    async def test_write_failure_is_reported_not_raised(self) -> None:
        # a file where the notes folder should be makes every write fail
        (self.vault / "Life").write_text("not a folder", encoding="utf-8")
        ok = await self.sync.update_event_in_note("2025-W23", {"name": "New"})
        self.assertFalse(ok)

    async def test_ensure_week_note_uses_template_once(self) -> None:
        path = await self.sync.ensure_week_note("2025-W23")
        self.assertEqual(path, "Life/2025--W23.md")
        note = self.vault / "Life" / "2025--W23.md"
        self.assertEqual(
            note.read_text(encoding="utf-8"),
            "# Week 23, 2025\n\n## Reflections\n\n## Tasks\n\n## Notes\n",
        )
        note.write_text("edited", encoding="utf-8")
        await self.sync.ensure_week_note("2025-W23")
        self.assertEqual(note.read_text(encoding="utf-8"), "edited")

    async def test_read_week_metadata(self) -> None:
        self.assertIsNone(await self.sync.read_week_metadata("2025-W23"))
        await self.sync.update_event_in_note("2025-W23", {"name": "Trip", "type": "Travel"})
        self.assertEqual(await self.sync.read_week_metadata("2025-W23"), {"name": "Trip", "type": "Travel"})

    def test_purge_for_deleted_notes(self) -> None:
        self.store.add_event("Major Life", SingleEvent("2022-W24", "Graduated"))
        self.store.add_event("Travel", RangeEvent("2023-W01", "2023-W05", "Sabbatical"))
        self.store.add_event("Travel", SingleEvent("2024-W02", "Weekend"))

        self.assertEqual(self.sync.purge_events_for_deleted_note("Life/2022--W24.md"), 1)
        self.assertEqual(self.sync.purge_events_for_deleted_note("2023--W01_to_2023--W05.md"), 1)
        self.assertEqual(self.sync.purge_events_for_deleted_note("random.md"), 0)
        self.assertEqual(self.store.events.total_events(), 1)


if __name__ == "__main__":
    unittest.main()
