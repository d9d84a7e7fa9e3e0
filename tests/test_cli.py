"""
Tests for CLI entry points.

Every test points --settings and --vault at a temporary directory
(to avoid touching real user data during tests).
"""

import json
import tempfile
import unittest
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path

from loguru import logger

from lifegrid.cli import main


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.settings_path = self.root / "settings.json"
        self.vault = self.root / "vault"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> int:
        args = ["--settings", str(self.settings_path), "--vault", str(self.vault), "--today", "2024-06-12", *argv]
        with redirect_stdout(StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(args)
        return int(ctx.exception.code or 0)

    def blob(self) -> dict:
        return json.loads(self.settings_path.read_text(encoding="utf-8"))

    def test_add_requires_valid_date(self) -> None:
        with redirect_stdout(StringIO()), self.assertRaises(SystemExit) as ctx:
            main(["--settings", str(self.settings_path), "add", "15.06.2022", "Graduated"])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_add_and_delete_roundtrip(self) -> None:
        self.assertEqual(self.run_cli("add", "2022-06-15", "Graduated"), 0)
        self.assertEqual(self.blob()["greenEvents"], ["2022-W24:Graduated"])
        self.assertTrue((self.vault / "2022--W24.md").exists())

        self.assertEqual(self.run_cli("delete", "2022-W24"), 0)
        self.assertEqual(self.blob()["greenEvents"], [])

    def test_add_rejects_colon(self) -> None:
        self.assertEqual(self.run_cli("add", "2022-06-15", "Trip: Rome"), 1)
        self.assertFalse(self.settings_path.exists())

    def test_range_with_week_keys(self) -> None:
        self.assertEqual(self.run_cli("add", "2023-W01", "Sabbatical", "--end", "2023-W05", "--type", "Travel"), 0)
        self.assertEqual(self.blob()["blueEvents"], ["2023-W01:2023-W05:Sabbatical"])
        self.assertEqual(self.run_cli("find", "2023-W03"), 0)

    def test_types_commands(self) -> None:
        self.assertEqual(self.run_cli("types", "add", "Health", "#00BCD4"), 0)
        self.assertEqual(self.run_cli("types", "add", "Health", "#00BCD4"), 1)
        self.assertEqual(self.run_cli("types", "rename", "Health", "Body"), 0)
        self.assertEqual(self.blob()["customEventTypes"], [{"name": "Body", "color": "#00BCD4"}])
        self.assertEqual(self.run_cli("types", "delete", "Major Life"), 1)
        self.assertEqual(self.run_cli("types", "delete", "Body"), 0)
        self.assertEqual(self.run_cli("types", "list"), 0)

    def test_config_and_show(self) -> None:
        self.assertEqual(self.run_cli("config", "birthday", "2000-01-01"), 0)
        self.assertEqual(self.run_cli("config", "enable_auto_fill", "true"), 0)
        self.assertEqual(self.run_cli("config", "lifespan", "abc"), 1)
        self.assertTrue(self.blob()["enableAutoFill"])
        self.assertEqual(self.run_cli("show"), 0)
        self.assertEqual(self.run_cli("config"), 0)

    def test_autofill_on_fill_day(self) -> None:
        # 2024-06-12 is a Wednesday (3)
        self.run_cli("config", "enable_auto_fill", "true")
        self.run_cli("config", "auto_fill_day", "3")
        self.assertEqual(self.run_cli("autofill"), 0)
        self.assertEqual(self.run_cli("autofill"), 0)
        self.assertEqual(self.blob()["filledWeeks"], ["2024-W24"])

    def test_note_and_note_deleted(self) -> None:
        self.assertEqual(self.run_cli("note"), 0)
        self.assertTrue((self.vault / "2024--W24.md").exists())
        self.assertEqual(self.run_cli("note", "bad-key"), 1)

        self.run_cli("add", "2022-06-15", "Graduated")
        self.assertEqual(self.run_cli("note-deleted", "2022--W24.md"), 0)
        self.assertEqual(self.blob()["greenEvents"], [])

    def test_log_file(self) -> None:
        log_path = self.root / "logs" / "lifegrid.log"
        self.assertEqual(self.run_cli("--log-file", str(log_path), "types", "list"), 0)
        logger.remove()  # closes the file sink
        self.assertIn("Settings loaded", log_path.read_text(encoding="utf-8"))

    def test_fit_apply(self) -> None:
        self.assertEqual(self.run_cli("fit", "2000", "1200", "--apply"), 0)
        self.assertGreater(self.blob()["zoomLevel"], 1.0)
        self.assertEqual(self.run_cli("markers", "--limit", "3"), 0)


if __name__ == "__main__":
    unittest.main()
