"""Life calendar: your life as a grid of weeks, with events and week notes."""

from pathlib import Path

__version__ = (Path(__file__).resolve().parent / "VERSION").read_text(encoding="utf-8").strip()
