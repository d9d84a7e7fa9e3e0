"""
Unit tests for grid geometry (pure functions, no settings involved).
"""

import math
import unittest
from datetime import date

from lifegrid.geometry import (
    MAX_ZOOM,
    MIN_ZOOM,
    cell_position,
    fit_to_screen_zoom,
    grid_extent,
    month_markers,
    year_position,
)
from lifegrid.model import GridOrientation, MarkerFrequency


class TestYearPosition(unittest.TestCase):
    def test_regular_stride_inside_decade(self) -> None:
        self.assertEqual(year_position(0, 16, 2), 0)
        self.assertEqual(year_position(1, 16, 2), 18)
        self.assertEqual(year_position(9, 16, 2), 162)

    def test_decade_gap_between_year_nine_and_ten(self) -> None:
        for decade_gap in (2, 8, 20):
            y9 = year_position(9, 16, 2, decade_gap)
            y10 = year_position(10, 16, 2, decade_gap)
            # space between the end of year 9's cell and the start of year 10's
            self.assertEqual(y10 - (y9 + 16), decade_gap)
            self.assertEqual(y10, y9 + (16 + 2) + decade_gap - 2)

    def test_monotonic(self) -> None:
        positions = [year_position(i, 10, 1, 6) for i in range(120)]
        self.assertEqual(positions, sorted(positions))
        self.assertEqual(len(set(positions)), len(positions))


class TestCellPosition(unittest.TestCase):
    def test_landscape_and_portrait_swap_axes(self) -> None:
        landscape = cell_position(12, 5, 16, 2, GridOrientation.LANDSCAPE, 8)
        portrait = cell_position(12, 5, 16, 2, GridOrientation.PORTRAIT, 8)
        self.assertEqual(landscape, (year_position(12, 16, 2, 8), 5 * 18))
        self.assertEqual(portrait, (landscape[1], landscape[0]))

    def test_extent(self) -> None:
        width, height = grid_extent(10, 52, 16, 2, GridOrientation.LANDSCAPE, 8)
        self.assertEqual(width, 9 * 18 + 16)
        self.assertEqual(height, 51 * 18 + 16)
        self.assertEqual(grid_extent(10, 52, 16, 2, GridOrientation.PORTRAIT, 8), (height, width))


class TestFitToScreen(unittest.TestCase):
    def test_result_fits_and_is_clamped(self) -> None:
        for width, height in ((800, 600), (1920, 1080), (100, 100), (10000, 10000), (1, 1)):
            for years in (1, 10, 90, 120):
                zoom = fit_to_screen_zoom(width, height, years)
                self.assertTrue(math.isfinite(zoom))
                self.assertGreaterEqual(zoom, MIN_ZOOM)
                self.assertLessEqual(zoom, MAX_ZOOM)

    def test_degenerate_inputs_return_min_zoom(self) -> None:
        self.assertEqual(fit_to_screen_zoom(0, 600, 90), MIN_ZOOM)
        self.assertEqual(fit_to_screen_zoom(800, 0, 90), MIN_ZOOM)
        self.assertEqual(fit_to_screen_zoom(800, 600, 0), MIN_ZOOM)
        self.assertEqual(fit_to_screen_zoom(float("nan"), 600, 90), MIN_ZOOM)

    def test_grid_fits_in_viewport(self) -> None:
        zoom = fit_to_screen_zoom(2000, 1200, 90)
        self.assertGreater(zoom, MIN_ZOOM)
        width, height = grid_extent(90, 52, 16 * zoom, 2, GridOrientation.LANDSCAPE, 8)
        self.assertLessEqual(width, 2000 * 0.95 + 1e-6)
        self.assertLessEqual(height, 1200 * 0.95 + 1e-6)

    def test_portrait_uses_height_for_years(self) -> None:
        landscape = fit_to_screen_zoom(1200, 2000, 90, orientation=GridOrientation.LANDSCAPE)
        portrait = fit_to_screen_zoom(1200, 2000, 90, orientation=GridOrientation.PORTRAIT)
        self.assertGreater(portrait, landscape)

    def test_custom_clamp_range(self) -> None:
        self.assertEqual(fit_to_screen_zoom(100000, 100000, 1, min_zoom=0.1, max_zoom=2.0), 2.0)


class TestMonthMarkers(unittest.TestCase):
    def test_all_months_once_per_year_sorted(self) -> None:
        markers = month_markers(date(2000, 1, 1), 2, MarkerFrequency.ALL)
        keys = [(m.year, m.month) for m in markers]
        self.assertEqual(len(keys), len(set(keys)))
        self.assertEqual([m.week_index for m in markers], sorted(m.week_index for m in markers))
        self.assertEqual(markers[0].label, "Jan")
        self.assertTrue(markers[0].is_first_of_year)
        self.assertTrue(markers[0].is_birth_month)
        self.assertEqual(len([m for m in markers if m.year == 2000]), 12)

    def test_quarter_frequency_forces_january_and_birth_month(self) -> None:
        markers = month_markers(date(1990, 5, 17), 3, MarkerFrequency.QUARTER)
        months = {m.month for m in markers}
        self.assertEqual(months, {1, 4, 5, 7, 10})
        birth = [m for m in markers if m.is_birth_month]
        self.assertTrue(all(m.month == 5 for m in birth))

    def test_yearly_frequency(self) -> None:
        markers = month_markers(date(1990, 5, 17), 5, MarkerFrequency.YEARLY)
        self.assertEqual({m.month for m in markers}, {1, 5})

    def test_half_year_frequency(self) -> None:
        markers = month_markers(date(1990, 3, 1), 2, MarkerFrequency.HALF_YEAR)
        self.assertEqual({m.month for m in markers}, {1, 3, 7})

    def test_week_index_points_at_first_week_in_month(self) -> None:
        markers = month_markers(date(2000, 1, 1), 1, MarkerFrequency.ALL)
        feb = next(m for m in markers if m.month == 2)
        # 2000-01-01 + 5 weeks = 2000-02-05
        self.assertEqual(feb.week_index, 5)
        self.assertEqual(feb.year_index, 0)
        self.assertEqual(feb.week_of_year, 5)

    def test_zero_years(self) -> None:
        self.assertEqual(month_markers(date(2000, 1, 1), 0), [])


if __name__ == "__main__":
    unittest.main()
