import unittest
from datetime import date, datetime

from dailypixel.formatting import (
    color_to_rgb,
    date_key,
    export_filename,
    normalize_color,
    parse_date_key,
)


class TestFormatting(unittest.TestCase):
    def test_normalize_color(self):
        self.assertEqual(normalize_color("#FF8000"), "#ff8000")
        self.assertEqual(normalize_color("ff8000"), "#ff8000")
        self.assertEqual(normalize_color("#F80"), "#ff8800")
        for bad in ("", "#12345", "#ggg", "blue", "#1234567"):
            with self.assertRaises(ValueError):
                normalize_color(bad)

    def test_color_to_rgb(self):
        self.assertEqual(color_to_rgb("#008080"), (0, 128, 128))

    def test_date_key_zero_padded(self):
        self.assertEqual(date_key(date(2024, 3, 7)), "2024-03-07")
        self.assertEqual(parse_date_key("2024-03-07"), date(2024, 3, 7))
        for bad in ("2024-3-7", "2024/03/07", "2024-02-30"):
            with self.assertRaises(ValueError):
                parse_date_key(bad)

    def test_export_filename(self):
        name = export_filename(datetime(2025, 1, 2, 3, 4, 5, 678))
        self.assertEqual(name, "pixel-art-2025-01-02T03-04-05.png")
