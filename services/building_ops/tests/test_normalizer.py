"""
Unit tests for time and text normalization.
"""

import pytest

from services.building_ops.core.normalizer import (
    format_minutes_as_display,
    format_time_display,
    normalize_text,
    parse_time_to_minutes,
    tokenize,
)


class TestParseTimeToMinutes:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2025-03-10T08:10:00Z", 490),
            ("2025-03-10T14:30:00-05:00", 870),
            ("9:00 am", 540),
            ("9AM", 540),
            ("9:15pm", 1275),
            ("12:30 P.M.", 750),
            ("12:00 am", 0),
            ("12 pm", 720),
            ("14:30", 870),
            ("14:30:00", 870),
            ("7:05", 425),
            ("  08:00  ", 480),
        ],
    )
    def test_accepted_encodings(self, text, expected):
        assert parse_time_to_minutes(text) == expected

    @pytest.mark.parametrize(
        "text", [None, "", "   ", "noon", "TBD", "25:00", "9:75", "13:00 pm", "0 am"]
    )
    def test_unparseable_returns_none(self, text):
        assert parse_time_to_minutes(text) is None


class TestFormatting:
    def test_compact_display_drops_zero_minutes(self):
        assert format_minutes_as_display(540) == "9am"
        assert format_minutes_as_display(490) == "8:10am"
        assert format_minutes_as_display(0) == "12am"
        assert format_minutes_as_display(720) == "12pm"
        assert format_minutes_as_display(1275) == "9:15pm"

    def test_long_display_always_shows_minutes(self):
        assert format_minutes_as_display(780, compact=False) == "1:00 pm"
        assert format_minutes_as_display(545, compact=False) == "9:05 am"

    def test_format_time_display(self):
        assert format_time_display("9:00  AM") == "9:00 AM"
        assert format_time_display("2025-03-10T08:10:00Z") == "8:10am"
        assert format_time_display("14:30:00") == "2:30pm"
        assert format_time_display("09:00") == "9am"
        assert format_time_display("After lunch") == "After lunch"
        assert format_time_display(None) == ""
        assert format_time_display("  ") == ""


class TestTextHelpers:
    def test_normalize_text(self):
        assert normalize_text("  Beit Midrash ") == "beit midrash"
        assert normalize_text(None) == ""

    def test_tokenize(self):
        assert tokenize("The  Big Gym") == {"the", "big", "gym"}
        assert tokenize("a b cd efg", min_length=3) == {"efg"}
        assert tokenize(None) == set()
