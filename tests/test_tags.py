"""
Tag normalization tests - one canonical delivery date tag per order.
"""

import pytest

from src.core.schema import DeliveryDate, TagFormat
from src.core.tags import is_date_tag, normalize_tags, parse_tags, serialize_tags

TARGET = DeliveryDate(2025, 8, 26)


class TestTagParsing:

    def test_parse_trims_and_drops_empty_entries(self):
        assert parse_tags("urgent, 26-08-2025,, vip ") == ["urgent", "26-08-2025", "vip"]

    def test_parse_missing_tags(self):
        assert parse_tags("") == []
        assert parse_tags(None) == []

    def test_serialize_uses_comma_space(self):
        assert serialize_tags(["urgent", "26-08-2025"]) == "urgent, 26-08-2025"
        assert serialize_tags([]) == ""

    def test_date_tag_shapes(self):
        assert is_date_tag("26-08-2025")
        assert is_date_tag("2025-08-26")
        assert not is_date_tag("2025-8-26")
        assert not is_date_tag("26/08/2025")
        assert not is_date_tag("urgent")


class TestNormalization:
    """Test collapsing equivalent date tags into the preferred rendering."""

    def test_format_collapse_day_first(self):
        """Test that two renderings of the same date collapse to one."""
        tags = ["urgent", "26-08-2025", "2025-08-26"]
        assert normalize_tags(tags, TARGET, TagFormat.DAY_FIRST) == ["urgent", "26-08-2025"]

    def test_format_collapse_iso(self):
        tags = ["urgent", "26-08-2025", "2025-08-26"]
        assert normalize_tags(tags, TARGET, TagFormat.ISO) == ["urgent", "2025-08-26"]

    def test_other_format_is_replaced_and_appended(self):
        assert normalize_tags(["2025-08-26", "vip"], TARGET, TagFormat.DAY_FIRST) == ["vip", "26-08-2025"]

    def test_missing_tag_is_appended(self):
        assert normalize_tags(["urgent"], TARGET, TagFormat.DAY_FIRST) == ["urgent", "26-08-2025"]
        assert normalize_tags([], TARGET, TagFormat.ISO) == ["2025-08-26"]

    def test_existing_preferred_tag_keeps_its_position(self):
        assert normalize_tags(["26-08-2025", "vip"], TARGET, TagFormat.DAY_FIRST) == ["26-08-2025", "vip"]

    def test_tags_for_other_dates_are_preserved(self):
        tags = ["01-09-2025", "vip", "2025-09-01"]
        assert normalize_tags(tags, TARGET, TagFormat.DAY_FIRST) == [
            "01-09-2025", "vip", "2025-09-01", "26-08-2025"
        ]

    def test_duplicate_date_tags_are_reduced(self):
        tags = ["26-08-2025", "vip", "26-08-2025", "01-09-2025", "01-09-2025"]
        assert normalize_tags(tags, TARGET, TagFormat.DAY_FIRST) == ["26-08-2025", "vip", "01-09-2025"]

    def test_non_date_tags_are_untouched(self):
        tags = ["vip", "vip", "Gift Wrap", "delivery date: soon"]
        assert normalize_tags(tags, TARGET, TagFormat.DAY_FIRST) == [
            "vip", "vip", "Gift Wrap", "delivery date: soon", "26-08-2025"
        ]

    def test_calendar_invalid_target(self):
        target = DeliveryDate(2025, 2, 31)
        assert normalize_tags(["2025-02-31"], target, TagFormat.DAY_FIRST) == ["31-02-2025"]

    @pytest.mark.parametrize("tags", [
        ["urgent", "26-08-2025", "2025-08-26"],
        ["2025-08-26", "2025-08-26", "vip"],
        ["01-09-2025", "vip"],
        [],
    ])
    @pytest.mark.parametrize("fmt", list(TagFormat))
    def test_normalization_is_idempotent(self, tags, fmt):
        once = normalize_tags(tags, TARGET, fmt)
        assert normalize_tags(once, TARGET, fmt) == once
