"""Tests for round identifiers."""

import pytest

from evalround.core.round_id import (
    compose_round_id,
    format_round_label,
    split_round_id,
    term_label,
)


class TestComposeRoundId:
    """Test year + term concatenation."""

    def test_concatenates_year_and_term(self):
        assert compose_round_id(2567, 1) == 25671

    def test_rejects_short_year(self):
        with pytest.raises(ValueError):
            compose_round_id(67, 1)

    def test_rejects_two_digit_term(self):
        with pytest.raises(ValueError):
            compose_round_id(2567, 12)


class TestSplitRoundId:
    """Test splitting round ids."""

    def test_split(self):
        assert split_round_id(25672) == ("2567", "2")

    def test_short_id_has_no_term(self):
        assert split_round_id("2567") == ("2567", "")


class TestLabels:
    """Test human-readable labels."""

    def test_summer_term(self):
        assert term_label(3) == "ภาคเรียนฤดูร้อน"

    def test_other_term(self):
        assert term_label("4") == "ภาคเรียนที่ 4"

    def test_round_label(self):
        assert format_round_label(25671) == "ปีการศึกษา 2567 | ภาคเรียนที่ 1"

    def test_round_label_without_term(self):
        assert format_round_label(2567) == "ปีการศึกษา 2567"

    def test_missing_round(self):
        assert format_round_label(None) == "ไม่ระบุรอบ"
