"""Tests for positional keys.

Positions are "N" for heads and "N.M" for leaves; ordinals are always
compared numerically.
"""

import pytest

from evalround.core import positional
from evalround.core.errors import MalformedPositionError
from evalround.core.positional import HeadPosition, LeafPosition, MalformedPosition


class TestFormat:
    """Test formatting of section2 values."""

    def test_format_head(self):
        assert positional.format_head(3) == "3"

    def test_format_leaf(self):
        assert positional.format_leaf(2, 10) == "2.10"


class TestParse:
    """Test parsing of section2 values into tagged positions."""

    def test_plain_integer_is_head_shaped(self):
        position = positional.parse("4")
        assert position == HeadPosition(4)
        assert position.is_head
        assert position.item_ordinal is None

    def test_dotted_value_is_leaf(self):
        position = positional.parse("1.2")
        assert position == LeafPosition(1, 2)
        assert not position.is_head

    def test_two_digit_item(self):
        assert positional.parse("1.10") == LeafPosition(1, 10)

    def test_integer_input_from_numeric_column(self):
        assert positional.parse(5) == HeadPosition(5)

    def test_float_input_from_numeric_column(self):
        assert positional.parse(2.3) == LeafPosition(2, 3)

    def test_whitespace_is_ignored(self):
        assert positional.parse(" 3.1 ") == LeafPosition(3, 1)

    @pytest.mark.parametrize("raw", ["", "abc", "1.a", "1.2.3", "0", "1.0", "-1", ".5", None])
    def test_malformed_values(self, raw):
        """Non-numeric, zero, negative, and multi-dot values are malformed."""
        position = positional.parse(raw)
        assert isinstance(position, MalformedPosition)
        assert not position.is_head


class TestDomainKey:
    """Test the topic ordinal used for reporting domains."""

    def test_head_value(self):
        assert positional.domain_key("3") == 3

    def test_leaf_value(self):
        assert positional.domain_key("3.7") == 3

    def test_head_stored_as_decimal(self):
        """Numeric columns can return heads as "2.0"."""
        assert positional.domain_key("2.0") == 2

    def test_non_numeric_raises(self):
        with pytest.raises(MalformedPositionError):
            positional.domain_key("x.1")

    def test_zero_raises(self):
        with pytest.raises(MalformedPositionError):
            positional.domain_key("0.5")


class TestSortKey:
    """Test numeric ordering of positions."""

    def test_numeric_not_lexicographic(self):
        """1.10 sorts after 1.9 and 1.2."""
        values = ["1.10", "1.2", "1.9", "1"]
        ordered = sorted(values, key=lambda v: positional.sort_key(1, v))
        assert ordered == ["1", "1.2", "1.9", "1.10"]

    def test_head_before_its_items(self):
        assert positional.sort_key(1, "2") < positional.sort_key(1, "2.1")

    def test_section_dominates(self):
        assert positional.sort_key(1, "9.9") < positional.sort_key(2, "1")

    def test_malformed_sorts_last_in_section(self):
        assert positional.sort_key(1, "99.99") < positional.sort_key(1, "bad")
        assert positional.sort_key(1, "bad") < positional.sort_key(2, "1")

    def test_head_stored_as_decimal_sorts_as_head(self):
        assert positional.sort_key(1, "2.0") == (1, 2, 0)
