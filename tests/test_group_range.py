"""Unit tests for the group range parser."""
import pytest

from processor.group_range import (
    DEFAULT_RANGE,
    GroupRange,
    parse_group_range,
    parse_parts,
)

ALL_GROUPS = tuple(range(200, 300))


class TestParseGroupRange:
    """Test cases for parse_group_range."""

    def test_single_group(self):
        """Test a lone group number."""
        assert parse_group_range("0") == (0,)

    def test_inclusive_range(self):
        """Test that ranges include both bounds."""
        assert parse_group_range("0-2") == (0, 1, 2)

    def test_comma_separated_parts(self):
        """Test multiple parts separated by commas."""
        assert parse_group_range("0, 7") == (0, 7)
        assert parse_group_range("0, 7-10") == (0, 7, 8, 9, 10)

    @pytest.mark.parametrize("text", [
        "0, 297-spam",
        "0, spam-201",
        "250, spam",
        "spam",
        "",
        "   ",
        None,
    ])
    def test_invalid_specification_defaults_to_everyone(self, text):
        """Test that any failure discards the whole specification."""
        assert parse_group_range(text) == ALL_GROUPS

    def test_padded_delimiters_and_duplicates(self):
        """Test whitespace around delimiters and duplicate groups."""
        assert parse_group_range("121,123 - 125   , 121") == (121, 123, 124, 125)

    def test_space_delimiter(self):
        """Test parts separated by single spaces."""
        assert parse_group_range("121 123 - 125 121") == (121, 123, 124, 125)

    def test_trailing_whitespace_is_trimmed(self):
        """Test that trailing whitespace is not treated as another part."""
        assert parse_group_range("261 ") == (261,)
        assert parse_group_range("  261-262\n") == (261, 262)

    def test_trailing_comma_defaults(self):
        """Test that a dangling delimiter leaves unparsed input."""
        assert parse_group_range("250,") == ALL_GROUPS

    def test_double_space_defaults(self):
        """Test that only a single literal space acts as a delimiter."""
        assert parse_group_range("250  251") == ALL_GROUPS

    def test_out_of_range_bound_defaults(self):
        """Test that bounds beyond 32 bits do not parse."""
        assert parse_group_range("4294967296") == ALL_GROUPS
        assert parse_group_range("4294967295") == (4294967295,)

    def test_reversed_range_is_empty(self):
        """Test that a range whose start exceeds its end adds nothing."""
        assert parse_group_range("5-3") == ()
        assert parse_group_range("5-3, 7") == (7,)

    def test_non_ascii_digits_default(self):
        """Test that only ASCII digits form group numbers."""
        assert parse_group_range("٣") == ALL_GROUPS

    @pytest.mark.parametrize("low,high", [(0, 0), (3, 9), (200, 299), (1000, 1010)])
    def test_range_expands_to_every_member(self, low, high):
        """Test that "a-b" yields exactly a..b."""
        assert parse_group_range(f"{low}-{high}") == tuple(range(low, high + 1))

    def test_result_is_sorted(self):
        """Test that groups come back in ascending order."""
        assert parse_group_range("9, 3-4, 1") == (1, 3, 4, 9)


class TestParseParts:
    """Test cases for parse_parts."""

    def test_parts_before_expansion(self):
        """Test that singles and ranges are returned in input order."""
        assert parse_parts("121,123 - 125   , 121") == [
            GroupRange(121, 121),
            GroupRange(123, 125),
            GroupRange(121, 121),
        ]

    def test_invalid_text_returns_default_range(self):
        """Test the default part on failure."""
        assert parse_parts("0, 297-spam") == [DEFAULT_RANGE]
        assert parse_parts("") == [DEFAULT_RANGE]
        assert DEFAULT_RANGE == GroupRange(200, 299)
