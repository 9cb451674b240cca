"""
Unit tests for sequence-number arithmetic and sizing rules.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.arq.policy import AckPolicy, ConfigurationError
from src.arq.sequence import SequenceSpace, in_range, validate_sequence_space


class TestInRange:
    """Tests for the circular membership test."""

    def test_contiguous_range(self):
        assert in_range(3, 2, 5)
        assert in_range(2, 2, 5)
        assert in_range(5, 2, 5)
        assert not in_range(1, 2, 5)
        assert not in_range(6, 2, 5)

    def test_wrapped_range(self):
        """Range [10, 1] in a space of 12 covers 10, 11, 0, 1."""
        for seq in (10, 11, 0, 1):
            assert in_range(seq, 10, 1)
        for seq in (2, 5, 9):
            assert not in_range(seq, 10, 1)

    def test_single_element_range(self):
        assert in_range(4, 4, 4)
        assert not in_range(5, 4, 4)


class TestSequenceSpace:
    """Tests for SequenceSpace."""

    def test_add_wraps(self):
        space = SequenceSpace(12)

        assert space.add(10, 3) == 1
        assert space.next(11) == 0
        assert space.next(4) == 5

    def test_contains_window(self):
        space = SequenceSpace(12)

        # Window of 6 starting at 9: 9, 10, 11, 0, 1, 2
        assert space.contains(9, 9, 6)
        assert space.contains(0, 9, 6)
        assert space.contains(2, 9, 6)
        assert not space.contains(3, 9, 6)
        assert not space.contains(8, 9, 6)

    def test_contains_empty_window(self):
        space = SequenceSpace(12)
        assert not space.contains(0, 0, 0)

    def test_contains_rejects_out_of_space_values(self):
        space = SequenceSpace(12)

        assert not space.contains(999999, 0, 6)
        assert not space.contains(-1, 0, 6)

    def test_offset(self):
        space = SequenceSpace(12)

        assert space.offset(9, 9) == 0
        assert space.offset(1, 9) == 4
        assert space.offset(5, 2) == 3

    def test_too_small(self):
        with pytest.raises(ConfigurationError):
            SequenceSpace(1)


class TestSizingRules:
    """Tests for window / sequence-space validation."""

    def test_selective_needs_twice_the_window(self):
        validate_sequence_space(6, 12, AckPolicy.SELECTIVE)

        with pytest.raises(ConfigurationError):
            validate_sequence_space(6, 11, AckPolicy.SELECTIVE)

    def test_cumulative_needs_window_plus_one(self):
        validate_sequence_space(3, 4, AckPolicy.CUMULATIVE)

        with pytest.raises(ConfigurationError):
            validate_sequence_space(3, 3, AckPolicy.CUMULATIVE)

    def test_window_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            validate_sequence_space(0, 12, AckPolicy.CUMULATIVE)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_sequence_space(6, 6, AckPolicy.SELECTIVE)


class TestAckPolicy:
    """Tests for AckPolicy parsing and rules."""

    def test_parse(self):
        assert AckPolicy.parse("selective") is AckPolicy.SELECTIVE
        assert AckPolicy.parse("CUMULATIVE") is AckPolicy.CUMULATIVE
        assert AckPolicy.parse(AckPolicy.SELECTIVE) is AckPolicy.SELECTIVE

    def test_parse_unknown(self):
        with pytest.raises(ConfigurationError):
            AckPolicy.parse("go-back-n")

    def test_retransmission_rule(self):
        assert AckPolicy.CUMULATIVE.retransmits_whole_window
        assert not AckPolicy.SELECTIVE.retransmits_whole_window

    def test_minimum_sequence_space(self):
        assert AckPolicy.SELECTIVE.minimum_sequence_space(6) == 12
        assert AckPolicy.CUMULATIVE.minimum_sequence_space(6) == 7


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
