"""
Sequence Space for Sliding-Window ARQ

This module provides the modular sequence-number space shared by the
sender and the receiver: wraparound-aware range membership, offsets from
a window base, and validation of the window/sequence-space sizing.
"""

from dataclasses import dataclass

from .policy import AckPolicy, ConfigurationError


def in_range(seq_num: int, first: int, last: int) -> bool:
    """
    Check whether seq_num lies in the circular range [first, last].

    When first <= last the range is contiguous; otherwise it wraps past
    the top of the sequence space.
    """
    if first <= last:
        return first <= seq_num <= last
    return seq_num >= first or seq_num <= last


def validate_sequence_space(window_size: int, space_size: int, policy: AckPolicy):
    """
    Reject window/sequence-space pairs the ack policy cannot disambiguate.

    Raises:
        ConfigurationError: if window_size < 1 or space_size is too small
    """
    if window_size < 1:
        raise ConfigurationError(f"Window size must be at least 1, got {window_size}")

    minimum = policy.minimum_sequence_space(window_size)
    if space_size < minimum:
        raise ConfigurationError(
            f"{policy.value} acknowledgment with window {window_size} needs a "
            f"sequence space of at least {minimum}, got {space_size}"
        )


@dataclass(frozen=True)
class SequenceSpace:
    """
    Integers 0..size-1 under modular arithmetic.

    Attributes:
        size: Number of distinct sequence numbers
    """
    size: int

    def __post_init__(self):
        if self.size < 2:
            raise ConfigurationError(f"Sequence space must hold at least 2 numbers, got {self.size}")

    def add(self, seq_num: int, count: int) -> int:
        """Advance seq_num by count, wrapping."""
        return (seq_num + count) % self.size

    def next(self, seq_num: int) -> int:
        return self.add(seq_num, 1)

    def last_of(self, base: int, length: int) -> int:
        """Last sequence number of a window of `length` slots starting at base."""
        return self.add(base, length - 1)

    def contains(self, seq_num: int, base: int, length: int) -> bool:
        """Check if seq_num falls in the `length` slots starting at base."""
        if length <= 0 or not 0 <= seq_num < self.size:
            return False
        return in_range(seq_num, base, self.last_of(base, length))

    def offset(self, seq_num: int, base: int) -> int:
        """Slot index of seq_num relative to base (0 = base itself)."""
        return (seq_num - base) % self.size
