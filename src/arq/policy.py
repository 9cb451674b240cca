"""
Acknowledgment policies for the sliding-window engines.
"""

from enum import Enum


class ConfigurationError(ValueError):
    """Raised for window, sequence-space or policy settings that cannot work."""


class AckPolicy(Enum):
    """Acknowledgment policy enumeration."""
    CUMULATIVE = "cumulative"
    SELECTIVE = "selective"

    @classmethod
    def parse(cls, value) -> 'AckPolicy':
        """Accept an AckPolicy or its name ("cumulative"/"selective")."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ConfigurationError(f"Unknown acknowledgment policy: {value!r}") from None

    def minimum_sequence_space(self, window_size: int) -> int:
        """Smallest sequence space that keeps old and new packets apart."""
        if self is AckPolicy.SELECTIVE:
            return 2 * window_size
        return window_size + 1

    @property
    def retransmits_whole_window(self) -> bool:
        """Go-Back-N resends every buffered packet; selective repeat only the oldest."""
        return self is AckPolicy.CUMULATIVE
