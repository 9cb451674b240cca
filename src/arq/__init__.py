"""
ARQ package - Sliding-window ARQ protocol components.

Contains implementations for:
- Packet structure and integrity check
- Sequence space arithmetic
- Sender with window management
- Receiver with out-of-order buffering
- Retransmission timer
"""

from .packet import Packet, compute_checksum, is_corrupted
from .policy import AckPolicy, ConfigurationError
from .port import Endpoint, NetworkPort
from .sequence import SequenceSpace, in_range, validate_sequence_space
from .sender import Sender
from .receiver import Receiver
from .timer import RetransmissionTimer

__all__ = [
    'Packet',
    'compute_checksum',
    'is_corrupted',
    'AckPolicy',
    'ConfigurationError',
    'Endpoint',
    'NetworkPort',
    'SequenceSpace',
    'in_range',
    'validate_sequence_space',
    'Sender',
    'Receiver',
    'RetransmissionTimer'
]
