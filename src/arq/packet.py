"""
Packet Structure for Sliding-Window ARQ Protocol

This module defines the packet exchanged between the two endpoints and the
additive integrity check used by both of them to detect corruption.
"""

from dataclasses import dataclass

from config import PAYLOAD_SIZE, NOT_IN_USE


def compute_checksum(packet: 'Packet') -> int:
    """
    Compute the integrity value of a packet.

    Plain integer sum of the sequence number, the acknowledgment number and
    every payload byte. Detects the emulator's field overwrites; it is not
    meant to resist deliberate tampering.

    Args:
        packet: Packet whose current fields are summed

    Returns:
        Integrity value
    """
    return _checksum(packet.seq_num, packet.ack_num, packet.payload)


def is_corrupted(packet: 'Packet') -> bool:
    """Check if the stored checksum disagrees with the packet's current fields."""
    return packet.checksum != compute_checksum(packet)


def _checksum(seq_num: int, ack_num: int, payload: bytes) -> int:
    return seq_num + ack_num + sum(payload)


@dataclass(frozen=True)
class Packet:
    """
    Transport Packet Structure.

    Data packets carry a sequence number and a message; acknowledgments
    carry an ack number and a zero-filled payload. Unused header fields
    hold NOT_IN_USE.

    Attributes:
        seq_num: Sequence number (NOT_IN_USE for acknowledgments)
        ack_num: Acknowledgment number (NOT_IN_USE for data)
        payload: Exactly PAYLOAD_SIZE bytes
        checksum: Integrity value computed when the packet was built
    """

    seq_num: int
    ack_num: int
    payload: bytes
    checksum: int = 0

    def __post_init__(self):
        """Validate packet after initialization."""
        if not isinstance(self.payload, (bytes, bytearray)):
            raise TypeError(f"Payload must be bytes, got {type(self.payload).__name__}")
        if len(self.payload) != PAYLOAD_SIZE:
            raise ValueError(
                f"Payload must be exactly {PAYLOAD_SIZE} bytes, got {len(self.payload)}"
            )
        if isinstance(self.payload, bytearray):
            object.__setattr__(self, 'payload', bytes(self.payload))

    @property
    def is_ack(self) -> bool:
        """Check if this packet is an acknowledgment."""
        return self.seq_num == NOT_IN_USE and self.ack_num != NOT_IN_USE

    @property
    def is_corrupted(self) -> bool:
        return is_corrupted(self)

    @classmethod
    def create_data_packet(cls, seq_num: int, payload: bytes) -> 'Packet':
        """
        Create a DATA packet.

        Args:
            seq_num: Sequence number
            payload: One application message

        Returns:
            DATA packet with its checksum filled in
        """
        if seq_num < 0:
            raise ValueError("Sequence number must be non-negative")
        return cls(
            seq_num=seq_num,
            ack_num=NOT_IN_USE,
            payload=payload,
            checksum=_checksum(seq_num, NOT_IN_USE, payload)
        )

    @classmethod
    def create_ack_packet(cls, ack_num: int) -> 'Packet':
        """
        Create an ACK packet.

        Args:
            ack_num: Acknowledged sequence number

        Returns:
            ACK packet with a zero-filled payload
        """
        payload = b'0' * PAYLOAD_SIZE
        return cls(
            seq_num=NOT_IN_USE,
            ack_num=ack_num,
            payload=payload,
            checksum=_checksum(NOT_IN_USE, ack_num, payload)
        )

    def __repr__(self) -> str:
        kind = "ACK" if self.is_ack else "DATA"
        return (f"Packet(type={kind}, seq={self.seq_num}, ack={self.ack_num}, "
                f"checksum={self.checksum}, payload={self.payload!r})")
