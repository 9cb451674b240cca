"""
Common channel behaviour: loss/corruption bookkeeping and the emulator's
corruption rule.
"""

from dataclasses import replace
from typing import Optional

import numpy as np

from config import (
    PAYLOAD_CORRUPTION_SHARE, SEQ_CORRUPTION_SHARE, CORRUPTED_FIELD_VALUE
)
from src.arq.packet import Packet


def corrupt_packet(packet: Packet, rng: np.random.Generator) -> Packet:
    """
    Return a damaged copy of a packet. The stored checksum is never touched.

    With probability PAYLOAD_CORRUPTION_SHARE the first payload byte becomes
    'Z'; otherwise, up to SEQ_CORRUPTION_SHARE overall the sequence number is
    overwritten, and in the remaining cases the acknowledgment number.
    """
    x = rng.random()
    if x < PAYLOAD_CORRUPTION_SHARE:
        return replace(packet, payload=b'Z' + packet.payload[1:])
    if x < SEQ_CORRUPTION_SHARE:
        return replace(packet, seq_num=CORRUPTED_FIELD_VALUE)
    return replace(packet, ack_num=CORRUPTED_FIELD_VALUE)


class Channel:
    """
    Base class for per-packet channel models.

    Subclasses decide, per packet, whether it is lost and whether it is
    corrupted; this class applies the decision and keeps statistics.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.rng = np.random.default_rng(seed)

        # Statistics tracking
        self.packets_transmitted = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def _is_lost(self) -> bool:
        raise NotImplementedError

    def _is_corrupted(self) -> bool:
        raise NotImplementedError

    def _advance(self):
        """Hook called once per packet after the loss/corruption draw."""

    def transmit(self, packet: Packet) -> Optional[Packet]:
        """
        Pass a packet through the channel.

        Returns:
            None if the packet was lost, otherwise the (possibly corrupted) packet
        """
        self.packets_transmitted += 1
        lost = self._is_lost()
        corrupted = not lost and self._is_corrupted()
        self._advance()

        if lost:
            self.packets_lost += 1
            return None
        if corrupted:
            self.packets_corrupted += 1
            return corrupt_packet(packet, self.rng)
        return packet

    def get_statistics(self) -> dict:
        """
        Get channel statistics.

        Returns:
            Dictionary with transmission statistics
        """
        sent = self.packets_transmitted
        return {
            'packets_transmitted': sent,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'observed_loss_rate': self.packets_lost / sent if sent > 0 else 0,
            'observed_corruption_rate': self.packets_corrupted / sent if sent > 0 else 0
        }

    def reset_statistics(self):
        """Reset all statistics counters."""
        self.packets_transmitted = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def reset(self, seed: Optional[int] = None):
        """
        Reset the channel to initial state.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.seed = seed
        self.rng = np.random.default_rng(self.seed)
        self.reset_statistics()
