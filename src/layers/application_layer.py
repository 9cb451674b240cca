"""
Application Layer Implementation

This module implements the two application endpoints of a simulated
session: a source that hands fixed-length messages to the sender and a
sink that records and verifies what the receiver delivers.
"""

import hashlib
from typing import List, Tuple

from config import PAYLOAD_SIZE


class MessageSource:
    """
    Generates fixed-length test messages.

    Message i is PAYLOAD_SIZE copies of the letter 'a' + (i mod 26), so a
    misordered or duplicated delivery is visible in the received stream.
    """

    def __init__(self, payload_size: int = PAYLOAD_SIZE):
        self.payload_size = payload_size
        self.generated = 0
        self.accepted: List[bytes] = []
        self.rejected = 0

    def next_message(self) -> bytes:
        """Build the next message in the pattern."""
        letter = ord('a') + self.generated % 26
        self.generated += 1
        return bytes([letter]) * self.payload_size

    def record(self, message: bytes, accepted: bool):
        """Remember whether the sender accepted the message."""
        if accepted:
            self.accepted.append(message)
        else:
            self.rejected += 1

    def reset(self):
        self.generated = 0
        self.accepted.clear()
        self.rejected = 0


class MessageSink:
    """Collects payloads delivered to the receiving application."""

    def __init__(self):
        self.delivered: List[bytes] = []

    def receive(self, payload: bytes):
        self.delivered.append(payload)

    @property
    def count(self) -> int:
        return len(self.delivered)

    def reset(self):
        self.delivered.clear()


class DeliveryVerifier:
    """
    Utility for verifying delivery integrity.
    """

    @staticmethod
    def calculate_checksum(messages: List[bytes]) -> str:
        """Calculate MD5 checksum over a message stream."""
        return hashlib.md5(b''.join(messages)).hexdigest()

    @staticmethod
    def verify(sent: List[bytes], delivered: List[bytes]) -> Tuple[bool, dict]:
        """
        Verify delivered messages against the accepted submissions.

        Delivery is valid when it equals the sent stream exactly: same
        order, no gaps, no duplicates. A delivered prefix of the sent
        stream counts as in-order but incomplete.

        Args:
            sent: Messages the sender accepted, in submission order
            delivered: Messages the receiver delivered, in delivery order

        Returns:
            Tuple of (match, details)
        """
        first_mismatch = -1
        for i, (expected, actual) in enumerate(zip(sent, delivered)):
            if expected != actual:
                first_mismatch = i
                break

        in_order = first_mismatch == -1 and len(delivered) <= len(sent)
        complete = in_order and len(delivered) == len(sent)

        if first_mismatch == -1 and len(delivered) > len(sent):
            first_mismatch = len(sent)

        details = {
            'sent_messages': len(sent),
            'delivered_messages': len(delivered),
            'in_order': in_order,
            'complete': complete,
            'first_mismatch': first_mismatch,
            'sent_checksum': DeliveryVerifier.calculate_checksum(sent),
            'delivered_checksum': DeliveryVerifier.calculate_checksum(delivered)
        }

        return complete, details
