"""
Sliding-Window ARQ Receiver

This module implements the receiver side of the protocol, including
acknowledgment generation, out-of-order buffering and in-order delivery.
The acknowledgment policy decides how much is buffered and what each
acknowledgment carries.
"""

from typing import Optional, Iterator, Tuple
from dataclasses import dataclass, field
from collections import deque

from config import WINDOW_SIZE, SEQUENCE_SPACE_SIZE, ACK_POLICY
from .packet import Packet, is_corrupted
from .policy import AckPolicy
from .port import Endpoint, NetworkPort
from .sequence import SequenceSpace, validate_sequence_space
from src.utils.logger import SimulationLogger, get_logger


@dataclass
class ReceiveWindow:
    """
    Sliding window for the receiver.

    slots[i] holds the payload numbered expected + i, or None if that
    packet has not arrived yet.

    Attributes:
        space: Sequence space the window moves through
        size: Window size
        expected: Next in-order sequence number to deliver
        slots: Buffered payloads by offset from `expected`
    """
    space: SequenceSpace
    size: int
    expected: int = 0
    slots: deque = field(default=None)

    def __post_init__(self):
        if self.slots is None:
            self.slots = deque([None] * self.size)

    def in_window(self, seq_num: int) -> bool:
        """Check if sequence number is within the receive window."""
        return self.space.contains(seq_num, self.expected, self.size)

    def store(self, seq_num: int, payload: bytes) -> bool:
        """
        Buffer a payload in its slot.

        Returns:
            False if the slot was already filled (duplicate)
        """
        index = self.space.offset(seq_num, self.expected)
        if self.slots[index] is not None:
            return False
        self.slots[index] = payload
        return True

    def pop_in_order(self) -> Iterator[Tuple[int, bytes]]:
        """Yield (seq_num, payload) for the contiguous run at `expected`, sliding past it."""
        while self.slots[0] is not None:
            payload = self.slots.popleft()
            self.slots.append(None)
            seq_num = self.expected
            self.expected = self.space.next(self.expected)
            yield seq_num, payload

    @property
    def buffered(self) -> list:
        """Sequence numbers buffered out of order."""
        return [self.space.add(self.expected, i)
                for i, payload in enumerate(self.slots) if payload is not None]


class Receiver:
    """
    Sliding-Window ARQ Receiver.

    Every intact packet is acknowledged, whether it is new, a duplicate, or
    outside the window, so the sender can recover from lost acknowledgments.
    Payloads reach the application exactly once, in order.

    - Selective: a window of window_size slots buffers out-of-order packets,
      and each ack carries the sequence number of the packet that arrived.
    - Cumulative: only the packet at `expected` is accepted (a one-slot
      window), and each ack carries the last sequence number delivered in
      order, so an ack for s also stands for everything before s.

    Attributes:
        policy: Acknowledgment policy the session runs under
        window: Receive window state
    """

    def __init__(
        self,
        port: NetworkPort,
        window_size: int = WINDOW_SIZE,
        sequence_space_size: int = SEQUENCE_SPACE_SIZE,
        policy=ACK_POLICY,
        endpoint: Endpoint = Endpoint.B,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize receiver.

        Args:
            port: Network environment (channel, application)
            window_size: Receive window size
            sequence_space_size: Number of distinct sequence numbers
            policy: AckPolicy or its name
            endpoint: Endpoint identifier used with the port
            logger: Logger (shared default if None)
        """
        self.policy = AckPolicy.parse(policy)
        validate_sequence_space(window_size, sequence_space_size, self.policy)

        self.port = port
        self.endpoint = endpoint
        self.window_size = window_size
        self.space = SequenceSpace(sequence_space_size)
        self.logger = logger or get_logger()

        self.window = ReceiveWindow(space=self.space, size=self._buffer_size)

        # Statistics
        self.packets_received = 0
        self.packets_delivered = 0
        self.acks_sent = 0
        self.duplicate_packets = 0
        self.out_of_order_packets = 0
        self.corrupted_packets = 0
        self.last_delivered: Optional[int] = None

    @property
    def expected(self) -> int:
        return self.window.expected

    @property
    def _buffer_size(self) -> int:
        return 1 if self.policy is AckPolicy.CUMULATIVE else self.window_size

    def on_packet_arrival(self, packet: Packet):
        """
        Process a data packet from the network.

        Args:
            packet: Received packet (possibly corrupted)
        """
        if is_corrupted(packet):
            self.corrupted_packets += 1
            self.logger.packet_received(self.endpoint.name, packet.seq_num, valid=False)
            return

        self.packets_received += 1
        seq_num = packet.seq_num
        self.logger.packet_received(self.endpoint.name, seq_num, valid=True)

        if not self.window.in_window(seq_num):
            if self._is_old(seq_num):
                self.duplicate_packets += 1
            else:
                self.out_of_order_packets += 1
        elif not self.window.store(seq_num, packet.payload):
            self.duplicate_packets += 1
        elif seq_num != self.window.expected:
            self.out_of_order_packets += 1
        else:
            self._deliver_in_order()

        self._send_ack(self._ack_number(seq_num))

    def _is_old(self, seq_num: int) -> bool:
        """Check if seq_num belongs to the window_size numbers just below `expected`."""
        first = self.space.add(self.window.expected, -self.window_size)
        return self.space.contains(seq_num, first, self.window_size)

    def _ack_number(self, seq_num: int) -> int:
        if self.policy is AckPolicy.CUMULATIVE:
            # Last in-order sequence number; N-1 before anything is delivered
            return self.space.add(self.window.expected, -1)
        return seq_num

    def _deliver_in_order(self):
        """Deliver the buffered run that is now contiguous at `expected`."""
        for seq_num, payload in self.window.pop_in_order():
            self.logger.delivered(self.endpoint.name, seq_num)
            self.port.to_application(self.endpoint, payload)
            self.packets_delivered += 1
            self.last_delivered = seq_num

    def _send_ack(self, seq_num: int):
        ack = Packet.create_ack_packet(seq_num)
        self.logger.ack_sent(self.endpoint.name, seq_num)
        self.port.to_network(self.endpoint, ack)
        self.acks_sent += 1

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'expected': self.window.expected,
            'last_delivered': self.last_delivered,
            'size': self.window.size,
            'buffered_packets': self.window.buffered
        }

    def get_statistics(self) -> dict:
        """Get receiver statistics."""
        return {
            'packets_received': self.packets_received,
            'packets_delivered': self.packets_delivered,
            'acks_sent': self.acks_sent,
            'duplicate_packets': self.duplicate_packets,
            'out_of_order_packets': self.out_of_order_packets,
            'corrupted_packets': self.corrupted_packets
        }

    def reset(self):
        """Reset receiver to initial state."""
        self.window = ReceiveWindow(space=self.space, size=self._buffer_size)

        self.packets_received = 0
        self.packets_delivered = 0
        self.acks_sent = 0
        self.duplicate_packets = 0
        self.out_of_order_packets = 0
        self.corrupted_packets = 0
        self.last_delivered = None
