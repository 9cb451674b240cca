"""
Sliding-Window ARQ Sender

This module implements the sender side of the protocol: window admission,
buffering of unacknowledged packets, acknowledgment processing under the
cumulative or selective policy, and timer-driven retransmission.
"""

from typing import Optional, List
from dataclasses import dataclass, field
from collections import deque

from config import (
    WINDOW_SIZE, SEQUENCE_SPACE_SIZE, RETRANSMISSION_TIMEOUT, ACK_POLICY
)
from .packet import Packet, is_corrupted
from .policy import AckPolicy
from .port import Endpoint, NetworkPort
from .sequence import SequenceSpace, validate_sequence_space
from .timer import RetransmissionTimer
from src.utils.logger import SimulationLogger, get_logger


@dataclass
class SendSlot:
    """Window slot: a buffered packet and whether it has been acknowledged."""
    packet: Packet
    acked: bool = False


@dataclass
class SendWindow:
    """
    Sliding window for the sender.

    Slots are kept in a deque addressed by offset from the window base, so
    slots[0] always holds the packet numbered `base`.

    Attributes:
        space: Sequence space the window moves through
        size: Window size
        base: Sequence number of the oldest unacknowledged packet
        next_seq: Next sequence number to use
        slots: Buffered packets, oldest first
    """
    space: SequenceSpace
    size: int
    base: int = 0
    next_seq: int = 0
    slots: deque = field(default_factory=deque)

    @property
    def count(self) -> int:
        """Number of packets in flight."""
        return len(self.slots)

    @property
    def is_full(self) -> bool:
        return self.count >= self.size

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def contains(self, seq_num: int) -> bool:
        """Check if seq_num belongs to a packet currently in the window."""
        return self.space.contains(seq_num, self.base, self.count)

    def slot_for(self, seq_num: int) -> SendSlot:
        return self.slots[self.space.offset(seq_num, self.base)]

    def push(self, packet: Packet):
        """Buffer a newly sent packet and claim the next sequence number."""
        self.slots.append(SendSlot(packet))
        self.next_seq = self.space.next(self.next_seq)

    def pop_front(self) -> SendSlot:
        """Drop the slot at base and advance base by one."""
        slot = self.slots.popleft()
        self.base = self.space.next(self.base)
        return slot

    def acknowledge_through(self, seq_num: int):
        """Mark every slot from base up to and including seq_num."""
        for index in range(self.space.offset(seq_num, self.base) + 1):
            self.slots[index].acked = True

    def slide(self) -> int:
        """Slide past every contiguous acknowledged slot at base."""
        slid = 0
        while self.slots and self.slots[0].acked:
            self.pop_front()
            slid += 1
        return slid

    def packets(self) -> List[Packet]:
        """Buffered packets in window order."""
        return [slot.packet for slot in self.slots]


class Sender:
    """
    Sliding-Window ARQ Sender.

    Handles three events, each processed to completion:
    - submit: a message from the application layer
    - on_packet_arrival: an acknowledgment from the network
    - on_timer_expiry: the retransmission timer fired

    Attributes:
        policy: Acknowledgment policy (cumulative or selective)
        window: Send window state
        timer: The single retransmission timer
    """

    def __init__(
        self,
        port: NetworkPort,
        window_size: int = WINDOW_SIZE,
        sequence_space_size: int = SEQUENCE_SPACE_SIZE,
        timeout: float = RETRANSMISSION_TIMEOUT,
        policy=ACK_POLICY,
        endpoint: Endpoint = Endpoint.A,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize sender.

        Args:
            port: Network environment (channel, timer, application)
            window_size: Send window size
            sequence_space_size: Number of distinct sequence numbers
            timeout: Retransmission timeout
            policy: AckPolicy or its name
            endpoint: Endpoint identifier used with the port
            logger: Logger (shared default if None)

        Raises:
            ConfigurationError: if the sequence space is too small for the policy
        """
        self.policy = AckPolicy.parse(policy)
        validate_sequence_space(window_size, sequence_space_size, self.policy)

        self.port = port
        self.endpoint = endpoint
        self.window_size = window_size
        self.space = SequenceSpace(sequence_space_size)
        self.logger = logger or get_logger()

        self.window = SendWindow(space=self.space, size=window_size)
        self.timer = RetransmissionTimer(port, endpoint, timeout)

        # Statistics
        self.window_full = 0
        self.packets_sent = 0
        self.packets_resent = 0
        self.total_acks_received = 0
        self.new_acks = 0
        self.corrupted_acks = 0

    @property
    def in_flight(self) -> int:
        """Number of sent packets not yet slid past."""
        return self.window.count

    def submit(self, message: bytes) -> bool:
        """
        Accept a message from the application layer.

        Args:
            message: Fixed-length application payload

        Returns:
            True if the message was sent, False if dropped (window full)
        """
        if self.window.is_full:
            self.window_full += 1
            self.logger.debug(f"{self.endpoint.name}: send window is full, message dropped", "TX")
            return False

        packet = Packet.create_data_packet(self.window.next_seq, message)
        self.window.push(packet)

        self.logger.packet_sent(self.endpoint.name, packet.seq_num)
        self.port.to_network(self.endpoint, packet)
        self.packets_sent += 1

        # Start timer if first packet in window
        if self.window.count == 1:
            self.timer.start()

        return True

    def on_packet_arrival(self, packet: Packet):
        """
        Process an acknowledgment from the network.

        Under the cumulative policy an ack covers every packet from base
        through ack_num; under the selective policy it marks its own slot.
        Corrupted, duplicate and out-of-window acknowledgments leave the
        window untouched.
        """
        if is_corrupted(packet):
            self.corrupted_acks += 1
            self.logger.debug(f"{self.endpoint.name}: corrupted ACK received, ignored", "ACK")
            return

        self.total_acks_received += 1
        ack_num = packet.ack_num

        if not self.window.contains(ack_num):
            self.logger.ack_received(self.endpoint.name, ack_num, new=False)
            return

        slot = self.window.slot_for(ack_num)
        if slot.acked:
            self.logger.ack_received(self.endpoint.name, ack_num, new=False)
            return

        self.new_acks += 1
        self.logger.ack_received(self.endpoint.name, ack_num, new=True)

        if self.policy is AckPolicy.CUMULATIVE:
            # Receiver acks only in-order data, so ack_num covers base..ack_num
            self.window.acknowledge_through(ack_num)
            self._slide_cumulative()
            return

        slot.acked = True
        if ack_num == self.window.base:
            self._slide_selective()

    def on_timer_expiry(self):
        """Retransmit after a timeout and re-arm the timer."""
        self.timer.expired()

        if self.window.is_empty:
            self.logger.warning(f"{self.endpoint.name}: timer expired with nothing in flight", "TIMEOUT")
            return

        self.logger.timeout(self.endpoint.name, self.window.base)

        if self.policy.retransmits_whole_window:
            to_resend = self.window.packets()
        else:
            to_resend = [self.window.slots[0].packet]

        for packet in to_resend:
            self.logger.retransmit(self.endpoint.name, packet.seq_num)
            self.port.to_network(self.endpoint, packet)
            self.packets_resent += 1

        self.timer.start()

    def _slide_cumulative(self):
        """Slide one slot at a time, restarting the timer at each step."""
        while self.window.slots and self.window.slots[0].acked:
            self.window.pop_front()
            if self.window.is_empty:
                self.timer.stop()
            else:
                self.timer.restart()
        self._log_window()

    def _slide_selective(self):
        """Slide past the acknowledged run at base, then restart or stop the timer."""
        self.window.slide()
        if self.window.is_empty:
            self.timer.stop()
        else:
            self.timer.restart()
        self._log_window()

    def _log_window(self):
        self.logger.window_update(
            self.endpoint.name, self.window.base, self.window.next_seq, self.window.count
        )

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'base': self.window.base,
            'next_seq': self.window.next_seq,
            'size': self.window.size,
            'in_flight': self.window.count,
            'buffered_packets': [slot.packet.seq_num for slot in self.window.slots],
            'acked_packets': [slot.packet.seq_num for slot in self.window.slots if slot.acked],
            'timer_running': self.timer.is_running
        }

    def get_statistics(self) -> dict:
        """Get sender statistics."""
        return {
            'policy': self.policy.value,
            'packets_sent': self.packets_sent,
            'packets_resent': self.packets_resent,
            'window_full': self.window_full,
            'total_acks_received': self.total_acks_received,
            'new_acks': self.new_acks,
            'corrupted_acks': self.corrupted_acks,
            **self.timer.get_statistics()
        }

    def reset(self):
        """Reset sender to initial state."""
        self.timer.reset()
        self.window = SendWindow(space=self.space, size=self.window_size)

        self.window_full = 0
        self.packets_sent = 0
        self.packets_resent = 0
        self.total_acks_received = 0
        self.new_acks = 0
        self.corrupted_acks = 0
