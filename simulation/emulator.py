"""
Network Emulator - Event-Driven Unreliable Link

This module implements the environment the two protocol endpoints run in:
a time-ordered event queue, an in-order but lossy and corrupting link in
each direction, one timer per endpoint and a message generator feeding
the sender's application layer.
"""

from typing import Callable, Dict, Optional, List
from dataclasses import dataclass, field
from enum import Enum
import heapq
import itertools
import os
import sys

import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    MESSAGE_INTERVAL, MIN_LINK_DELAY, LINK_DELAY_SPREAD, MAX_SIMULATION_TIME
)
from src.arq.packet import Packet
from src.arq.port import Endpoint
from src.channel.base import Channel
from src.utils.logger import SimulationLogger, get_logger


class EventType(Enum):
    """Types of simulation events."""
    FROM_APPLICATION = 0  # Application hands a message to an endpoint
    FROM_NETWORK = 1      # Packet arrives at an endpoint
    TIMER_INTERRUPT = 2   # Endpoint's timer fires


@dataclass(order=True)
class SimEvent:
    """Simulation event. Ties on time are broken by scheduling order."""
    time: float
    order: int
    event_type: EventType = field(compare=False)
    endpoint: Endpoint = field(compare=False)
    packet: Optional[Packet] = field(compare=False, default=None)
    generation: int = field(compare=False, default=0)  # To invalidate cancelled timers


@dataclass
class EndpointHandlers:
    """Callbacks the emulator dispatches to for one endpoint."""
    on_packet: Callable[[Packet], None]
    on_timer: Optional[Callable[[], None]] = None
    on_deliver: Optional[Callable[[bytes], None]] = None


class NetworkEmulator:
    """
    Event-driven emulator implementing the NetworkPort interface.

    Packets travelling in one direction never overtake each other: each
    arrival is scheduled after the previous arrival in the same direction.
    Timers carry a generation number so a cancelled or superseded timer
    never fires.

    Attributes:
        channels: Channel model per sending endpoint
        current_time: Current simulation time
    """

    def __init__(
        self,
        forward_channel: Channel,
        reverse_channel: Channel,
        message_interval: float = MESSAGE_INTERVAL,
        seed: Optional[int] = None,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize emulator.

        Args:
            forward_channel: Channel for packets sent by A
            reverse_channel: Channel for packets sent by B
            message_interval: Mean time between application messages
            seed: Random seed for delays and message timing
            logger: Logger (shared default if None)
        """
        self.channels = {Endpoint.A: forward_channel, Endpoint.B: reverse_channel}
        self.message_interval = message_interval
        self.rng = np.random.default_rng(seed)
        self.logger = logger or get_logger()

        self.current_time = 0.0
        self.event_queue: List[SimEvent] = []
        self._order = itertools.count()

        self.handlers: Dict[Endpoint, EndpointHandlers] = {}
        self.last_arrival = {Endpoint.A: 0.0, Endpoint.B: 0.0}
        self.timer_generation = {Endpoint.A: 0, Endpoint.B: 0}
        self.timer_running = {Endpoint.A: False, Endpoint.B: False}

        # Message generation
        self.on_message: Optional[Callable[[], None]] = None
        self.messages_remaining = 0

        # Statistics
        self.packets_to_network = 0
        self.packets_to_application = 0
        self.messages_from_application = 0
        self.timer_interrupts = 0
        self.timer_warnings = 0

    def attach(
        self,
        endpoint: Endpoint,
        on_packet: Callable[[Packet], None],
        on_timer: Optional[Callable[[], None]] = None,
        on_deliver: Optional[Callable[[bytes], None]] = None
    ):
        """Register an endpoint's event handlers."""
        self.handlers[endpoint] = EndpointHandlers(on_packet, on_timer, on_deliver)

    # ------------------------------------------------------------------
    # NetworkPort
    # ------------------------------------------------------------------

    def to_network(self, endpoint: Endpoint, packet: Packet):
        """Send a packet across the link towards the other endpoint."""
        self.packets_to_network += 1
        destination = Endpoint.B if endpoint == Endpoint.A else Endpoint.A

        received = self.channels[endpoint].transmit(packet)
        if received is None:
            self.logger.debug(f"TOLAYER3: packet from {endpoint.name} being lost", "LINK")
            return
        if received is not packet:
            self.logger.debug(f"TOLAYER3: packet from {endpoint.name} being corrupted", "LINK")

        # In-order delivery: never arrive before the previous packet this way
        start = max(self.current_time, self.last_arrival[destination])
        arrival = start + MIN_LINK_DELAY + LINK_DELAY_SPREAD * self.rng.random()
        self.last_arrival[destination] = arrival

        self._schedule(arrival, EventType.FROM_NETWORK, destination, packet=received)

    def to_application(self, endpoint: Endpoint, payload: bytes):
        """Deliver a payload to the endpoint's application layer."""
        self.packets_to_application += 1
        handlers = self.handlers.get(endpoint)
        if handlers and handlers.on_deliver:
            handlers.on_deliver(payload)

    def start_timer(self, endpoint: Endpoint, duration: float):
        """Arm the endpoint's timer; a running timer is superseded."""
        if self.timer_running[endpoint]:
            self.timer_warnings += 1
            self.logger.warning(
                f"{endpoint.name}: attempt to start a timer that is already started", "TIMER"
            )
        self.timer_generation[endpoint] += 1
        self.timer_running[endpoint] = True
        self._schedule(
            self.current_time + duration,
            EventType.TIMER_INTERRUPT,
            endpoint,
            generation=self.timer_generation[endpoint]
        )

    def stop_timer(self, endpoint: Endpoint):
        """Cancel the endpoint's timer."""
        if not self.timer_running[endpoint]:
            self.timer_warnings += 1
            self.logger.warning(f"{endpoint.name}: unable to cancel timer, it wasn't running", "TIMER")
            return
        self.timer_generation[endpoint] += 1
        self.timer_running[endpoint] = False

    def is_timer_running(self, endpoint: Endpoint) -> bool:
        return self.timer_running[endpoint]

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def generate_messages(self, count: int, on_message: Callable[[], None]):
        """
        Feed `count` messages to the sender, spaced by uniform intervals
        averaging message_interval.
        """
        self.on_message = on_message
        self.messages_remaining = count
        self._schedule_next_message()

    def _schedule_next_message(self):
        if self.messages_remaining <= 0:
            return
        self.messages_remaining -= 1
        gap = self.rng.uniform(0.0, 2 * self.message_interval)
        self._schedule(self.current_time + gap, EventType.FROM_APPLICATION, Endpoint.A)

    def _schedule(self, time: float, event_type: EventType, endpoint: Endpoint,
                  packet: Optional[Packet] = None, generation: int = 0):
        """Schedule an event."""
        event = SimEvent(
            time=time,
            order=next(self._order),
            event_type=event_type,
            endpoint=endpoint,
            packet=packet,
            generation=generation
        )
        heapq.heappush(self.event_queue, event)

    def _dispatch(self, event: SimEvent):
        if event.event_type == EventType.FROM_APPLICATION:
            self.messages_from_application += 1
            if self.on_message:
                self.on_message()
            self._schedule_next_message()

        elif event.event_type == EventType.FROM_NETWORK:
            handlers = self.handlers.get(event.endpoint)
            if handlers:
                handlers.on_packet(event.packet)

        elif event.event_type == EventType.TIMER_INTERRUPT:
            if (not self.timer_running[event.endpoint] or
                    event.generation != self.timer_generation[event.endpoint]):
                # Cancelled or superseded timer
                return
            self.timer_running[event.endpoint] = False
            self.timer_interrupts += 1
            handlers = self.handlers.get(event.endpoint)
            if handlers and handlers.on_timer:
                handlers.on_timer()

    def run(
        self,
        max_time: float = MAX_SIMULATION_TIME,
        after_event: Optional[Callable[[SimEvent], None]] = None
    ) -> float:
        """
        Process events until the queue drains or max_time is reached.

        Args:
            max_time: Simulation time limit
            after_event: Called after each event is fully processed

        Returns:
            Simulation time of the last processed event
        """
        while self.event_queue:
            event = heapq.heappop(self.event_queue)
            if event.time > max_time:
                heapq.heappush(self.event_queue, event)
                self.logger.warning(f"Simulation time limit {max_time} reached", "SIM")
                break

            self.current_time = event.time
            self.logger.set_sim_time(self.current_time)
            self._dispatch(event)

            if after_event:
                after_event(event)

        return self.current_time

    @property
    def pending_events(self) -> int:
        return len(self.event_queue)

    def get_statistics(self) -> dict:
        """Get emulator statistics."""
        forward = self.channels[Endpoint.A].get_statistics()
        reverse = self.channels[Endpoint.B].get_statistics()
        return {
            'packets_to_network': self.packets_to_network,
            'packets_to_application': self.packets_to_application,
            'messages_from_application': self.messages_from_application,
            'packets_lost': forward['packets_lost'] + reverse['packets_lost'],
            'packets_corrupted': forward['packets_corrupted'] + reverse['packets_corrupted'],
            'timer_interrupts': self.timer_interrupts,
            'timer_warnings': self.timer_warnings,
            'forward_channel': forward,
            'reverse_channel': reverse
        }
