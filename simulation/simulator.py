"""
Main Simulator - Event-Driven Protocol Session

This module wires a sender, a receiver, the channel models and the
network emulator together and runs one complete simulated session.
"""

from typing import Optional, Dict
from dataclasses import dataclass, asdict
import time
import sys
import os

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    WINDOW_SIZE, SEQUENCE_SPACE_SIZE, RETRANSMISSION_TIMEOUT, ACK_POLICY,
    LOSS_PROBABILITY, CORRUPTION_PROBABILITY, MESSAGE_INTERVAL, NUM_MESSAGES,
    MAX_SIMULATION_TIME, RNG_SEED_BASE
)
from src.arq.port import Endpoint
from src.arq.sender import Sender
from src.arq.receiver import Receiver
from src.channel.base import Channel
from src.channel.bernoulli import BernoulliChannel
from src.channel.gilbert_elliot import GilbertElliottChannel
from src.layers.application_layer import MessageSource, MessageSink, DeliveryVerifier
from src.utils.metrics import MetricsCollector
from src.utils.logger import SimulationLogger, LogLevel
from simulation.emulator import NetworkEmulator, SimEvent


@dataclass
class SimulatorConfig:
    """Configuration for the simulator."""
    # ARQ parameters
    window_size: int = WINDOW_SIZE
    sequence_space_size: int = SEQUENCE_SPACE_SIZE
    timeout: float = RETRANSMISSION_TIMEOUT
    ack_policy: str = ACK_POLICY

    # Channel parameters
    channel: str = "bernoulli"  # or "gilbert"
    loss_prob: float = LOSS_PROBABILITY
    corrupt_prob: float = CORRUPTION_PROBABILITY

    # Application parameters
    num_messages: int = NUM_MESSAGES
    message_interval: float = MESSAGE_INTERVAL

    # Simulation parameters
    seed: int = RNG_SEED_BASE
    max_time: float = MAX_SIMULATION_TIME
    log_level: int = LogLevel.WARNING
    log_file: Optional[str] = None

    def build_channel(self, seed: int) -> Channel:
        """Create one direction's channel model."""
        if self.channel == "bernoulli":
            return BernoulliChannel(self.loss_prob, self.corrupt_prob, seed=seed)
        if self.channel == "gilbert":
            # loss_prob is the steady-state average of the bursty channel
            return GilbertElliottChannel.from_average_loss(
                self.loss_prob, corrupt_prob=self.corrupt_prob, seed=seed
            )
        raise ValueError(f"Unknown channel model: {self.channel}")


class Simulator:
    """
    Main Event-Driven Simulator.

    Each run builds fresh endpoints, channels and emulator, so runs are
    independent and reproducible from the seed.
    """

    def __init__(self, config: SimulatorConfig):
        """Initialize simulator."""
        self.config = config

        self.logger = SimulationLogger(
            name="Sim",
            level=config.log_level,
            log_file=config.log_file
        )

        self.metrics = MetricsCollector()
        self.source = MessageSource()
        self.sink = MessageSink()

        self.emulator: Optional[NetworkEmulator] = None
        self.sender: Optional[Sender] = None
        self.receiver: Optional[Receiver] = None

        # Invariant tracking
        self.window_violations = 0
        self.timer_violations = 0

    def _build(self):
        """Create emulator, channels and endpoints for one run."""
        cfg = self.config
        self.emulator = NetworkEmulator(
            forward_channel=cfg.build_channel(cfg.seed),
            reverse_channel=cfg.build_channel(cfg.seed + 1000),
            message_interval=cfg.message_interval,
            seed=cfg.seed + 2000,
            logger=self.logger
        )
        self.sender = Sender(
            self.emulator,
            window_size=cfg.window_size,
            sequence_space_size=cfg.sequence_space_size,
            timeout=cfg.timeout,
            policy=cfg.ack_policy,
            logger=self.logger
        )
        self.receiver = Receiver(
            self.emulator,
            window_size=cfg.window_size,
            sequence_space_size=cfg.sequence_space_size,
            policy=cfg.ack_policy,
            logger=self.logger
        )

        self.emulator.attach(
            Endpoint.A,
            on_packet=self.sender.on_packet_arrival,
            on_timer=self.sender.on_timer_expiry
        )
        self.emulator.attach(
            Endpoint.B,
            on_packet=self.receiver.on_packet_arrival,
            on_deliver=self._on_delivered
        )

    def _on_message(self):
        """Application layer at A produced a message."""
        message = self.source.next_message()
        accepted = self.sender.submit(message)
        self.source.record(message, accepted)
        self.metrics.record_submission(self.emulator.current_time, accepted)

    def _on_delivered(self, payload: bytes):
        """Application layer at B received an in-order payload."""
        self.sink.receive(payload)
        self.metrics.record_delivery(self.emulator.current_time)

    def _check_invariants(self, event: SimEvent):
        """Window bound and timer-iff-in-flight after every event."""
        in_flight = self.sender.in_flight
        if in_flight > self.config.window_size:
            self.window_violations += 1
        if self.sender.timer.is_running != (in_flight > 0):
            self.timer_violations += 1
        self.metrics.record_window(in_flight)
        self.metrics.update(event.time)

    def _is_complete(self) -> bool:
        """All accepted messages delivered and nothing left in flight."""
        return (self.sink.count == len(self.source.accepted) and
                self.sender.in_flight == 0)

    def run(self) -> Dict:
        """Run the simulation."""
        self.source.reset()
        self.sink.reset()
        self.metrics.reset()
        self.window_violations = 0
        self.timer_violations = 0
        self._build()

        self.logger.simulation_start({
            'policy': self.config.ack_policy,
            'window_size': self.config.window_size,
            'loss_prob': self.config.loss_prob,
            'corrupt_prob': self.config.corrupt_prob,
            'messages': self.config.num_messages
        })

        self.metrics.start(0.0)
        sim_start_real = time.time()

        self.emulator.generate_messages(self.config.num_messages, self._on_message)
        end_time = self.emulator.run(
            max_time=self.config.max_time,
            after_event=self._check_invariants
        )

        self.metrics.finish(end_time)
        sim_end_real = time.time()

        sender_stats = self.sender.get_statistics()
        receiver_stats = self.receiver.get_statistics()
        network_stats = self.emulator.get_statistics()
        self.metrics.record_endpoint_statistics(sender_stats, receiver_stats, network_stats)

        valid, verify_details = DeliveryVerifier.verify(
            self.source.accepted,
            self.sink.delivered
        )

        metrics_summary = self.metrics.get_summary()
        self.logger.simulation_end(metrics_summary)

        complete = self._is_complete()
        if not complete or not valid:
            self.logger.error(
                f"Delivery incomplete: {verify_details['delivered_messages']} of "
                f"{verify_details['sent_messages']} accepted messages delivered", "SIM"
            )
        if self.window_violations or self.timer_violations:
            self.logger.error(
                f"Invariant violations: window={self.window_violations}, "
                f"timer={self.timer_violations}", "SIM"
            )

        return {
            'config': asdict(self.config),
            'sender': sender_stats,
            'receiver': receiver_stats,
            'network': network_stats,
            'metrics': metrics_summary,
            'verification': {'valid': valid, **verify_details},
            'invariants': {
                'window_violations': self.window_violations,
                'timer_violations': self.timer_violations
            },
            'real_time': sim_end_real - sim_start_real,
            'simulation_time': end_time,
            'complete': complete
        }


if __name__ == "__main__":
    print("=" * 60)
    print("SIMULATOR TEST")
    print("=" * 60)

    config = SimulatorConfig(
        loss_prob=0.2,
        corrupt_prob=0.2,
        num_messages=50,
        log_level=LogLevel.INFO
    )

    sim = Simulator(config)
    results = sim.run()

    print(f"\nComplete: {results['complete']}")
    print(f"Delivery valid: {results['verification']['valid']}")
    print(f"Retransmissions: {results['metrics']['retransmissions']}")
