"""
Metrics Collection and Calculation

This module provides utilities for calculating and tracking performance
metrics of a simulated session: throughput, retransmission overhead,
acknowledgment efficiency and per-message delivery latency.
"""

from dataclasses import dataclass
from typing import List, Optional, Dict
import statistics


@dataclass
class MetricsSample:
    """Single sample of metrics at a point in time."""
    timestamp: float
    messages_delivered: int = 0
    packets_sent: int = 0
    retransmissions: int = 0
    in_flight: int = 0


class MetricsCollector:
    """
    Collects and calculates performance metrics for the simulation.

    Primary metric: Throughput = Delivered Messages / Simulation Time

    Attributes:
        start_time: Simulation start time
        end_time: Simulation end time
    """

    def __init__(self, sample_interval: float = 100.0):
        """
        Initialize metrics collector.

        Args:
            sample_interval: Simulation time between periodic samples
        """
        # Time tracking
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

        # Application counters
        self.messages_submitted = 0
        self.messages_accepted = 0
        self.messages_delivered = 0
        self.window_full_events = 0

        # Protocol counters (copied from the endpoints at finish)
        self.packets_sent = 0
        self.retransmissions = 0
        self.acks_received = 0
        self.new_acks = 0
        self.packets_received = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

        # Latency tracking: submission time of each accepted message, in order
        self.submission_times: List[float] = []
        self.latency_samples: List[float] = []

        # Window occupancy tracking
        self.window_samples: List[int] = []
        self.max_in_flight = 0

        # Per-interval samples
        self.samples: List[MetricsSample] = []
        self.sample_interval = sample_interval
        self.last_sample_time = 0.0

    def start(self, time: float):
        """
        Mark simulation start.

        Args:
            time: Start time
        """
        self.start_time = time
        self.last_sample_time = time

    def finish(self, time: float):
        """
        Mark simulation end.

        Args:
            time: End time
        """
        self.end_time = time
        self._take_sample(time)

    def record_submission(self, time: float, accepted: bool):
        """Record a message handed to the sender."""
        self.messages_submitted += 1
        if accepted:
            self.messages_accepted += 1
            self.submission_times.append(time)
        else:
            self.window_full_events += 1

    def record_delivery(self, time: float):
        """
        Record an in-order delivery.

        The k-th delivery matches the k-th accepted submission.
        """
        index = self.messages_delivered
        if index < len(self.submission_times):
            self.latency_samples.append(time - self.submission_times[index])
        self.messages_delivered += 1

    def record_window(self, in_flight: int):
        """Record sender window occupancy after an event."""
        self.window_samples.append(in_flight)
        self.max_in_flight = max(self.max_in_flight, in_flight)

    def record_endpoint_statistics(self, sender_stats: dict, receiver_stats: dict,
                                   network_stats: dict):
        """Copy final protocol counters from the endpoints and the network."""
        self.packets_sent = sender_stats['packets_sent']
        self.retransmissions = sender_stats['packets_resent']
        self.acks_received = sender_stats['total_acks_received']
        self.new_acks = sender_stats['new_acks']
        self.packets_received = receiver_stats['packets_received']
        self.packets_lost = network_stats['packets_lost']
        self.packets_corrupted = network_stats['packets_corrupted']

    def _take_sample(self, time: float):
        """Take a periodic sample of metrics."""
        sample = MetricsSample(
            timestamp=time,
            messages_delivered=self.messages_delivered,
            packets_sent=self.packets_sent,
            retransmissions=self.retransmissions,
            in_flight=self.window_samples[-1] if self.window_samples else 0
        )
        self.samples.append(sample)

    def update(self, current_time: float):
        """
        Update metrics with current time.

        Args:
            current_time: Current simulation time
        """
        if current_time - self.last_sample_time >= self.sample_interval:
            self._take_sample(current_time)
            self.last_sample_time = current_time

    def _elapsed(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    def calculate_throughput(self) -> float:
        """
        Calculate throughput.

        Throughput = Delivered Messages / Total Simulation Time

        Returns:
            Messages per time unit
        """
        total_time = self._elapsed()
        if total_time <= 0:
            return 0.0
        return self.messages_delivered / total_time

    def calculate_retransmission_rate(self) -> float:
        """
        Calculate retransmission rate.

        Returns:
            Retransmissions / Original Packets Sent
        """
        if self.packets_sent <= 0:
            return 0.0
        return self.retransmissions / self.packets_sent

    def calculate_ack_efficiency(self) -> float:
        """
        Calculate acknowledgment efficiency.

        Returns:
            Acknowledgments that made progress / Intact acknowledgments received
        """
        if self.acks_received <= 0:
            return 0.0
        return self.new_acks / self.acks_received

    def calculate_delivery_ratio(self) -> float:
        """Delivered messages / accepted messages."""
        if self.messages_accepted <= 0:
            return 0.0
        return self.messages_delivered / self.messages_accepted

    def get_latency_statistics(self) -> Dict[str, float]:
        """
        Get delivery latency statistics.

        Returns:
            Dictionary with min, max, mean, median, stdev latency
        """
        if not self.latency_samples:
            return {
                'min': 0, 'max': 0, 'mean': 0,
                'median': 0, 'stdev': 0, 'samples': 0
            }

        return {
            'min': min(self.latency_samples),
            'max': max(self.latency_samples),
            'mean': statistics.mean(self.latency_samples),
            'median': statistics.median(self.latency_samples),
            'stdev': statistics.stdev(self.latency_samples) if len(self.latency_samples) > 1 else 0,
            'samples': len(self.latency_samples)
        }

    def get_window_statistics(self) -> Dict[str, float]:
        """Get window occupancy statistics."""
        if not self.window_samples:
            return {'mean': 0, 'max': 0}

        return {
            'mean': statistics.mean(self.window_samples),
            'max': self.max_in_flight
        }

    def get_summary(self) -> Dict:
        """
        Get comprehensive metrics summary.

        Returns:
            Dictionary with all metrics
        """
        return {
            # Time
            'total_time': self._elapsed(),
            'start_time': self.start_time,
            'end_time': self.end_time,

            # Primary metric
            'throughput': self.calculate_throughput(),

            # Application counts
            'messages_submitted': self.messages_submitted,
            'messages_accepted': self.messages_accepted,
            'messages_delivered': self.messages_delivered,
            'window_full_events': self.window_full_events,
            'delivery_ratio': self.calculate_delivery_ratio(),

            # Protocol counts
            'packets_sent': self.packets_sent,
            'retransmissions': self.retransmissions,
            'retransmission_rate': self.calculate_retransmission_rate(),
            'acks_received': self.acks_received,
            'new_acks': self.new_acks,
            'ack_efficiency': self.calculate_ack_efficiency(),
            'packets_received': self.packets_received,

            # Channel
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,

            # Latency and window
            'latency': self.get_latency_statistics(),
            'window': self.get_window_statistics()
        }

    def to_csv_row(self) -> Dict:
        """
        Get metrics as a flat dictionary suitable for CSV export.

        Returns:
            Dictionary with flattened metrics
        """
        summary = self.get_summary()
        latency = summary.pop('latency')
        window = summary.pop('window')

        # Flatten nested dicts
        flat = {**summary}
        for key, value in latency.items():
            flat[f'latency_{key}'] = value
        for key, value in window.items():
            flat[f'window_{key}'] = value
        return flat

    def reset(self):
        """Reset all metrics."""
        self.__init__(sample_interval=self.sample_interval)
