"""
Retransmission Timer for Sliding-Window ARQ

This module wraps the environment's single per-endpoint timer so the
sender always knows whether it is running, and so that starting an armed
timer first cancels the previous instance.
"""

from enum import Enum

from .port import Endpoint, NetworkPort


class TimerState(Enum):
    """Timer state enumeration."""
    STOPPED = 0
    RUNNING = 1


class RetransmissionTimer:
    """
    The one logical retransmission timer of a sender.

    Attributes:
        port: Network environment that actually schedules the timer
        endpoint: Endpoint owning the timer
        timeout: Retransmission timeout
        state: Current timer state
    """

    def __init__(self, port: NetworkPort, endpoint: Endpoint, timeout: float):
        """
        Initialize retransmission timer.

        Args:
            port: Network environment providing start_timer/stop_timer
            endpoint: Endpoint owning the timer
            timeout: Fixed timeout duration
        """
        if timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {timeout}")

        self.port = port
        self.endpoint = endpoint
        self.timeout = timeout
        self.state = TimerState.STOPPED

        # Statistics
        self.total_starts = 0
        self.total_expiries = 0

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def start(self):
        """Arm the timer, cancelling a running instance first."""
        if self.is_running:
            self.port.stop_timer(self.endpoint)
        self.port.start_timer(self.endpoint, self.timeout)
        self.state = TimerState.RUNNING
        self.total_starts += 1

    def stop(self):
        """Cancel the timer if it is running."""
        if self.is_running:
            self.port.stop_timer(self.endpoint)
            self.state = TimerState.STOPPED

    def restart(self):
        """Cancel and re-arm the timer."""
        self.stop()
        self.start()

    def expired(self):
        """Record that the environment fired the timer; it is no longer armed."""
        self.state = TimerState.STOPPED
        self.total_expiries += 1

    def reset(self):
        """Cancel the timer and clear statistics."""
        self.stop()
        self.total_starts = 0
        self.total_expiries = 0

    def get_statistics(self) -> dict:
        """Get timer statistics."""
        return {
            'timer_starts': self.total_starts,
            'timer_expiries': self.total_expiries,
            'timer_running': self.is_running
        }
