"""
Simulation Logger

This module provides logging utilities for the simulation,
with configurable verbosity levels and simulation-time stamps.
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from config import DEFAULT_LOG_LEVEL


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


class SimulationLogger:
    """
    Logger for simulation events.

    Provides structured logging with timestamps and categories.

    Attributes:
        name: Logger name
        level: Minimum log level
        file: Optional file for logging
    """

    # Color codes for terminal output
    COLORS = {
        LogLevel.DEBUG: '\033[36m',     # Cyan
        LogLevel.INFO: '\033[32m',      # Green
        LogLevel.WARNING: '\033[33m',   # Yellow
        LogLevel.ERROR: '\033[31m',     # Red
        LogLevel.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Simulator",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True,
        include_timestamp: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file path for logging
            use_colors: Use ANSI colors in output
            include_timestamp: Include timestamps in log messages
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

        self.file: Optional[TextIO] = None
        if log_file:
            directory = os.path.dirname(log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            self.file = open(log_file, 'w')

        # Simulation time tracking
        self.sim_time: Optional[float] = None

    def set_sim_time(self, time: float):
        """Set current simulation time for log messages."""
        self.sim_time = time

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ) -> str:
        """Format a log message."""
        parts = []

        if self.include_timestamp:
            if self.sim_time is not None:
                parts.append(f"[{self.sim_time:10.4f}]")
            else:
                parts.append(f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]")

        level_str = level.name.ljust(8)
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        parts.append(level_str)

        parts.append(f"[{self.name}]")

        if category:
            parts.append(f"[{category}]")

        parts.append(message)

        return " ".join(parts)

    def _log(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ):
        """Log a message."""
        if level < self.level:
            return

        formatted = self._format_message(level, message, category)

        print(formatted)

        if self.file:
            # Strip color codes for file
            clean = formatted
            for color in self.COLORS.values():
                clean = clean.replace(color, '')
            clean = clean.replace(self.RESET, '')
            self.file.write(clean + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, category)

    def error(self, message: str, category: Optional[str] = None):
        """Log error message."""
        self._log(LogLevel.ERROR, message, category)

    # Convenience methods for protocol events
    def packet_sent(self, endpoint: str, seq_num: int):
        """Log data packet sent event."""
        self.debug(f"{endpoint}: sending packet {seq_num} to network", "TX")

    def packet_received(self, endpoint: str, seq_num: int, valid: bool):
        """Log packet received event."""
        status = "OK" if valid else "CORRUPTED"
        self.debug(f"{endpoint}: packet {seq_num} received, {status}", "RX")

    def ack_sent(self, endpoint: str, ack_num: int):
        """Log ACK sent event."""
        self.debug(f"{endpoint}: ACK {ack_num} sent", "ACK")

    def ack_received(self, endpoint: str, ack_num: int, new: bool):
        """Log ACK received event."""
        status = "new" if new else "duplicate"
        self.debug(f"{endpoint}: ACK {ack_num} received ({status})", "ACK")

    def timeout(self, endpoint: str, base: int):
        """Log timeout event."""
        self.info(f"{endpoint}: timeout, oldest unacknowledged packet {base}", "TIMEOUT")

    def retransmit(self, endpoint: str, seq_num: int):
        """Log retransmission event."""
        self.info(f"{endpoint}: resending packet {seq_num}", "RETX")

    def window_update(self, endpoint: str, base: int, next_seq: int, count: int):
        """Log window update."""
        self.debug(f"{endpoint}: window base={base}, next={next_seq}, in_flight={count}", "WINDOW")

    def delivered(self, endpoint: str, seq_num: int):
        """Log in-order delivery to the application layer."""
        self.debug(f"{endpoint}: delivering packet {seq_num} to application", "DELIVER")

    def simulation_start(self, params: dict):
        """Log simulation start."""
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, summary: dict):
        """Log simulation end."""
        self.info(
            f"Simulation ended: delivered={summary.get('messages_delivered', 0)}, "
            f"retransmissions={summary.get('retransmissions', 0)}",
            "SIM"
        )

    def close(self):
        """Close log file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __del__(self):
        """Cleanup on deletion."""
        self.close()


# Shared default logger for components created without one
_global_logger: Optional[SimulationLogger] = None


def get_logger() -> SimulationLogger:
    """Get global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = SimulationLogger()
    return _global_logger

