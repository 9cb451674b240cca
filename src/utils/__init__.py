"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Metrics calculation (throughput, retransmissions, latency)
- Logging utilities
"""

from .metrics import MetricsCollector
from .logger import SimulationLogger, LogLevel, get_logger

__all__ = [
    'MetricsCollector',
    'SimulationLogger',
    'LogLevel',
    'get_logger'
]
