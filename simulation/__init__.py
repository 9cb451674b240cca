"""
Simulation package - Event emulator, simulator and batch runner.

Contains:
- Network emulator (event queue, unreliable link, timers)
- Main simulator orchestrator
- Batch runner for parameter sweeps
"""

from .emulator import NetworkEmulator, EventType, SimEvent
from .simulator import Simulator, SimulatorConfig
from .runner import BatchRunner

__all__ = [
    'NetworkEmulator',
    'EventType',
    'SimEvent',
    'Simulator',
    'SimulatorConfig',
    'BatchRunner'
]
