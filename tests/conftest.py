"""
Shared fixtures for the protocol engine tests.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class FakePort:
    """In-memory NetworkPort that records everything the engines do."""

    def __init__(self):
        self.sent = []
        self.delivered = []
        self.timer_running = False
        self.timer_starts = 0
        self.timer_stops = 0
        self.timer_duration = None

    def to_network(self, endpoint, packet):
        self.sent.append(packet)

    def to_application(self, endpoint, payload):
        self.delivered.append(payload)

    def start_timer(self, endpoint, duration):
        assert not self.timer_running, "timer started while already running"
        self.timer_running = True
        self.timer_starts += 1
        self.timer_duration = duration

    def stop_timer(self, endpoint):
        assert self.timer_running, "timer stopped while not running"
        self.timer_running = False
        self.timer_stops += 1

    def fire_timer(self, sender):
        """Deliver a timer interrupt the way the emulator does."""
        assert self.timer_running
        self.timer_running = False
        sender.on_timer_expiry()

    def clear(self):
        self.sent.clear()
        self.delivered.clear()


@pytest.fixture
def port():
    return FakePort()


@pytest.fixture
def peer_port():
    """Separate port for the far endpoint when both engines run in one test."""
    return FakePort()
