"""
Boundary between the protocol engines and the network environment.

The engines never schedule anything themselves; they hand packets,
deliveries and timer requests to an injected NetworkPort.
"""

from enum import Enum
from typing import Protocol


class Endpoint(Enum):
    """Endpoint identifiers (A sends data, B only acknowledges)."""
    A = 0
    B = 1


class NetworkPort(Protocol):
    """Services the network environment offers to an endpoint."""

    def to_network(self, endpoint: Endpoint, packet) -> None:
        """Hand a packet to the unreliable channel. No delivery guarantee."""

    def to_application(self, endpoint: Endpoint, payload: bytes) -> None:
        """Hand an in-order payload up to the application layer."""

    def start_timer(self, endpoint: Endpoint, duration: float) -> None:
        """Arm the endpoint's single timer; it fires once per arming."""

    def stop_timer(self, endpoint: Endpoint) -> None:
        """Cancel the endpoint's timer immediately."""
