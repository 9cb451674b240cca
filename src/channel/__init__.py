"""
Channel package - Per-packet channel models.

Contains implementations for:
- Independent loss/corruption channel
- Gilbert-Elliott burst loss channel model
"""

from .base import Channel, corrupt_packet
from .bernoulli import BernoulliChannel
from .gilbert_elliot import GilbertElliottChannel, ChannelState

__all__ = [
    'Channel',
    'corrupt_packet',
    'BernoulliChannel',
    'GilbertElliottChannel',
    'ChannelState'
]
