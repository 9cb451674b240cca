"""
Independent (memoryless) loss and corruption channel.
"""

from typing import Optional

from config import LOSS_PROBABILITY, CORRUPTION_PROBABILITY
from .base import Channel


class BernoulliChannel(Channel):
    """
    Each packet is lost with probability loss_prob and, if it survives,
    corrupted with probability corrupt_prob, independently of every other
    packet.
    """

    def __init__(
        self,
        loss_prob: float = LOSS_PROBABILITY,
        corrupt_prob: float = CORRUPTION_PROBABILITY,
        seed: Optional[int] = None
    ):
        for name, value in (('loss_prob', loss_prob), ('corrupt_prob', corrupt_prob)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        super().__init__(seed)
        self.loss_prob = loss_prob
        self.corrupt_prob = corrupt_prob

    def _is_lost(self) -> bool:
        return self.rng.random() < self.loss_prob

    def _is_corrupted(self) -> bool:
        return self.rng.random() < self.corrupt_prob

    def get_statistics(self) -> dict:
        stats = super().get_statistics()
        stats['loss_prob'] = self.loss_prob
        stats['corrupt_prob'] = self.corrupt_prob
        return stats
