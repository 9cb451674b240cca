"""
Gilbert-Elliott Burst Loss Channel Model

This module implements the two-state Markov chain model for simulating
bursty packet loss. The channel alternates between a "Good" state (low
loss) and a "Bad" state (high loss), stepping once per packet.
"""

import numpy as np
from enum import Enum
from typing import Tuple, List, Optional

from config import (
    GOOD_STATE_LOSS, BAD_STATE_LOSS,
    P_GOOD_TO_BAD, P_BAD_TO_GOOD,
    CORRUPTION_PROBABILITY
)
from .base import Channel


class ChannelState(Enum):
    """Channel state enumeration."""
    GOOD = 0
    BAD = 1


class GilbertElliottChannel(Channel):
    """
    Gilbert-Elliott two-state Markov channel model.

    The channel transitions between Good and Bad states with specified
    probabilities. Each state has its own packet loss probability;
    surviving packets are corrupted with a fixed probability.

    Attributes:
        pg: Packet loss probability in Good state
        pb: Packet loss probability in Bad state
        p_gb: Transition probability from Good to Bad
        p_bg: Transition probability from Bad to Good
        corrupt_prob: Corruption probability of surviving packets
        state: Current channel state
    """

    def __init__(
        self,
        pg: float = GOOD_STATE_LOSS,
        pb: float = BAD_STATE_LOSS,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        corrupt_prob: float = CORRUPTION_PROBABILITY,
        seed: Optional[int] = None
    ):
        """
        Initialize the Gilbert-Elliott channel.

        Args:
            pg: Loss probability in Good state (default from config)
            pb: Loss probability in Bad state (default from config)
            p_gb: Probability of transitioning from Good to Bad
            p_bg: Probability of transitioning from Bad to Good
            corrupt_prob: Probability a surviving packet is corrupted
            seed: Random seed for reproducibility
        """
        if p_gb + p_bg <= 0:
            raise ValueError("At least one transition probability must be positive")

        super().__init__(seed)
        self.pg = pg
        self.pb = pb
        self.p_gb = p_gb
        self.p_bg = p_bg
        self.corrupt_prob = corrupt_prob

        # Start in steady-state (probabilistically)
        self._initialize_state()

        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    @classmethod
    def from_average_loss(
        cls,
        loss_prob: float,
        corrupt_prob: float = CORRUPTION_PROBABILITY,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        seed: Optional[int] = None
    ) -> 'GilbertElliottChannel':
        """
        Build a channel whose steady-state average loss equals loss_prob.

        The default per-state losses are scaled together, keeping their
        Bad/Good ratio. Once the Bad state would exceed certain loss, it is
        pinned at 1.0 and the Good state absorbs the rest.

        Raises:
            ValueError: if loss_prob is outside [0, 1]
        """
        if not 0.0 <= loss_prob <= 1.0:
            raise ValueError(f"Loss probability must be in [0, 1], got {loss_prob}")
        if p_gb + p_bg <= 0:
            raise ValueError("At least one transition probability must be positive")

        pi_bad = p_gb / (p_gb + p_bg)
        pi_good = 1.0 - pi_bad
        baseline = pi_good * GOOD_STATE_LOSS + pi_bad * BAD_STATE_LOSS

        pb = BAD_STATE_LOSS * loss_prob / baseline
        if pb <= 1.0:
            pg = GOOD_STATE_LOSS * loss_prob / baseline
        else:
            pb = 1.0
            pg = (loss_prob - pi_bad) / pi_good

        return cls(pg=pg, pb=pb, p_gb=p_gb, p_bg=p_bg,
                   corrupt_prob=corrupt_prob, seed=seed)

    def _initialize_state(self):
        """Initialize channel state based on steady-state probabilities."""
        pi_good, _ = self.get_steady_state_probabilities()
        if self.rng.random() < pi_good:
            self.state = ChannelState.GOOD
        else:
            self.state = ChannelState.BAD

    def get_steady_state_probabilities(self) -> Tuple[float, float]:
        """
        Calculate steady-state probabilities for Good and Bad states.

        Returns:
            Tuple of (π_Good, π_Bad)
        """
        sum_transitions = self.p_gb + self.p_bg
        pi_good = self.p_bg / sum_transitions
        pi_bad = self.p_gb / sum_transitions
        return pi_good, pi_bad

    def get_average_loss(self) -> float:
        """Average loss probability under the steady-state distribution."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return pi_good * self.pg + pi_bad * self.pb

    def get_current_loss(self) -> float:
        """Get the loss probability of the current channel state."""
        return self.pg if self.state == ChannelState.GOOD else self.pb

    def transition_state(self):
        """Perform one state transition based on transition probabilities."""
        if self.state == ChannelState.GOOD:
            self.time_in_good += 1
            if self.rng.random() < self.p_gb:
                self.state = ChannelState.BAD
                self.state_transitions += 1
        else:
            self.time_in_bad += 1
            if self.rng.random() < self.p_bg:
                self.state = ChannelState.GOOD
                self.state_transitions += 1

    def _is_lost(self) -> bool:
        return self.rng.random() < self.get_current_loss()

    def _is_corrupted(self) -> bool:
        return self.rng.random() < self.corrupt_prob

    def _advance(self):
        self.transition_state()

    def get_statistics(self) -> dict:
        """Get channel statistics, including time spent in each state."""
        stats = super().get_statistics()
        total_time = self.time_in_good + self.time_in_bad
        stats.update({
            'state_transitions': self.state_transitions,
            'time_in_good': self.time_in_good,
            'time_in_bad': self.time_in_bad,
            'fraction_in_good': (self.time_in_good / total_time
                                 if total_time > 0 else 0),
            'theoretical_avg_loss': self.get_average_loss()
        })
        return stats

    def reset_statistics(self):
        """Reset all statistics counters."""
        super().reset_statistics()
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def reset(self, seed: Optional[int] = None):
        """Reset the channel, redrawing the initial state."""
        super().reset(seed)
        self._initialize_state()


def analyze_burst_lengths(loss_pattern: List[bool]) -> dict:
    """
    Analyze burst lengths in a loss pattern.

    Args:
        loss_pattern: List of per-packet loss indicators

    Returns:
        Dictionary with burst statistics
    """
    bursts = []
    current_burst = 0

    for lost in loss_pattern:
        if lost:
            current_burst += 1
        elif current_burst > 0:
            bursts.append(current_burst)
            current_burst = 0

    if current_burst > 0:
        bursts.append(current_burst)

    if bursts:
        return {
            'avg_burst_length': float(np.mean(bursts)),
            'max_burst_length': max(bursts),
            'num_bursts': len(bursts),
            'burst_lengths': bursts
        }
    return {'avg_burst_length': 0, 'max_burst_length': 0, 'num_bursts': 0}
