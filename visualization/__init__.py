"""
Visualization package - Plotting tools.

Contains:
- Retransmission heatmap generation
"""

from .heatmap import RetransmissionHeatmap

__all__ = [
    'RetransmissionHeatmap'
]
