"""
Retransmission Heatmap Visualization

This module generates 2D heatmaps of mean retransmissions as a function
of loss and corruption probability, one panel per acknowledgment policy.
"""

import os
import sys
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PLOTS_DIR


class RetransmissionHeatmap:
    """
    Generates heatmaps of Retransmissions(loss, corruption).

    Rows are loss probabilities (largest at the top), columns are
    corruption probabilities.
    """

    def __init__(
        self,
        results: Optional[List[Dict]] = None,
        csv_file: Optional[str] = None,
        metric: str = 'retransmissions'
    ):
        """
        Initialize heatmap generator.

        Args:
            results: List of per-run result dictionaries
            csv_file: Path to CSV file with results
            metric: Result column to plot
        """
        if results:
            self.df = pd.DataFrame(results)
        elif csv_file:
            self.df = pd.read_csv(csv_file)
        else:
            self.df = pd.DataFrame()

        if not self.df.empty and 'error' in self.df:
            self.df = self.df[self.df['error'].isna()]

        self.metric = metric

    @property
    def policies(self) -> List[str]:
        if self.df.empty:
            return []
        return sorted(self.df['ack_policy'].unique())

    def create_matrix(self, policy: str) -> Tuple[np.ndarray, List[float], List[float]]:
        """
        Create matrix of mean metric values for one policy.

        Returns:
            Tuple of (matrix, loss values top-to-bottom, corruption values)
        """
        subset = self.df[self.df['ack_policy'] == policy]
        table = subset.pivot_table(
            index='loss_prob',
            columns='corrupt_prob',
            values=self.metric,
            aggfunc='mean'
        ).sort_index(ascending=False)
        return (table.to_numpy(dtype=float),
                list(table.index), list(table.columns))

    def _draw(self, ax, matrix: np.ndarray, losses: List[float],
              corruptions: List[float], cmap: str, vmax: float,
              show_values: bool):
        im = ax.imshow(matrix, cmap=cmap, aspect='auto', vmin=0, vmax=vmax)

        ax.set_xticks(range(len(corruptions)))
        ax.set_xticklabels([f'{c:g}' for c in corruptions])
        ax.set_yticks(range(len(losses)))
        ax.set_yticklabels([f'{p:g}' for p in losses])

        if show_values:
            for i in range(len(losses)):
                for j in range(len(corruptions)):
                    value = matrix[i, j]
                    if np.isnan(value):
                        continue
                    color = 'white' if value < vmax / 2 else 'black'
                    ax.text(j, i, f'{value:.1f}', ha='center', va='center',
                            color=color, fontsize=8)

        ax.set_xlabel('Corruption Probability', fontsize=12)
        ax.set_ylabel('Loss Probability', fontsize=12)
        return im

    def plot(
        self,
        output_file: Optional[str] = None,
        title: str = "Retransmissions vs Loss and Corruption",
        figsize: Tuple[int, int] = (14, 6),
        cmap: str = "viridis",
        show_values: bool = True
    ) -> str:
        """
        Generate and save the heatmap, one panel per policy.

        Args:
            output_file: Output file path (auto-generated if None)
            title: Figure title
            figsize: Figure size (width, height)
            cmap: Colormap name
            show_values: Show values in cells

        Returns:
            Path to saved figure
        """
        if self.df.empty:
            raise ValueError("No results to plot")

        policies = self.policies
        matrices = {policy: self.create_matrix(policy) for policy in policies}
        # Shared color scale so the panels are comparable
        vmax = max(np.nanmax(m[0]) for m in matrices.values())
        vmax = vmax if vmax > 0 else 1.0

        fig, axes = plt.subplots(1, len(policies), figsize=figsize, squeeze=False)

        im = None
        for ax, policy in zip(axes[0], policies):
            matrix, losses, corruptions = matrices[policy]
            im = self._draw(ax, matrix, losses, corruptions, cmap, vmax, show_values)
            ax.set_title(policy.capitalize(), fontsize=13)

        cbar = fig.colorbar(im, ax=axes[0].tolist())
        cbar.set_label(f'Mean {self.metric.replace("_", " ")}')

        fig.suptitle(title, fontsize=14, fontweight='bold')

        if output_file is None:
            os.makedirs(PLOTS_DIR, exist_ok=True)
            output_file = os.path.join(PLOTS_DIR, f'{self.metric}_heatmap.png')

        plt.savefig(output_file, dpi=150, bbox_inches='tight')
        plt.close(fig)

        print(f"Heatmap saved to: {output_file}")
        return output_file


if __name__ == "__main__":
    print("=" * 60)
    print("HEATMAP GENERATOR TEST")
    print("=" * 60)

    # Generate fake test data
    rng = np.random.default_rng(0)
    test_results = []
    for policy in ("cumulative", "selective"):
        for loss in (0.0, 0.1, 0.2, 0.3):
            for corrupt in (0.0, 0.1, 0.2, 0.3):
                for run in range(3):
                    scale = 400 if policy == "cumulative" else 150
                    test_results.append({
                        'ack_policy': policy,
                        'loss_prob': loss,
                        'corrupt_prob': corrupt,
                        'run_id': run,
                        'retransmissions': max(0.0, scale * (loss + corrupt) + rng.normal(0, 10))
                    })

    print(f"Generated {len(test_results)} test results")

    heatmap = RetransmissionHeatmap(results=test_results)
    output = heatmap.plot(title="Test Retransmission Heatmap")

    print(f"Test complete: {output}")
