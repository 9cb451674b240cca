"""
Batch Runner for Parameter Sweep Simulations

This module runs every (loss, corruption, ack policy) combination a
number of times and collects the per-run results into a table.
"""

import os
import time
from typing import Optional, Callable, List, Dict
from dataclasses import dataclass
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing
import sys

import pandas as pd
from tqdm import tqdm

# Add parent to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import (
    LOSS_PROBABILITIES, CORRUPTION_PROBABILITIES, ACK_POLICIES,
    RUNS_PER_CONFIGURATION, RNG_SEED_BASE, NUM_MESSAGES,
    WINDOW_SIZE, SEQUENCE_SPACE_SIZE, OUTPUT_DIR, RESULTS_CSV
)
from simulation.simulator import Simulator, SimulatorConfig
from src.utils.logger import LogLevel


@dataclass
class RunConfig:
    """Configuration for a single simulation run."""
    loss_prob: float
    corrupt_prob: float
    ack_policy: str
    run_id: int
    seed: int
    num_messages: int
    window_size: int = WINDOW_SIZE
    sequence_space_size: int = SEQUENCE_SPACE_SIZE


def run_single_simulation(run_config: RunConfig) -> Dict:
    """
    Run a single simulation with given configuration.

    This function is designed to be called in a separate process.

    Args:
        run_config: Configuration for this run

    Returns:
        Dictionary with results
    """
    row = {
        'loss_prob': run_config.loss_prob,
        'corrupt_prob': run_config.corrupt_prob,
        'ack_policy': run_config.ack_policy,
        'run_id': run_config.run_id,
        'seed': run_config.seed,
    }
    try:
        config = SimulatorConfig(
            window_size=run_config.window_size,
            sequence_space_size=run_config.sequence_space_size,
            ack_policy=run_config.ack_policy,
            loss_prob=run_config.loss_prob,
            corrupt_prob=run_config.corrupt_prob,
            num_messages=run_config.num_messages,
            seed=run_config.seed,
            log_level=LogLevel.ERROR  # Minimal logging for batch runs
        )

        sim = Simulator(config)
        results = sim.run()
        metrics = results['metrics']

        row.update({
            'throughput': metrics['throughput'],
            'messages_accepted': metrics['messages_accepted'],
            'messages_delivered': metrics['messages_delivered'],
            'window_full_events': metrics['window_full_events'],
            'packets_sent': metrics['packets_sent'],
            'retransmissions': metrics['retransmissions'],
            'retransmission_rate': metrics['retransmission_rate'],
            'ack_efficiency': metrics['ack_efficiency'],
            'packets_lost': metrics['packets_lost'],
            'packets_corrupted': metrics['packets_corrupted'],
            'latency_mean': metrics['latency']['mean'],
            'latency_max': metrics['latency']['max'],
            'total_time': results['simulation_time'],
            'data_valid': results['verification']['valid'],
            'complete': results['complete'],
            'invariant_violations': sum(results['invariants'].values()),
            'error': None
        })
    except Exception as e:
        row.update({'retransmissions': 0, 'error': str(e)})
    return row


class BatchRunner:
    """
    Batch Runner for parameter sweep simulations.

    Executes all (loss, corruption, policy) combinations with multiple
    runs each.
    """

    def __init__(
        self,
        loss_probabilities: List[float] = None,
        corruption_probabilities: List[float] = None,
        ack_policies: List[str] = None,
        runs_per_config: int = RUNS_PER_CONFIGURATION,
        num_messages: int = NUM_MESSAGES,
        output_file: str = RESULTS_CSV,
        on_progress: Optional[Callable[[int, int, dict], None]] = None
    ):
        """
        Initialize batch runner.

        Args:
            loss_probabilities: Loss values to sweep (default from config)
            corruption_probabilities: Corruption values to sweep
            ack_policies: Acknowledgment policies to compare
            runs_per_config: Number of runs per combination
            num_messages: Messages generated per run
            output_file: Path to output CSV file
            on_progress: Callback for progress updates
        """
        self.loss_probabilities = loss_probabilities or LOSS_PROBABILITIES
        self.corruption_probabilities = corruption_probabilities or CORRUPTION_PROBABILITIES
        self.ack_policies = ack_policies or ACK_POLICIES
        self.runs_per_config = runs_per_config
        self.num_messages = num_messages
        self.output_file = output_file
        self.on_progress = on_progress

        self.results: List[Dict] = []

        self.total_runs = (len(self.loss_probabilities) *
                           len(self.corruption_probabilities) *
                           len(self.ack_policies) *
                           self.runs_per_config)
        self.completed_runs = 0
        self.start_time = 0.0

    def _generate_run_configs(self) -> List[RunConfig]:
        """Generate all run configurations."""
        configs = []

        for loss in self.loss_probabilities:
            for corrupt in self.corruption_probabilities:
                for policy in self.ack_policies:
                    for run_id in range(self.runs_per_config):
                        # Both policies see the same seed for a given run
                        seed = (RNG_SEED_BASE +
                                int(round(loss * 100)) * 100 +
                                int(round(corrupt * 100)) +
                                run_id * 10000)

                        configs.append(RunConfig(
                            loss_prob=loss,
                            corrupt_prob=corrupt,
                            ack_policy=policy,
                            run_id=run_id,
                            seed=seed,
                            num_messages=self.num_messages
                        ))

        return configs

    def _record(self, result: Dict):
        self.results.append(result)
        self.completed_runs += 1
        if self.on_progress:
            self.on_progress(self.completed_runs, self.total_runs, result)

    def run_sequential(self) -> List[Dict]:
        """
        Run all simulations sequentially.

        Returns:
            List of result dictionaries
        """
        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        print(f"Running {self.total_runs} simulations sequentially...")

        for config in tqdm(configs, desc="Simulations"):
            self._record(run_single_simulation(config))

        total_time = time.time() - self.start_time
        print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def run_parallel(self, max_workers: Optional[int] = None) -> List[Dict]:
        """
        Run simulations in parallel using multiprocessing.

        Args:
            max_workers: Number of parallel workers (default: CPU count)

        Returns:
            List of result dictionaries
        """
        if max_workers is None:
            max_workers = multiprocessing.cpu_count()

        configs = self._generate_run_configs()
        self.results = []
        self.completed_runs = 0
        self.start_time = time.time()

        print(f"Running {self.total_runs} simulations with {max_workers} workers...")

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                executor.submit(run_single_simulation, config): config
                for config in configs
            }
            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Simulations"):
                self._record(future.result())

        total_time = time.time() - self.start_time
        print(f"Completed {self.total_runs} simulations in {total_time:.1f}s")

        return self.results

    def to_dataframe(self) -> pd.DataFrame:
        """Results as a DataFrame, one row per run."""
        return pd.DataFrame(self.results)

    def save_results(self, filepath: Optional[str] = None):
        """
        Save results to CSV file.

        Args:
            filepath: Output file path (default: self.output_file)
        """
        filepath = filepath or self.output_file

        if not self.results:
            print("No results to save!")
            return

        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.to_dataframe().to_csv(filepath, index=False)

        print(f"Results saved to: {filepath}")

    def get_aggregated_results(self) -> pd.DataFrame:
        """
        Get aggregated results by (loss, corruption, policy).

        Returns:
            DataFrame with mean/std of the main metrics per combination
        """
        df = self.to_dataframe()
        if df.empty:
            return df
        if 'error' in df:
            df = df[df['error'].isna()]

        grouped = df.groupby(['loss_prob', 'corrupt_prob', 'ack_policy'])
        aggregated = grouped.agg(
            retx_mean=('retransmissions', 'mean'),
            retx_std=('retransmissions', 'std'),
            throughput_mean=('throughput', 'mean'),
            ack_efficiency_mean=('ack_efficiency', 'mean'),
            latency_mean=('latency_mean', 'mean'),
            complete_runs=('complete', 'sum'),
            runs=('run_id', 'count')
        ).reset_index()
        aggregated['retx_std'] = aggregated['retx_std'].fillna(0.0)
        return aggregated

    def compare_policies(self) -> pd.DataFrame:
        """
        Mean retransmissions per (loss, corruption) with one column
        per acknowledgment policy.
        """
        aggregated = self.get_aggregated_results()
        if aggregated.empty:
            return aggregated
        return aggregated.pivot_table(
            index=['loss_prob', 'corrupt_prob'],
            columns='ack_policy',
            values='retx_mean'
        )


if __name__ == "__main__":
    # Test batch runner with small parameter space
    print("=" * 60)
    print("BATCH RUNNER TEST")
    print("=" * 60)

    runner = BatchRunner(
        loss_probabilities=[0.0, 0.2],
        corruption_probabilities=[0.0, 0.2],
        runs_per_config=2,
        num_messages=30,
        output_file=os.path.join(OUTPUT_DIR, "test_results.csv")
    )

    print(f"\nTest configuration:")
    print(f"  Loss values: {runner.loss_probabilities}")
    print(f"  Corruption values: {runner.corruption_probabilities}")
    print(f"  Policies: {runner.ack_policies}")
    print(f"  Total runs: {runner.total_runs}")

    runner.run_sequential()
    runner.save_results()

    print("\nMean retransmissions:")
    print(runner.compare_policies().to_string())
