#!/usr/bin/env python3
"""
Sliding-Window ARQ Simulator - Main Entry Point

This is the main CLI interface for the ARQ protocol simulator.
It provides options for:
- Single simulation runs (cumulative or selective acknowledgments)
- Parameter sweep over loss and corruption probabilities
- Visualization generation

Usage:
    python main.py --single --policy selective --loss 0.2 --corrupt 0.2
    python main.py --sweep --runs 5
    python main.py --visualize --csv results.csv
"""

import argparse
import os
import sys
import time

# Ensure project root is in path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    WINDOW_SIZE, SEQUENCE_SPACE_SIZE, RETRANSMISSION_TIMEOUT, ACK_POLICY,
    LOSS_PROBABILITY, CORRUPTION_PROBABILITY, MESSAGE_INTERVAL, NUM_MESSAGES,
    LOSS_PROBABILITIES, CORRUPTION_PROBABILITIES, ACK_POLICIES,
    RUNS_PER_CONFIGURATION, RNG_SEED_BASE, RESULTS_CSV, PLOTS_DIR
)


def run_single_simulation(args):
    """Run a single simulation with specified parameters."""
    from simulation.simulator import Simulator, SimulatorConfig
    from src.utils.logger import LogLevel

    if args.trace:
        log_level = LogLevel.DEBUG
    elif args.verbose:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.WARNING

    config = SimulatorConfig(
        window_size=args.window,
        sequence_space_size=args.seq_space,
        timeout=args.timeout,
        ack_policy=args.policy,
        channel=args.channel,
        loss_prob=args.loss,
        corrupt_prob=args.corrupt,
        num_messages=args.messages,
        message_interval=args.interval,
        seed=args.seed,
        log_level=log_level,
        log_file=args.log_file
    )

    print("=" * 60)
    print("SLIDING-WINDOW ARQ SIMULATOR")
    print("=" * 60)
    print(f"\nConfiguration:")
    print(f"  Ack policy: {config.ack_policy}")
    print(f"  Window size: {config.window_size}")
    print(f"  Sequence space: {config.sequence_space_size}")
    print(f"  Timeout: {config.timeout}")
    print(f"  Channel: {config.channel}")
    if config.channel == "gilbert":
        print(f"  Loss probability: {config.loss_prob} (steady-state average, bursty)")
    else:
        print(f"  Loss probability: {config.loss_prob}")
    print(f"  Corruption probability: {config.corrupt_prob}")
    print(f"  Messages: {config.num_messages} (mean interval {config.message_interval})")
    print(f"  Seed: {config.seed}")

    print("\nRunning simulation...")

    sim = Simulator(config)
    start_time = time.time()
    results = sim.run()
    elapsed = time.time() - start_time

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)

    print(f"\nTransfer Status:")
    print(f"  Complete: {results['complete']}")
    print(f"  Delivery Valid: {results['verification']['valid']}")
    print(f"  Simulation Time: {results['simulation_time']:.2f}")
    print(f"  Real Time: {elapsed:.2f} s")

    metrics = results['metrics']
    print(f"\nMessages:")
    print(f"  Accepted: {metrics['messages_accepted']}")
    print(f"  Refused (window full): {metrics['window_full_events']}")
    print(f"  Delivered: {metrics['messages_delivered']}")
    print(f"  Throughput: {metrics['throughput']:.4f} msg/time unit")

    print(f"\nPacket Statistics:")
    print(f"  Packets Sent: {metrics['packets_sent']}")
    print(f"  Retransmissions: {metrics['retransmissions']}")
    print(f"  Acks Received: {metrics['acks_received']} ({metrics['new_acks']} new)")
    print(f"  Lost: {metrics['packets_lost']}")
    print(f"  Corrupted: {metrics['packets_corrupted']}")

    if metrics['latency']['samples'] > 0:
        print(f"\nDelivery Latency:")
        print(f"  Mean: {metrics['latency']['mean']:.2f}")
        print(f"  Min: {metrics['latency']['min']:.2f}")
        print(f"  Max: {metrics['latency']['max']:.2f}")

    invariants = results['invariants']
    if any(invariants.values()):
        print(f"\nInvariant violations: {invariants}")

    return results


def run_parameter_sweep(args):
    """Run full parameter sweep."""
    from simulation.runner import BatchRunner

    print("=" * 60)
    print("PARAMETER SWEEP")
    print("=" * 60)

    if args.quick:
        losses = [0.0, 0.2]
        corruptions = [0.0, 0.2]
        runs = 2
        messages = 30
    else:
        losses = LOSS_PROBABILITIES
        corruptions = CORRUPTION_PROBABILITIES
        runs = args.runs
        messages = args.messages

    runner = BatchRunner(
        loss_probabilities=losses,
        corruption_probabilities=corruptions,
        ack_policies=ACK_POLICIES,
        runs_per_config=runs,
        num_messages=messages,
        output_file=args.output or RESULTS_CSV
    )

    print(f"\nConfiguration:")
    print(f"  Loss probabilities: {losses}")
    print(f"  Corruption probabilities: {corruptions}")
    print(f"  Policies: {ACK_POLICIES}")
    print(f"  Runs per config: {runs}")
    print(f"  Total simulations: {runner.total_runs}")
    print(f"  Output: {args.output or RESULTS_CSV}")

    print("\nStarting parameter sweep...")

    if args.parallel:
        results = runner.run_parallel(max_workers=args.workers)
    else:
        results = runner.run_sequential()

    runner.save_results()

    print("\n" + "=" * 60)
    print("MEAN RETRANSMISSIONS")
    print("=" * 60)
    print(runner.compare_policies().to_string(float_format=lambda v: f'{v:.1f}'))

    return results


def generate_visualizations(args):
    """Generate visualization plots."""
    print("=" * 60)
    print("GENERATING VISUALIZATIONS")
    print("=" * 60)

    csv_file = args.csv or RESULTS_CSV

    if not os.path.exists(csv_file):
        print(f"Error: Results file not found: {csv_file}")
        print("Run a parameter sweep first: python main.py --sweep")
        return

    os.makedirs(PLOTS_DIR, exist_ok=True)

    from visualization.heatmap import RetransmissionHeatmap

    print("\nGenerating retransmission heatmap...")
    heatmap = RetransmissionHeatmap(csv_file=csv_file)
    retx_file = heatmap.plot(
        output_file=os.path.join(PLOTS_DIR, 'retransmissions_heatmap.png')
    )

    print("Generating throughput heatmap...")
    throughput = RetransmissionHeatmap(csv_file=csv_file, metric='throughput')
    throughput_file = throughput.plot(
        output_file=os.path.join(PLOTS_DIR, 'throughput_heatmap.png'),
        title="Throughput vs Loss and Corruption"
    )

    print("\n" + "=" * 60)
    print("VISUALIZATIONS GENERATED")
    print("=" * 60)
    print(f"  Retransmissions: {retx_file}")
    print(f"  Throughput: {throughput_file}")


def show_config(args):
    """Display current configuration."""
    print("=" * 60)
    print("SIMULATOR CONFIGURATION")
    print("=" * 60)

    import config as cfg

    print(f"\nProtocol:")
    print(f"  Window Size: {cfg.WINDOW_SIZE}")
    print(f"  Sequence Space: {cfg.SEQUENCE_SPACE_SIZE}")
    print(f"  Retransmission Timeout: {cfg.RETRANSMISSION_TIMEOUT}")
    print(f"  Ack Policy: {cfg.ACK_POLICY}")
    print(f"  Payload Size: {cfg.PAYLOAD_SIZE} bytes")

    print(f"\nMinimum sequence space for W={cfg.WINDOW_SIZE}:")
    for policy in cfg.ACK_POLICIES:
        print(f"  {policy}: {cfg.minimum_sequence_space(cfg.WINDOW_SIZE, policy)}")

    print(f"\nLink:")
    print(f"  One-way delay: {cfg.MIN_LINK_DELAY} to "
          f"{cfg.MIN_LINK_DELAY + cfg.LINK_DELAY_SPREAD}")
    print(f"  Expected round trip: {cfg.expected_round_trip()}")
    print(f"  Message interval (mean): {cfg.MESSAGE_INTERVAL}")

    print(f"\nGilbert-Elliott Channel:")
    print(f"  Good State Loss: {cfg.GOOD_STATE_LOSS}")
    print(f"  Bad State Loss: {cfg.BAD_STATE_LOSS}")
    print(f"  P(Good→Bad): {cfg.P_GOOD_TO_BAD}")
    print(f"  P(Bad→Good): {cfg.P_BAD_TO_GOOD}")

    print(f"\nParameter Sweep:")
    print(f"  Loss: {cfg.LOSS_PROBABILITIES}")
    print(f"  Corruption: {cfg.CORRUPTION_PROBABILITIES}")
    print(f"  Policies: {cfg.ACK_POLICIES}")
    print(f"  Runs per config: {cfg.RUNS_PER_CONFIGURATION}")
    total = (len(cfg.LOSS_PROBABILITIES) * len(cfg.CORRUPTION_PROBABILITIES) *
             len(cfg.ACK_POLICIES) * cfg.RUNS_PER_CONFIGURATION)
    print(f"  Total simulations: {total}")


def main():
    parser = argparse.ArgumentParser(
        description="Sliding-Window ARQ Protocol Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Single simulation:
    python main.py --single --policy cumulative --loss 0.1 --corrupt 0.1

  Packet-level trace:
    python main.py --single --messages 10 --loss 0.2 --trace

  Quick parameter sweep (for testing):
    python main.py --sweep --quick

  Parallel parameter sweep:
    python main.py --sweep --parallel --workers 4

  Generate visualizations:
    python main.py --visualize

  Show configuration:
    python main.py --config
        """
    )

    # Mode selection
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument('--single', action='store_true',
                      help='Run single simulation')
    mode.add_argument('--sweep', action='store_true',
                      help='Run parameter sweep')
    mode.add_argument('--visualize', action='store_true',
                      help='Generate visualizations')
    mode.add_argument('--config', action='store_true',
                      help='Show configuration')

    # Protocol options
    parser.add_argument('--policy', choices=ACK_POLICIES, default=ACK_POLICY,
                        help=f'Acknowledgment policy (default: {ACK_POLICY})')
    parser.add_argument('--window', '-w', type=int, default=WINDOW_SIZE,
                        help=f'Window size (default: {WINDOW_SIZE})')
    parser.add_argument('--seq-space', type=int, default=SEQUENCE_SPACE_SIZE,
                        help=f'Sequence space size (default: {SEQUENCE_SPACE_SIZE})')
    parser.add_argument('--timeout', type=float, default=RETRANSMISSION_TIMEOUT,
                        help=f'Retransmission timeout (default: {RETRANSMISSION_TIMEOUT})')

    # Link options
    parser.add_argument('--channel', choices=['bernoulli', 'gilbert'], default='bernoulli',
                        help='Channel model (default: bernoulli)')
    parser.add_argument('--loss', type=float, default=LOSS_PROBABILITY,
                        help=f'Loss probability, the average for --channel gilbert (default: {LOSS_PROBABILITY})')
    parser.add_argument('--corrupt', type=float, default=CORRUPTION_PROBABILITY,
                        help=f'Corruption probability (default: {CORRUPTION_PROBABILITY})')

    # Application options
    parser.add_argument('--messages', '-m', type=int, default=NUM_MESSAGES,
                        help=f'Number of messages (default: {NUM_MESSAGES})')
    parser.add_argument('--interval', type=float, default=MESSAGE_INTERVAL,
                        help=f'Mean time between messages (default: {MESSAGE_INTERVAL})')
    parser.add_argument('--seed', '-s', type=int, default=RNG_SEED_BASE,
                        help=f'Random seed (default: {RNG_SEED_BASE})')

    # Parameter sweep options
    parser.add_argument('--runs', '-r', type=int,
                        default=RUNS_PER_CONFIGURATION,
                        help=f'Runs per configuration (default: {RUNS_PER_CONFIGURATION})')
    parser.add_argument('--parallel', action='store_true',
                        help='Run simulations in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of parallel workers')
    parser.add_argument('--quick', action='store_true',
                        help='Quick test with reduced parameters')

    # Output options
    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--csv', type=str,
                        help='CSV file for visualization')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')
    parser.add_argument('--trace', action='store_true',
                        help='Per-packet trace output')
    parser.add_argument('--log-file', type=str,
                        help='Also write the log to this file')

    args = parser.parse_args()

    if args.single:
        run_single_simulation(args)
    elif args.sweep:
        run_parameter_sweep(args)
    elif args.visualize:
        generate_visualizations(args)
    elif args.config:
        show_config(args)


if __name__ == "__main__":
    main()
