"""
Configuration file for the Sliding-Window ARQ Protocol Simulator.
Contains the fixed baseline parameters for the protocol and the emulated link.
"""

import os

# =============================================================================
# PROTOCOL PARAMETERS
# =============================================================================

# Maximum number of buffered, unacknowledged packets
WINDOW_SIZE = 6

# Sequence space size (>= 2 * WINDOW_SIZE for selective acknowledgment)
SEQUENCE_SPACE_SIZE = 12

# Retransmission timeout (simulation time units)
RETRANSMISSION_TIMEOUT = 16.0

# Acknowledgment policy: "selective" or "cumulative"
ACK_POLICY = "selective"

# Fixed message/payload length (bytes)
PAYLOAD_SIZE = 20

# Used to fill header fields that are not being used
NOT_IN_USE = -1

# =============================================================================
# NETWORK EMULATOR PARAMETERS
# =============================================================================

# Packet loss and corruption probabilities
LOSS_PROBABILITY = 0.0
CORRUPTION_PROBABILITY = 0.0

# Average time between messages from the sender's application layer
MESSAGE_INTERVAL = 10.0

# Number of messages the application layer hands to the sender
NUM_MESSAGES = 100

# Link delay: one-way delay = 1 + 9 * U(0, 1), packets never reordered
MIN_LINK_DELAY = 1.0
LINK_DELAY_SPREAD = 9.0

# Corruption model (emulator overwrites fields, never the checksum)
PAYLOAD_CORRUPTION_SHARE = 0.75
SEQ_CORRUPTION_SHARE = 0.875
CORRUPTED_FIELD_VALUE = 999999

# =============================================================================
# GILBERT-ELLIOTT BURST CHANNEL PARAMETERS
# =============================================================================

# Per-packet loss probability in each state
GOOD_STATE_LOSS = 0.01
BAD_STATE_LOSS = 0.5

# State transition probabilities (stepped once per packet)
P_GOOD_TO_BAD = 0.05
P_BAD_TO_GOOD = 0.3

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

LOSS_PROBABILITIES = [0.0, 0.1, 0.2, 0.3]
CORRUPTION_PROBABILITIES = [0.0, 0.1, 0.2, 0.3]
ACK_POLICIES = ["cumulative", "selective"]

# Number of simulation runs per (loss, corruption, policy) triple
RUNS_PER_CONFIGURATION = 5

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Default RNG seed base (actual seed = base + run_id)
RNG_SEED_BASE = 42

# Simulation time limit - failsafe
MAX_SIMULATION_TIME = 1_000_000.0

# Logging verbosity levels
LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3

DEFAULT_LOG_LEVEL = LOG_LEVEL_WARNING

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

# Results CSV filename
RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS
# =============================================================================

def minimum_sequence_space(window_size, policy=ACK_POLICY):
    """Smallest valid sequence space for a window size and ack policy."""
    if policy == "selective":
        return 2 * window_size
    return window_size + 1


def expected_round_trip():
    """Mean round-trip time of the emulated link (two mean one-way delays)."""
    return 2 * (MIN_LINK_DELAY + LINK_DELAY_SPREAD / 2)


# Print configuration summary
if __name__ == "__main__":
    print("=" * 60)
    print("SLIDING-WINDOW ARQ SIMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nProtocol:")
    print(f"  Window Size: {WINDOW_SIZE}")
    print(f"  Sequence Space: {SEQUENCE_SPACE_SIZE}")
    print(f"  Retransmission Timeout: {RETRANSMISSION_TIMEOUT}")
    print(f"  Ack Policy: {ACK_POLICY}")
    print(f"  Payload Size: {PAYLOAD_SIZE} bytes")

    print(f"\nEmulated Link:")
    print(f"  Loss Probability: {LOSS_PROBABILITY}")
    print(f"  Corruption Probability: {CORRUPTION_PROBABILITY}")
    print(f"  Message Interval: {MESSAGE_INTERVAL}")
    print(f"  Mean RTT: {expected_round_trip():.1f}")
