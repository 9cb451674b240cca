"""
Unit tests for the sliding-window sender.
"""

import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PAYLOAD_SIZE
from src.arq.packet import Packet
from src.arq.policy import ConfigurationError
from src.arq.port import Endpoint
from src.arq.sender import Sender
from src.arq.timer import RetransmissionTimer


def msg(letter: str) -> bytes:
    return letter.encode() * PAYLOAD_SIZE


def ack(num: int) -> Packet:
    return Packet.create_ack_packet(num)


def make_sender(port, policy="selective", window=6, space=12):
    return Sender(port, window_size=window, sequence_space_size=space,
                  timeout=16.0, policy=policy)


class TestSubmission:
    """Tests for window admission."""

    def test_packets_numbered_in_order(self, port):
        sender = make_sender(port)

        for letter in "abc":
            assert sender.submit(msg(letter))

        assert [p.seq_num for p in port.sent] == [0, 1, 2]
        assert [p.payload for p in port.sent] == [msg("a"), msg("b"), msg("c")]
        assert sender.packets_sent == 3
        assert sender.in_flight == 3

    def test_window_full_drops_message(self, port):
        sender = make_sender(port, window=3, space=6)

        for letter in "abc":
            assert sender.submit(msg(letter))
        assert not sender.submit(msg("d"))

        assert sender.window_full == 1
        assert sender.packets_sent == 3
        assert len(port.sent) == 3
        assert sender.in_flight == 3

    def test_timer_started_by_first_packet_only(self, port):
        sender = make_sender(port)

        sender.submit(msg("a"))
        assert port.timer_running
        assert port.timer_duration == 16.0

        sender.submit(msg("b"))
        sender.submit(msg("c"))
        assert port.timer_starts == 1

    def test_invalid_sequence_space(self, port):
        with pytest.raises(ConfigurationError):
            make_sender(port, policy="selective", window=6, space=11)
        with pytest.raises(ConfigurationError):
            make_sender(port, policy="cumulative", window=3, space=3)


class TestSelectiveAcks:
    """Tests for the selective acknowledgment policy."""

    def test_out_of_order_acks(self, port):
        """Base reaches 3 only once 0, 1 and 2 are all acknowledged."""
        sender = make_sender(port)
        for letter in "abcdef":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(2))
        assert sender.window.base == 0
        assert sender.in_flight == 6

        sender.on_packet_arrival(ack(0))
        assert sender.window.base == 1

        sender.on_packet_arrival(ack(1))
        assert sender.window.base == 3
        assert sender.in_flight == 3
        assert sender.new_acks == 3

    def test_non_base_ack_keeps_timer(self, port):
        sender = make_sender(port)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(1))

        assert port.timer_starts == 1
        assert port.timer_stops == 0

    def test_base_ack_restarts_timer(self, port):
        sender = make_sender(port)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(0))

        assert port.timer_running
        assert port.timer_starts == 2
        assert port.timer_stops == 1

    def test_timer_stops_when_window_empties(self, port):
        sender = make_sender(port)
        for letter in "ab":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(1))
        sender.on_packet_arrival(ack(0))

        assert sender.in_flight == 0
        assert not port.timer_running
        assert not sender.timer.is_running

    def test_timeout_resends_oldest_only(self, port):
        sender = make_sender(port)
        for letter in "abcd":
            sender.submit(msg(letter))
        sender.on_packet_arrival(ack(2))
        port.clear()

        port.fire_timer(sender)

        assert [p.seq_num for p in port.sent] == [0]
        assert sender.packets_resent == 1
        assert port.timer_running


class TestCumulativeAcks:
    """Tests for the cumulative acknowledgment policy."""

    def test_base_held_until_covering_ack(self, port):
        """Ack 7 (nothing delivered yet) leaves base at 0; the timeout resends 0, 1 and 2."""
        sender = make_sender(port, policy="cumulative", window=3, space=8)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(7))
        assert sender.window.base == 0
        assert sender.new_acks == 0

        port.clear()
        port.fire_timer(sender)

        assert [p.seq_num for p in port.sent] == [0, 1, 2]
        assert sender.packets_resent == 3
        assert port.timer_running

    def test_ack_covers_earlier_packets(self, port):
        """Ack 1 stands for 0 as well, even though the ack for 0 was lost."""
        sender = make_sender(port, policy="cumulative", window=3, space=8)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(1))

        assert sender.window.base == 2
        assert sender.in_flight == 1
        assert sender.new_acks == 1
        assert port.timer_running

        port.clear()
        port.fire_timer(sender)
        assert [p.seq_num for p in port.sent] == [2]

    def test_stale_ack_after_slide_ignored(self, port):
        sender = make_sender(port, policy="cumulative", window=3, space=8)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(1))
        sender.on_packet_arrival(ack(0))

        assert sender.window.base == 2
        assert sender.new_acks == 1
        assert sender.total_acks_received == 2

    def test_timer_restarted_per_slide(self, port):
        sender = make_sender(port, policy="cumulative", window=3, space=8)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(1))

        # Initial start plus one restart for each of the two slides
        assert port.timer_starts == 3
        assert port.timer_running

    def test_covering_ack_empties_window(self, port):
        sender = make_sender(port, policy="cumulative", window=3, space=8)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(2))

        assert sender.in_flight == 0
        assert not port.timer_running

    def test_window_reopens_after_slide(self, port):
        sender = make_sender(port, policy="cumulative", window=3, space=8)
        for letter in "abc":
            sender.submit(msg(letter))
        assert not sender.submit(msg("d"))

        sender.on_packet_arrival(ack(0))

        assert sender.submit(msg("d"))
        assert port.sent[-1].seq_num == 3

    def test_smallest_sequence_space_accepted(self, port):
        sender = make_sender(port, policy="cumulative", window=3, space=4)

        for letter in "abc":
            assert sender.submit(msg(letter))
        sender.on_packet_arrival(ack(2))

        assert sender.submit(msg("d"))
        assert sender.submit(msg("e"))
        assert [p.seq_num for p in port.sent] == [0, 1, 2, 3, 0]

        # An old ack for 2 no longer names anything in the window [3, 0]
        sender.on_packet_arrival(ack(2))
        assert sender.window.base == 3
        assert sender.in_flight == 2


class TestIgnoredAcks:
    """Corrupted, duplicate and stale acknowledgments change nothing."""

    @pytest.mark.parametrize("policy", ["cumulative", "selective"])
    def test_duplicate_ack(self, port, policy):
        sender = make_sender(port, policy=policy)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(2))
        state = sender.get_window_state()
        sender.on_packet_arrival(ack(2))

        assert sender.get_window_state() == state
        assert sender.total_acks_received == 2
        assert sender.new_acks == 1

    @pytest.mark.parametrize("policy", ["cumulative", "selective"])
    def test_out_of_window_ack(self, port, policy):
        sender = make_sender(port, policy=policy)
        for letter in "abc":
            sender.submit(msg(letter))

        sender.on_packet_arrival(ack(7))

        assert sender.window.base == 0
        assert sender.new_acks == 0
        assert sender.total_acks_received == 1

    def test_corrupted_ack(self, port):
        sender = make_sender(port)
        sender.submit(msg("a"))

        damaged = replace(ack(0), payload=b"Z" + b"0" * (PAYLOAD_SIZE - 1))
        sender.on_packet_arrival(damaged)

        assert sender.window.base == 0
        assert sender.corrupted_acks == 1
        assert sender.total_acks_received == 0

    def test_corrupted_ack_number(self, port):
        sender = make_sender(port)
        sender.submit(msg("a"))

        sender.on_packet_arrival(replace(ack(0), ack_num=999999))

        assert sender.in_flight == 1
        assert sender.corrupted_acks == 1


class TestTimerExpiry:
    """Tests for timeout handling."""

    def test_expiry_with_empty_window_is_noop(self, port):
        sender = make_sender(port)

        sender.on_timer_expiry()

        assert port.sent == []
        assert not port.timer_running
        assert sender.packets_resent == 0

    def test_expiry_counts(self, port):
        sender = make_sender(port)
        sender.submit(msg("a"))

        port.fire_timer(sender)
        port.fire_timer(sender)

        stats = sender.get_statistics()
        assert stats['timer_expiries'] == 2
        assert stats['packets_resent'] == 2


class TestWraparound:
    """The window keeps working as sequence numbers wrap."""

    @pytest.mark.parametrize("policy", ["cumulative", "selective"])
    def test_sequence_numbers_wrap(self, port, policy):
        sender = make_sender(port, policy=policy, window=2, space=4)

        for i in range(10):
            assert sender.submit(msg("abcdefghij"[i]))
            sender.on_packet_arrival(ack(port.sent[-1].seq_num))

        assert [p.seq_num for p in port.sent] == [0, 1, 2, 3, 0, 1, 2, 3, 0, 1]
        assert sender.in_flight == 0
        assert sender.new_acks == 10
        assert not port.timer_running

    def test_wrapped_window_acks(self, port):
        sender = make_sender(port, window=2, space=4)

        # Move base to 3
        for letter in "abc":
            sender.submit(msg(letter))
            sender.on_packet_arrival(ack(port.sent[-1].seq_num))

        sender.submit(msg("d"))  # seq 3
        sender.submit(msg("e"))  # seq 0
        sender.on_packet_arrival(ack(0))
        assert sender.window.base == 3

        sender.on_packet_arrival(ack(3))
        assert sender.window.base == 1
        assert sender.in_flight == 0


class TestRetransmissionTimer:
    """Tests for the timer wrapper."""

    def test_restart_cancels_first(self, port):
        timer = RetransmissionTimer(port, Endpoint.A, 10.0)

        timer.start()
        timer.start()

        assert port.timer_starts == 2
        assert port.timer_stops == 1
        assert timer.is_running

    def test_stop_when_idle_does_not_touch_port(self, port):
        timer = RetransmissionTimer(port, Endpoint.A, 10.0)

        timer.stop()

        assert port.timer_stops == 0

    def test_timeout_must_be_positive(self, port):
        with pytest.raises(ValueError):
            RetransmissionTimer(port, Endpoint.A, 0)


class TestStatistics:
    """Tests for counters and reset."""

    def test_reset(self, port):
        sender = make_sender(port)
        sender.submit(msg("a"))
        sender.on_packet_arrival(ack(0))

        sender.reset()

        assert sender.in_flight == 0
        assert sender.window.base == 0
        assert sender.window.next_seq == 0
        assert sender.get_statistics()['packets_sent'] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
