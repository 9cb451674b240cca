"""
Unit tests for the sliding-window receiver.
"""

import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import PAYLOAD_SIZE
from src.arq.packet import Packet
from src.arq.receiver import Receiver
from src.arq.sender import Sender


def msg(letter: str) -> bytes:
    return letter.encode() * PAYLOAD_SIZE


def data(seq_num: int, letter: str) -> Packet:
    return Packet.create_data_packet(seq_num, msg(letter))


def make_receiver(port, policy="selective", window=6, space=12):
    return Receiver(port, window_size=window, sequence_space_size=space, policy=policy)


def acked(port):
    return [p.ack_num for p in port.sent]


class TestInOrderDelivery:
    """Tests for the common in-order path."""

    def test_delivers_and_acks_each_packet(self, port):
        receiver = make_receiver(port)

        for seq, letter in enumerate("abc"):
            receiver.on_packet_arrival(data(seq, letter))

        assert port.delivered == [msg("a"), msg("b"), msg("c")]
        assert acked(port) == [0, 1, 2]
        assert receiver.expected == 3
        assert receiver.packets_received == 3
        assert receiver.packets_delivered == 3

    def test_ack_packet_format(self, port):
        receiver = make_receiver(port)

        receiver.on_packet_arrival(data(0, "a"))

        ack = port.sent[0]
        assert ack.is_ack
        assert ack.payload == b"0" * PAYLOAD_SIZE
        assert not ack.is_corrupted


class TestCorruptedArrival:
    """A corrupted packet is discarded without an acknowledgment."""

    def test_payload_corruption_sends_no_ack(self, port):
        receiver = make_receiver(port)
        packet = data(0, "a")

        receiver.on_packet_arrival(replace(packet, payload=b"Z" + packet.payload[1:]))

        assert port.sent == []
        assert port.delivered == []
        assert receiver.corrupted_packets == 1
        assert receiver.packets_received == 0
        assert receiver.expected == 0

    def test_sequence_corruption_sends_no_ack(self, port):
        receiver = make_receiver(port)

        receiver.on_packet_arrival(replace(data(0, "a"), seq_num=999999))

        assert port.sent == []
        assert receiver.corrupted_packets == 1


class TestOutOfOrder:
    """Tests for buffering and draining out-of-order arrivals."""

    def test_buffered_run_drains(self, port):
        receiver = make_receiver(port)

        receiver.on_packet_arrival(data(1, "b"))
        receiver.on_packet_arrival(data(2, "c"))
        assert port.delivered == []
        assert receiver.get_window_state()['buffered_packets'] == [1, 2]

        receiver.on_packet_arrival(data(0, "a"))

        assert port.delivered == [msg("a"), msg("b"), msg("c")]
        assert acked(port) == [1, 2, 0]
        assert receiver.expected == 3
        assert receiver.out_of_order_packets == 2

    def test_gap_holds_later_packets(self, port):
        receiver = make_receiver(port)

        receiver.on_packet_arrival(data(0, "a"))
        receiver.on_packet_arrival(data(2, "c"))

        assert port.delivered == [msg("a")]
        assert receiver.expected == 1

    def test_beyond_window_not_buffered(self, port):
        receiver = make_receiver(port, window=3, space=6)

        receiver.on_packet_arrival(data(4, "e"))

        assert receiver.get_window_state()['buffered_packets'] == []
        assert acked(port) == [4]


class TestDuplicates:
    """Duplicates are acknowledged again but never redelivered."""

    def test_duplicate_of_delivered_packet(self, port):
        receiver = make_receiver(port)

        receiver.on_packet_arrival(data(0, "a"))
        receiver.on_packet_arrival(data(0, "a"))

        assert port.delivered == [msg("a")]
        assert acked(port) == [0, 0]
        assert receiver.duplicate_packets == 1

    def test_duplicate_of_buffered_packet(self, port):
        receiver = make_receiver(port)

        receiver.on_packet_arrival(data(2, "c"))
        receiver.on_packet_arrival(data(2, "c"))

        assert acked(port) == [2, 2]
        assert receiver.duplicate_packets == 1
        assert receiver.out_of_order_packets == 1

    def test_duplicate_below_window_after_slide(self, port):
        receiver = make_receiver(port)
        for seq, letter in enumerate("abcdef"):
            receiver.on_packet_arrival(data(seq, letter))
        port.clear()

        receiver.on_packet_arrival(data(0, "a"))

        assert port.delivered == []
        assert acked(port) == [0]
        assert receiver.expected == 6


class TestWraparound:
    """Delivery continues across the top of the sequence space."""

    @pytest.mark.parametrize("policy", ["cumulative", "selective"])
    def test_in_order_across_wrap(self, port, policy):
        receiver = make_receiver(port, policy=policy, window=2, space=4)
        letters = "abcdefgh"

        for i, letter in enumerate(letters):
            receiver.on_packet_arrival(data(i % 4, letter))

        assert port.delivered == [msg(letter) for letter in letters]
        assert receiver.expected == 0

    def test_out_of_order_across_wrap(self, port):
        receiver = make_receiver(port, window=2, space=4)
        receiver.on_packet_arrival(data(0, "a"))
        receiver.on_packet_arrival(data(1, "b"))
        receiver.on_packet_arrival(data(2, "c"))

        # Window is now [3, 0]
        receiver.on_packet_arrival(data(0, "e"))
        receiver.on_packet_arrival(data(3, "d"))

        assert port.delivered[-2:] == [msg("d"), msg("e")]
        assert receiver.expected == 1


class TestCumulativeReceiver:
    """Only the expected packet is accepted; acks carry the last in-order number."""

    def test_out_of_order_discarded(self, port):
        receiver = make_receiver(port, policy="cumulative", window=3, space=8)

        receiver.on_packet_arrival(data(1, "b"))

        assert port.delivered == []
        assert receiver.get_window_state()['buffered_packets'] == []
        assert acked(port) == [7]
        assert receiver.out_of_order_packets == 1

    def test_acks_last_in_order(self, port):
        receiver = make_receiver(port, policy="cumulative", window=3, space=8)

        receiver.on_packet_arrival(data(0, "a"))
        receiver.on_packet_arrival(data(2, "c"))
        receiver.on_packet_arrival(data(1, "b"))
        receiver.on_packet_arrival(data(2, "c"))

        assert port.delivered == [msg("a"), msg("b"), msg("c")]
        assert acked(port) == [0, 0, 1, 2]

    def test_duplicate_reacks_last_in_order(self, port):
        receiver = make_receiver(port, policy="cumulative", window=3, space=4)
        for seq, letter in enumerate("abc"):
            receiver.on_packet_arrival(data(seq, letter))
        port.clear()

        # Seq 0 is old here even though 0 follows 3 in a space of 4
        receiver.on_packet_arrival(data(0, "a"))

        assert port.delivered == []
        assert acked(port) == [2]
        assert receiver.expected == 3
        assert receiver.duplicate_packets == 1


class TestLostAcksSmallSpace:
    """Cumulative sessions at N = W + 1 survive lost acknowledgments."""

    def test_retransmitted_old_packets_not_redelivered(self, port, peer_port):
        sender = Sender(port, window_size=3, sequence_space_size=4,
                        timeout=16.0, policy="cumulative")
        receiver = make_receiver(peer_port, policy="cumulative", window=3, space=4)

        for letter in "abc":
            sender.submit(msg(letter))
        for packet in port.sent:
            receiver.on_packet_arrival(packet)
        # Every ack is lost
        peer_port.sent.clear()

        port.clear()
        port.fire_timer(sender)
        assert [p.seq_num for p in port.sent] == [0, 1, 2]
        for packet in port.sent:
            receiver.on_packet_arrival(packet)
        stale_acks = list(peer_port.sent)
        peer_port.sent.clear()
        assert [a.ack_num for a in stale_acks] == [2, 2, 2]

        sender.on_packet_arrival(stale_acks[0])
        assert sender.in_flight == 0

        port.clear()
        assert sender.submit(msg("d"))  # seq 3
        assert sender.submit(msg("e"))  # seq 0
        for stale in stale_acks[1:]:
            sender.on_packet_arrival(stale)
        assert sender.in_flight == 2

        for packet in port.sent:
            receiver.on_packet_arrival(packet)
        for reply in peer_port.sent:
            sender.on_packet_arrival(reply)

        assert peer_port.delivered == [msg(letter) for letter in "abcde"]
        assert receiver.duplicate_packets == 3
        assert sender.in_flight == 0
        assert not port.timer_running


class TestStatistics:
    """Tests for counters and reset."""

    def test_reset(self, port):
        receiver = make_receiver(port)
        receiver.on_packet_arrival(data(0, "a"))

        receiver.reset()

        assert receiver.expected == 0
        assert receiver.get_statistics()['packets_delivered'] == 0
        assert receiver.get_window_state()['last_delivered'] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
