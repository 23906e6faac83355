"""Tests for the collectd binary protocol decoder and UDP listener."""

import asyncio
import struct

import pytest

from collectd_proxy.collectd.listener import CollectdListener
from collectd_proxy.collectd.models import ValueKind
from collectd_proxy.collectd.protocol import (
    PART_ENCRYPTION,
    PART_HOST,
    PART_INTERVAL,
    PART_PLUGIN,
    PART_PLUGIN_INSTANCE,
    PART_SIGNATURE,
    PART_TIME,
    PART_TIME_HR,
    PART_TYPE,
    PART_TYPE_INSTANCE,
    PART_VALUES,
    decode_packet,
)
from collectd_proxy.exceptions import ProtocolError


def string_part(part_type: int, value: str) -> bytes:
    payload = value.encode() + b"\x00"
    return struct.pack("!HH", part_type, 4 + len(payload)) + payload


def number_part(part_type: int, value: int) -> bytes:
    return struct.pack("!HHQ", part_type, 12, value)


def values_part(*values: tuple[ValueKind, float]) -> bytes:
    payload = struct.pack("!H", len(values))
    payload += bytes(kind for kind, _ in values)
    for kind, raw in values:
        if kind is ValueKind.GAUGE:
            payload += struct.pack("<d", raw)
        elif kind is ValueKind.DERIVE:
            payload += struct.pack("!q", int(raw))
        else:
            payload += struct.pack("!Q", int(raw))
    return struct.pack("!HH", PART_VALUES, 4 + len(payload)) + payload


def identity(host="web.01", plugin="interface", plugin_instance="eth0", type="if_octets"):
    return (
        string_part(PART_HOST, host)
        + number_part(PART_TIME, 1700000000)
        + number_part(PART_INTERVAL, 10)
        + string_part(PART_PLUGIN, plugin)
        + string_part(PART_PLUGIN_INSTANCE, plugin_instance)
        + string_part(PART_TYPE, type)
    )


class TestDecodePacket:
    """Tests for decode_packet."""

    def test_single_sample(self):
        """Identity parts followed by values produce one sample."""
        packet = identity() + values_part(
            (ValueKind.DERIVE, 1234), (ValueKind.DERIVE, 5678)
        )

        (sample,) = decode_packet(packet)

        assert sample.host == "web.01"
        assert sample.plugin == "interface"
        assert sample.plugin_instance == "eth0"
        assert sample.type == "if_octets"
        assert sample.type_instance == ""
        assert sample.time == 1700000000.0
        assert sample.interval == 10.0
        assert [(v.kind, v.raw) for v in sample.values] == [
            (ValueKind.DERIVE, 1234.0),
            (ValueKind.DERIVE, 5678.0),
        ]

    def test_all_value_kinds(self):
        """Each kind is decoded with its own encoding."""
        packet = identity() + values_part(
            (ValueKind.COUNTER, 2**40),
            (ValueKind.GAUGE, 0.5),
            (ValueKind.DERIVE, -7),
            (ValueKind.ABSOLUTE, 9),
        )

        (sample,) = decode_packet(packet)

        assert [v.raw for v in sample.values] == [float(2**40), 0.5, -7.0, 9.0]
        assert [v.kind for v in sample.values] == [
            ValueKind.COUNTER,
            ValueKind.GAUGE,
            ValueKind.DERIVE,
            ValueKind.ABSOLUTE,
        ]

    def test_high_resolution_time(self):
        """TIME_HR is in units of 2^-30 seconds."""
        packet = (
            string_part(PART_HOST, "h")
            + number_part(PART_TIME_HR, (1700000000 << 30) + (1 << 29))
            + string_part(PART_PLUGIN, "load")
            + string_part(PART_TYPE, "load")
            + values_part((ValueKind.GAUGE, 1.0))
        )

        (sample,) = decode_packet(packet)

        assert sample.time == pytest.approx(1700000000.5)
        assert sample.timestamp_ms == 1700000000500

    def test_state_carries_across_values_parts(self):
        """Later parts only override what they set."""
        packet = (
            identity(plugin="cpu", plugin_instance="0", type="cpu")
            + string_part(PART_TYPE_INSTANCE, "user")
            + values_part((ValueKind.DERIVE, 1))
            + string_part(PART_TYPE_INSTANCE, "idle")
            + values_part((ValueKind.DERIVE, 2))
        )

        first, second = decode_packet(packet)

        assert (first.type_instance, second.type_instance) == ("user", "idle")
        assert second.host == "web.01"
        assert second.plugin_instance == "0"

    def test_signature_part_skipped(self):
        """Signed packets are decoded without verification."""
        signature = struct.pack("!HH", PART_SIGNATURE, 4 + 32 + 4) + b"\x00" * 32 + b"user"
        packet = signature + identity() + values_part((ValueKind.GAUGE, 1.0))

        assert len(decode_packet(packet)) == 1

    def test_empty_packet(self):
        """An empty datagram has no samples."""
        assert decode_packet(b"") == []

    def test_encrypted_packet_rejected(self):
        """Encrypted packets cannot be decoded."""
        packet = struct.pack("!HH", PART_ENCRYPTION, 8) + b"\x00" * 4

        with pytest.raises(ProtocolError, match="Encrypted"):
            decode_packet(packet)

    @pytest.mark.parametrize(
        "packet",
        [
            b"\x00\x00\x00",
            struct.pack("!HH", PART_HOST, 2),
            struct.pack("!HH", PART_HOST, 40) + b"short\x00",
            struct.pack("!HH", PART_HOST, 8) + b"abcd",
            struct.pack("!HH", PART_TIME, 8) + b"\x00" * 4,
            struct.pack("!HHH", PART_VALUES, 7, 2) + b"\x01",
            struct.pack("!HHH", PART_VALUES, 15, 1) + b"\x07" + b"\x00" * 8,
        ],
        ids=[
            "truncated-header",
            "length-below-header",
            "length-overrun",
            "unterminated-string",
            "short-number",
            "values-length-mismatch",
            "unknown-kind",
        ],
    )
    def test_malformed(self, packet):
        """Malformed parts raise ProtocolError."""
        with pytest.raises(ProtocolError):
            decode_packet(packet)


class TestCollectdListener:
    """Tests for the datagram protocol."""

    @pytest.mark.asyncio
    async def test_samples_queued(self):
        """Decoded samples are put on the queue."""
        queue = asyncio.Queue(maxsize=10)
        listener = CollectdListener(queue)

        listener.datagram_received(
            identity() + values_part((ValueKind.GAUGE, 1.0)), ("10.0.0.1", 25826)
        )

        assert queue.qsize() == 1
        assert (await queue.get()).plugin == "interface"

    @pytest.mark.asyncio
    async def test_full_queue_drops(self):
        """A full queue drops samples instead of blocking."""
        queue = asyncio.Queue(maxsize=1)
        listener = CollectdListener(queue)
        packet = (
            identity()
            + values_part((ValueKind.GAUGE, 1.0))
            + values_part((ValueKind.GAUGE, 2.0))
        )

        listener.datagram_received(packet, ("10.0.0.1", 25826))

        assert queue.qsize() == 1
        assert listener.dropped_samples == 1

    @pytest.mark.asyncio
    async def test_malformed_datagram_counted(self):
        """Malformed datagrams are dropped without raising."""
        queue = asyncio.Queue()
        listener = CollectdListener(queue)

        listener.datagram_received(b"\x00\x00\x00", ("10.0.0.1", 25826))

        assert queue.empty()
        assert listener.malformed_packets == 1
