"""collectd binary network protocol decoder.

A collectd datagram is a sequence of parts, each encoded as::

    type: uint16 (big-endian)
    length: uint16 (big-endian, includes the 4 byte header)
    payload: length - 4 bytes

Identity parts (host, plugin, type, ...) set state that applies to every
following VALUES part in the same datagram. Each VALUES part produces one
sample.
"""

import struct

from collectd_proxy.collectd.models import Sample, Value, ValueKind
from collectd_proxy.exceptions import ProtocolError
from collectd_proxy.logging_config import get_logger

logger = get_logger(__name__)

PART_HOST = 0x0000
PART_TIME = 0x0001
PART_PLUGIN = 0x0002
PART_PLUGIN_INSTANCE = 0x0003
PART_TYPE = 0x0004
PART_TYPE_INSTANCE = 0x0005
PART_VALUES = 0x0006
PART_INTERVAL = 0x0007
PART_TIME_HR = 0x0008
PART_INTERVAL_HR = 0x0009
PART_MESSAGE = 0x0100
PART_SEVERITY = 0x0101
PART_SIGNATURE = 0x0200
PART_ENCRYPTION = 0x0210

_HEADER = struct.Struct("!HH")
_UINT64 = struct.Struct("!Q")
_INT64 = struct.Struct("!q")
_GAUGE = struct.Struct("<d")

_STRING_PARTS = {
    PART_HOST: "host",
    PART_PLUGIN: "plugin",
    PART_PLUGIN_INSTANCE: "plugin_instance",
    PART_TYPE: "type",
    PART_TYPE_INSTANCE: "type_instance",
}

_IGNORED_PARTS = {PART_MESSAGE, PART_SEVERITY, PART_SIGNATURE}

# high resolution times are in units of 2^-30 seconds
_HR_SCALE = float(1 << 30)


def _decode_string(payload: bytes, part_type: int) -> str:
    if not payload or payload[-1] != 0:
        raise ProtocolError("String part is not null-terminated", part_type=part_type)
    return payload[:-1].decode("utf-8", errors="replace")


def _decode_values(payload: bytes) -> tuple[Value, ...]:
    if len(payload) < 2:
        raise ProtocolError("Values part too short", length=len(payload))

    (count,) = struct.unpack_from("!H", payload)
    expected = 2 + count * 9
    if len(payload) != expected:
        raise ProtocolError(
            f"Values part length mismatch: expected {expected}, got {len(payload)}",
            count=count,
        )

    kinds = payload[2 : 2 + count]
    offset = 2 + count
    values = []
    for code in kinds:
        try:
            kind = ValueKind(code)
        except ValueError:
            raise ProtocolError(f"Unknown value kind {code}", kind=code) from None

        chunk = payload[offset : offset + 8]
        offset += 8
        if kind is ValueKind.GAUGE:
            (raw,) = _GAUGE.unpack(chunk)
        elif kind is ValueKind.DERIVE:
            (raw,) = _INT64.unpack(chunk)
        else:
            (raw,) = _UINT64.unpack(chunk)
        values.append(Value(kind=kind, raw=float(raw)))

    return tuple(values)


def decode_packet(data: bytes) -> list[Sample]:
    """Decode one collectd datagram into samples.

    Args:
        data: Raw UDP payload

    Returns:
        List[Sample]: One sample per VALUES part, in packet order

    Raises:
        ProtocolError: If the datagram is malformed or encrypted
    """
    state: dict[str, object] = {
        "host": "",
        "plugin": "",
        "plugin_instance": "",
        "type": "",
        "type_instance": "",
        "time": 0.0,
        "interval": 0.0,
    }
    samples: list[Sample] = []
    offset = 0

    while offset < len(data):
        if len(data) - offset < _HEADER.size:
            raise ProtocolError("Truncated part header", offset=offset)

        part_type, length = _HEADER.unpack_from(data, offset)
        if length < _HEADER.size or offset + length > len(data):
            raise ProtocolError(
                f"Invalid part length {length}",
                offset=offset,
                part_type=part_type,
            )

        payload = data[offset + _HEADER.size : offset + length]
        offset += length

        if part_type in _STRING_PARTS:
            state[_STRING_PARTS[part_type]] = _decode_string(payload, part_type)
        elif part_type in (PART_TIME, PART_INTERVAL, PART_TIME_HR, PART_INTERVAL_HR):
            if len(payload) != 8:
                raise ProtocolError("Numeric part must be 8 bytes", part_type=part_type)
            (number,) = _UINT64.unpack(payload)
            if part_type == PART_TIME:
                state["time"] = float(number)
            elif part_type == PART_TIME_HR:
                state["time"] = number / _HR_SCALE
            elif part_type == PART_INTERVAL:
                state["interval"] = float(number)
            else:
                state["interval"] = number / _HR_SCALE
        elif part_type == PART_VALUES:
            samples.append(
                Sample(
                    host=state["host"],
                    plugin=state["plugin"],
                    plugin_instance=state["plugin_instance"],
                    type=state["type"],
                    type_instance=state["type_instance"],
                    values=_decode_values(payload),
                    time=state["time"],
                    interval=state["interval"],
                )
            )
        elif part_type == PART_ENCRYPTION:
            raise ProtocolError("Encrypted packets are not supported")
        elif part_type in _IGNORED_PARTS:
            continue
        else:
            logger.debug("unknown_part_skipped", part_type=part_type, length=length)

    return samples
