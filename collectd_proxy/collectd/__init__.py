"""collectd network protocol support.

This module decodes collectd's binary network format into samples and
provides the UDP endpoint that feeds them to the pipeline.
"""

from collectd_proxy.collectd.listener import CollectdListener, start_listener
from collectd_proxy.collectd.models import Sample, Value, ValueKind
from collectd_proxy.collectd.protocol import decode_packet

__all__ = [
    "CollectdListener",
    "Sample",
    "Value",
    "ValueKind",
    "decode_packet",
    "start_listener",
]
