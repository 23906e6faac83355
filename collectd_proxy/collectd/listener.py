"""UDP endpoint receiving collectd datagrams."""

import asyncio
from typing import Optional

from collectd_proxy.collectd.models import Sample
from collectd_proxy.collectd.protocol import decode_packet
from collectd_proxy.exceptions import ProtocolError
from collectd_proxy.logging_config import get_logger

logger = get_logger(__name__)


class CollectdListener(asyncio.DatagramProtocol):
    """Decode datagrams and hand samples to the pipeline queue.

    The queue is bounded; when it is full the sample is dropped rather than
    blocking the event loop.
    """

    def __init__(self, queue: "asyncio.Queue[Sample]"):
        self.queue = queue
        self.dropped_samples = 0
        self.malformed_packets = 0
        self.transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        try:
            samples = decode_packet(data)
        except ProtocolError as e:
            self.malformed_packets += 1
            logger.warning(
                "malformed_packet",
                peer=addr[0] if addr else None,
                error=e.message,
                **e.context,
            )
            return

        for sample in samples:
            try:
                self.queue.put_nowait(sample)
            except asyncio.QueueFull:
                self.dropped_samples += 1
                logger.warning(
                    "sample_queue_full",
                    host=sample.host,
                    plugin=sample.plugin,
                    dropped_total=self.dropped_samples,
                )

    def error_received(self, exc: Exception) -> None:
        logger.warning("udp_error", error=str(exc))


async def start_listener(
    queue: "asyncio.Queue[Sample]",
    host: str = "0.0.0.0",
    port: int = 8096,
) -> tuple[asyncio.DatagramTransport, CollectdListener]:
    """Bind the UDP endpoint on the running loop.

    Args:
        queue: Queue the decoded samples are put on
        host: Bind address
        port: UDP port

    Returns:
        Tuple of (transport, protocol)
    """
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: CollectdListener(queue),
        local_addr=(host, port),
    )
    logger.info("proxy_listening", host=host, port=port)
    return transport, protocol
