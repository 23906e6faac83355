"""collectd to InfluxDB proxy runner.

This module wires the pipeline together:
1. UDP listener decodes datagrams onto a bounded queue
2. A single consumer converts each sample into points
3. The batch scheduler flushes points to the backend in the background
4. An optional Docker refresher keeps the host name index current
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from collectd_proxy.backends.base import BackendWriter
from collectd_proxy.backends.influxdb import InfluxDBWriter
from collectd_proxy.collectd.listener import start_listener
from collectd_proxy.collectd.models import Sample
from collectd_proxy.config import Settings
from collectd_proxy.docker.names import DockerNameRefresher
from collectd_proxy.exceptions import ConfigurationError
from collectd_proxy.logging_config import get_logger
from collectd_proxy.pipeline.names import NameIndex
from collectd_proxy.pipeline.normalizer import RateNormalizer
from collectd_proxy.pipeline.scheduler import BatchScheduler
from collectd_proxy.pipeline.transformer import SampleTransformer
from collectd_proxy.typesdb.parser import load_types_db
from collectd_proxy.typesdb.resolver import TypeResolver

logger = get_logger(__name__)


class CollectdProxy:
    """Consume samples sequentially and feed the batch scheduler.

    Example:
        proxy = CollectdProxy(queue, transformer, scheduler)
        await proxy.run()
    """

    def __init__(
        self,
        queue: "asyncio.Queue[Sample]",
        transformer: SampleTransformer,
        scheduler: BatchScheduler,
    ):
        self.queue = queue
        self.transformer = transformer
        self.scheduler = scheduler

    def process(self, sample: Sample) -> int:
        """Convert one sample and offer its points.

        Returns:
            Number of points produced
        """
        points = self.transformer.transform(sample)
        self.scheduler.offer(points)
        return len(points)

    async def run(self) -> None:
        """Process samples from the queue until cancelled."""
        while True:
            sample = await self.queue.get()
            try:
                self.process(sample)
            finally:
                self.queue.task_done()


@dataclass
class ProxyComponents:
    """Everything serve() needs to run."""

    proxy: CollectdProxy
    writer: BackendWriter
    names: NameIndex
    refresher: Optional[DockerNameRefresher] = None


def create_proxy(
    settings: Settings,
    types: TypeResolver,
    writer: Optional[BackendWriter] = None,
) -> ProxyComponents:
    """Build the pipeline from settings.

    Args:
        settings: Proxy settings
        types: Loaded types.db table
        writer: Backend writer (defaults to InfluxDB from settings)

    Returns:
        ProxyComponents ready to run
    """
    if writer is None:
        writer = InfluxDBWriter(
            settings.influxdb_url,
            settings.influxdb_database,
            username=settings.influxdb_username,
            password=settings.influxdb_password,
            timeout=settings.influxdb_timeout_seconds,
        )

    names = NameIndex()
    refresher = None
    if settings.docker_host:
        refresher = DockerNameRefresher(
            names,
            docker_host=settings.docker_host,
            interval=settings.docker_refresh_interval_seconds,
        )

    transformer = SampleTransformer(
        types,
        RateNormalizer(enabled=settings.normalize),
        names=names,
        verbose=settings.verbose,
    )
    scheduler = BatchScheduler(
        writer,
        write_limit=settings.write_limit,
        write_interval=settings.write_interval_seconds,
        verbose=settings.verbose,
    )
    queue: asyncio.Queue[Sample] = asyncio.Queue(maxsize=settings.packet_queue_size)

    return ProxyComponents(
        proxy=CollectdProxy(queue, transformer, scheduler),
        writer=writer,
        names=names,
        refresher=refresher,
    )


async def serve(settings: Settings, writer: Optional[BackendWriter] = None) -> None:
    """Run the proxy until cancelled.

    Startup failures (unreadable types.db, unreachable backend, port in use)
    propagate to the caller. In-flight writes are abandoned on shutdown.

    Raises:
        ConfigurationError: If no InfluxDB database is configured
        TypesDBError: If types.db cannot be loaded
        BackendUnavailableError: If the backend does not answer the ping
        OSError: If the UDP port cannot be bound
    """
    if not settings.influxdb_database:
        raise ConfigurationError(
            "InfluxDB database is not set (use --database or INFLUXDB_DATABASE)"
        )

    types = load_types_db(settings.typesdb_path)
    components = create_proxy(settings, types, writer=writer)

    transport = None
    tasks: list[asyncio.Task] = []
    try:
        await components.writer.ping()

        transport, _ = await start_listener(
            components.proxy.queue,
            host=settings.proxy_host,
            port=settings.proxy_port,
        )

        tasks.append(
            asyncio.create_task(components.proxy.run(), name="collectd-consumer")
        )
        if components.refresher is not None:
            tasks.append(
                asyncio.create_task(components.refresher.run(), name="docker-names")
            )

        logger.info(
            "proxy_started",
            port=settings.proxy_port,
            influxdb=settings.influxdb_url,
            database=settings.influxdb_database,
            normalize=settings.normalize,
            docker=settings.docker_host,
        )
        await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            task.cancel()
        if transport is not None:
            transport.close()
        await components.writer.close()
        logger.info("proxy_stopped")
