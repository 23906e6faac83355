"""Sample to point conversion."""

from dataclasses import dataclass
from typing import Optional

from collectd_proxy.backends.models import OutputPoint
from collectd_proxy.collectd.models import Sample
from collectd_proxy.logging_config import get_logger
from collectd_proxy.pipeline.names import NameIndex
from collectd_proxy.pipeline.normalizer import RateNormalizer
from collectd_proxy.typesdb.resolver import TypeResolver

logger = get_logger(__name__)


@dataclass
class TransformerMetrics:
    """Sample conversion counters."""

    samples: int = 0
    points_emitted: int = 0
    unknown_type_drops: int = 0
    not_ready_drops: int = 0


class SampleTransformer:
    """Expand collectd samples into output points.

    Every value slot of a sample becomes at most one point:
    - series name is "plugin[-plugin_instance].type[-type_instance|-label]"
    - host is the sample host with dots replaced by underscores, then looked
      up in the name index
    - COUNTER and DERIVE values go through the rate normalizer

    Slots without a usable name (unknown type and no type instance) and slots
    the normalizer has no baseline for yet are dropped.

    Example:
        transformer = SampleTransformer(types, RateNormalizer(), NameIndex())
        points = transformer.transform(sample)
    """

    def __init__(
        self,
        types: TypeResolver,
        normalizer: RateNormalizer,
        names: Optional[NameIndex] = None,
        verbose: bool = False,
    ):
        self.types = types
        self.normalizer = normalizer
        self.names = names
        self.verbose = verbose
        self.metrics = TransformerMetrics()

    def host_label(self, raw_host: str) -> str:
        """Series-safe host label for a raw host id."""
        # dots separate path segments in series names
        host = raw_host.replace(".", "_")
        if self.names is not None:
            host = self.names.resolve(host)
        return host

    def transform(self, sample: Sample) -> list[OutputPoint]:
        """Convert one sample.

        Args:
            sample: Decoded collectd sample

        Returns:
            List[OutputPoint]: Points for the slots that could be emitted
        """
        self.metrics.samples += 1
        if self.verbose:
            logger.debug("sample_received", sample=sample)

        labels = self.types.labels_for(sample.type)
        host = self.host_label(sample.host)

        plugin = sample.plugin
        if sample.plugin_instance:
            plugin += "-" + sample.plugin_instance

        timestamp_ms = sample.timestamp_ms
        points: list[OutputPoint] = []

        for i, value in enumerate(sample.values):
            type_name = sample.type
            if sample.type_instance:
                type_name += "-" + sample.type_instance
            elif labels is not None and i < len(labels):
                type_name += "-" + labels[i]
            else:
                self.metrics.unknown_type_drops += 1
                logger.warning(
                    "unknown_type",
                    plugin=sample.plugin,
                    type=sample.type,
                    slot=i,
                )
                continue

            name = f"{plugin}.{type_name}"
            normalized = self.normalizer.normalize(
                f"{host}.{name}", value.kind, timestamp_ms, value.raw
            )
            if normalized is None:
                self.metrics.not_ready_drops += 1
                continue

            point = OutputPoint(
                name=name,
                timestamp_ms=timestamp_ms,
                value=normalized,
                host=host,
            )
            if self.verbose:
                logger.debug("point_ready", point=point)
            points.append(point)

        self.metrics.points_emitted += len(points)
        return points
