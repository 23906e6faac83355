"""Sample normalization and batching pipeline.

Decoded collectd samples are expanded into points (type labels, host name
substitution, rate normalization) and flushed to the backend in batches.
"""

from collectd_proxy.pipeline.names import NameIndex
from collectd_proxy.pipeline.normalizer import CacheEntry, RateNormalizer
from collectd_proxy.pipeline.scheduler import BatchScheduler, SchedulerMetrics
from collectd_proxy.pipeline.transformer import SampleTransformer, TransformerMetrics

__all__ = [
    "BatchScheduler",
    "CacheEntry",
    "NameIndex",
    "RateNormalizer",
    "SampleTransformer",
    "SchedulerMetrics",
    "TransformerMetrics",
]
