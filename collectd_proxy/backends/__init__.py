"""Time-series backend writers."""

from collectd_proxy.backends.base import BackendWriter
from collectd_proxy.backends.influxdb import InfluxDBWriter
from collectd_proxy.backends.models import OutputPoint

__all__ = ["BackendWriter", "InfluxDBWriter", "OutputPoint"]
