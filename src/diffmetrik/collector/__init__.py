"""Host counter collectors behind the :class:`~diffmetrik.collector.base.MetricSource` interface."""

from .base import MetricSource, RawCounters
from .source import HostMetricSource

__all__ = ["HostMetricSource", "MetricSource", "RawCounters"]
