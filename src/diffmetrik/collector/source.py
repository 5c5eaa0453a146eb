"""Host metric source combining the network and CPU collectors."""

from __future__ import annotations

import logging

from ..config import SourceConfig
from ..errors import SourceError
from .base import BaseCollector, MetricSource, RawCounters, T
from .cpu import CpuCollector
from .network import NetworkCollector

logger = logging.getLogger(__name__)


class HostMetricSource(MetricSource):
    """Reads network and CPU counters from the local host.

    A failure of any collector fails the whole sample: the caller proceeds
    without a new snapshot rather than with a partial one.
    """

    def __init__(self, config: SourceConfig | None = None) -> None:
        config = config or SourceConfig()
        self._network = NetworkCollector(
            interfaces=config.network_interfaces,
            include_loopback=config.include_loopback,
        )
        self._cpu = CpuCollector()

    def _collect(self, collector: BaseCollector[T]) -> T:
        try:
            return collector.collect()
        except Exception as exc:
            logger.warning("Collector %s failed: %s", collector.name, exc)
            raise SourceError(f"Collector {collector.name} failed: {exc}", collector.name) from exc

    def sample(self) -> RawCounters:
        network = self._collect(self._network)
        cpu = self._collect(self._cpu)
        return RawCounters(
            network_in_bytes=network.total_in_bytes,
            network_out_bytes=network.total_out_bytes,
            load_1=cpu.load_1,
            load_5=cpu.load_5,
            load_15=cpu.load_15,
        )
