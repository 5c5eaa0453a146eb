"""Shared fakes for the diffmetrik tests."""

from __future__ import annotations

from diffmetrik.clock import NANOS_PER_SECOND
from diffmetrik.collector.base import MetricSource, RawCounters
from diffmetrik.errors import SourceError
from diffmetrik.series import LoadAverage, NetworkCounters, Snapshot


def snap(secs: float, net_in: int = 0, net_out: int = 0, load: tuple = (0.5, 0.4, 0.3)) -> Snapshot:
    return Snapshot(
        time_ns=int(secs * NANOS_PER_SECOND),
        network=NetworkCounters(net_in, net_out),
        cpu=LoadAverage(*load),
    )


class FakeClock:
    """Manually advanced nanosecond clock."""

    def __init__(self, secs: int = 1_700_000_000, nanos: int = 0) -> None:
        self.now = secs * NANOS_PER_SECOND + nanos

    def advance(self, secs: float) -> None:
        self.now += int(secs * NANOS_PER_SECOND)

    def __call__(self) -> int:
        return self.now


class FakeSource(MetricSource):
    """Returns queued counters; ``None`` entries simulate a failing host."""

    def __init__(self, readings: list[RawCounters | None]) -> None:
        self._readings = list(readings)
        self.calls = 0

    def sample(self) -> RawCounters:
        self.calls += 1
        reading = self._readings.pop(0)
        if reading is None:
            raise SourceError("fake source failure", "fake")
        return reading


def counters(net_in: int, net_out: int, load_1: float = 0.5) -> RawCounters:
    return RawCounters(
        network_in_bytes=net_in,
        network_out_bytes=net_out,
        load_1=load_1,
        load_5=0.4,
        load_15=0.3,
    )
