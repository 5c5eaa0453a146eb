"""Snapshots of host counters and the bounded series they are merged into."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from .clock import NANOS_PER_SECOND, Clock, duration_from_dict, duration_to_dict, now_ns
from .errors import SerializationError
from .report import format_rate

if TYPE_CHECKING:
    from .collector.base import MetricSource

logger = logging.getLogger(__name__)

# Number of snapshots retained by a series
MAX_SNAPSHOTS = 3

# Rates over shorter intervals are dominated by timer noise
MIN_RATE_INTERVAL = 1.0  # seconds


def _require(data: Any, key: str, kind: type | tuple[type, ...]) -> Any:
    if not isinstance(data, dict):
        raise SerializationError(f"Expected object with {key!r}, got {type(data).__name__}")
    if key not in data:
        raise SerializationError(f"Missing field {key!r}")
    value = data[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise SerializationError(f"Field {key!r} has invalid type {type(value).__name__}")
    return value


def _require_float(data: Any, key: str) -> float:
    value = _require(data, key, (int, float))
    try:
        return float(value)
    except OverflowError as exc:
        raise SerializationError(f"Field {key!r} is out of float range") from exc


@dataclass(frozen=True)
class NetworkCounters:
    """Monotonic network byte totals."""

    total_in_bytes: int
    total_out_bytes: int

    def to_dict(self) -> dict[str, int]:
        return {"total_ibytes": self.total_in_bytes, "total_obytes": self.total_out_bytes}

    @classmethod
    def from_dict(cls, data: Any) -> NetworkCounters:
        return cls(
            total_in_bytes=_require(data, "total_ibytes", int),
            total_out_bytes=_require(data, "total_obytes", int),
        )


@dataclass(frozen=True)
class LoadAverage:
    """CPU load averages over 1, 5 and 15 minutes."""

    load_1: float
    load_5: float
    load_15: float

    def to_dict(self) -> dict[str, float]:
        return {"m1": self.load_1, "m5": self.load_5, "m15": self.load_15}

    @classmethod
    def from_dict(cls, data: Any) -> LoadAverage:
        return cls(
            load_1=_require_float(data, "m1"),
            load_5=_require_float(data, "m5"),
            load_15=_require_float(data, "m15"),
        )


@dataclass(frozen=True)
class Snapshot:
    """One timestamped reading of a metric source.

    ``time_ns`` is wall-clock nanoseconds since the Unix epoch.
    """

    time_ns: int
    network: NetworkCounters
    cpu: LoadAverage

    @property
    def seconds(self) -> float:
        return self.time_ns / NANOS_PER_SECOND

    @classmethod
    def take(cls, source: MetricSource, clock: Clock = now_ns) -> Snapshot:
        """Sample *source* and stamp the reading with the current time.

        Raises :class:`~diffmetrik.errors.SourceError` when the source fails.
        """
        raw = source.sample()
        return cls(
            time_ns=clock(),
            network=NetworkCounters(raw.network_in_bytes, raw.network_out_bytes),
            cpu=LoadAverage(raw.load_1, raw.load_5, raw.load_15),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": duration_to_dict(self.time_ns),
            "network": self.network.to_dict(),
            "cpu": self.cpu.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Snapshot:
        return cls(
            time_ns=duration_from_dict(_require(data, "time", dict)),
            network=NetworkCounters.from_dict(_require(data, "network", dict)),
            cpu=LoadAverage.from_dict(_require(data, "cpu", dict)),
        )


@dataclass(frozen=True)
class NetworkRate:
    """Network throughput in bytes per second."""

    in_rate: float
    out_rate: float

    @property
    def formatted_in(self) -> str:
        return format_rate(self.in_rate)

    @property
    def formatted_out(self) -> str:
        return format_rate(self.out_rate)


@dataclass(frozen=True)
class RateResult:
    """Rates derived from a series; never persisted."""

    network: NetworkRate
    cpu: LoadAverage


class SnapshotSeries:
    """The most recent snapshots, newest first, at most :data:`MAX_SNAPSHOTS`.

    Every instance is normalized on construction, so the ordering and bound
    hold for merged, deserialized and directly built series alike. Merging
    does not deduplicate: merge a stored series with a series holding only
    the freshly taken snapshot.
    """

    def __init__(self, snapshots: Iterable[Snapshot] = ()) -> None:
        ordered = sorted(snapshots, key=lambda s: s.time_ns, reverse=True)
        self._snapshots: tuple[Snapshot, ...] = tuple(ordered[:MAX_SNAPSHOTS])

    @property
    def snapshots(self) -> tuple[Snapshot, ...]:
        return self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[Snapshot]:
        return iter(self._snapshots)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SnapshotSeries):
            return NotImplemented
        return self._snapshots == other._snapshots

    def __repr__(self) -> str:
        return f"SnapshotSeries({list(self._snapshots)!r})"

    @classmethod
    def merge(cls, a: SnapshotSeries, b: SnapshotSeries) -> SnapshotSeries:
        """Combine two series, keeping the newest :data:`MAX_SNAPSHOTS` entries."""
        return cls(a.snapshots + b.snapshots)

    def add(self, snapshot: Snapshot) -> SnapshotSeries:
        return SnapshotSeries.merge(self, SnapshotSeries([snapshot]))

    def get_rate(self) -> RateResult | None:
        """Derive rates between the newest and the oldest retained snapshot.

        Returns ``None`` with fewer than two snapshots, or when the two are
        not more than :data:`MIN_RATE_INTERVAL` seconds apart.
        """
        if len(self._snapshots) < 2:
            return None
        newest = self._snapshots[0]
        oldest = self._snapshots[-1]
        dtime = (newest.time_ns - oldest.time_ns) / NANOS_PER_SECOND
        if dtime <= MIN_RATE_INTERVAL:
            logger.debug(
                "Snapshots only %.3fs apart (need > %.1fs); no rate",
                dtime,
                MIN_RATE_INTERVAL,
            )
            return None
        in_rate = (newest.network.total_in_bytes - oldest.network.total_in_bytes) / dtime
        out_rate = (newest.network.total_out_bytes - oldest.network.total_out_bytes) / dtime
        return RateResult(network=NetworkRate(in_rate, out_rate), cpu=newest.cpu)

    def to_dict(self) -> dict[str, Any]:
        return {"metrics": [s.to_dict() for s in self._snapshots]}

    @classmethod
    def from_dict(cls, data: Any) -> SnapshotSeries:
        items = _require(data, "metrics", list)
        return cls(Snapshot.from_dict(item) for item in items)
