"""Base interfaces for metric collectors and sources."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RawCounters:
    """A single reading of every counter the core consumes."""

    network_in_bytes: int
    network_out_bytes: int
    load_1: float
    load_5: float
    load_15: float


class BaseCollector(abc.ABC, Generic[T]):
    """Abstract base class for a collector of one kind of host reading."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Collector name used in logs and errors."""

    @abc.abstractmethod
    def collect(self) -> T:
        """Read the current value from the host."""


class MetricSource(abc.ABC):
    """Produces :class:`RawCounters` or raises :class:`~diffmetrik.errors.SourceError`."""

    @abc.abstractmethod
    def sample(self) -> RawCounters:
        """Sample all counters once."""
