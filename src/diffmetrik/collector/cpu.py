"""CPU load average collector."""

from __future__ import annotations

import psutil

from ..series import LoadAverage
from .base import BaseCollector


class CpuCollector(BaseCollector[LoadAverage]):
    """Collects 1/5/15 minute load averages."""

    @property
    def name(self) -> str:
        return "cpu"

    def collect(self) -> LoadAverage:
        load1, load5, load15 = psutil.getloadavg()
        return LoadAverage(load_1=load1, load_5=load5, load_15=load15)
