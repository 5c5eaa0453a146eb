"""Network byte counter collector."""

from __future__ import annotations

import logging

import psutil

from ..series import NetworkCounters
from .base import BaseCollector

logger = logging.getLogger(__name__)

LOOPBACK_PREFIXES = ("lo",)


class NetworkCollector(BaseCollector[NetworkCounters]):
    """Sums received/sent byte totals over the selected interfaces.

    With no *interfaces* every non-loopback interface is counted; otherwise
    only interfaces whose name starts with one of the given prefixes.
    """

    def __init__(self, interfaces: list[str] | None = None, include_loopback: bool = False) -> None:
        self._prefixes = tuple(interfaces or ())
        self._include_loopback = include_loopback

    @property
    def name(self) -> str:
        return "network"

    def _selected(self, iface: str) -> bool:
        if not self._include_loopback and iface.startswith(LOOPBACK_PREFIXES):
            return False
        if self._prefixes:
            return iface.startswith(self._prefixes)
        return True

    def collect(self) -> NetworkCounters:
        counters = psutil.net_io_counters(pernic=True)
        total_in = 0
        total_out = 0
        for iface, nio in counters.items():
            if not self._selected(iface):
                continue
            total_in += nio.bytes_recv
            total_out += nio.bytes_sent
        logger.debug("Network totals: in=%d out=%d", total_in, total_out)
        return NetworkCounters(total_in_bytes=total_in, total_out_bytes=total_out)
