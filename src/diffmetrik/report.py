"""Presentation of derived rates: formatting, metric selection and history tables."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .series import RateResult, SnapshotSeries

BINARY_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")

NOT_ENOUGH_DATA = "Not enough data"


class Metric(str, Enum):
    """Scalar a report line is built from."""

    DOWNLOAD = "download"
    UPLOAD = "upload"
    LOAD = "load"


def format_bytes(value: float, decimals: int = 2) -> str:
    """Format *value* bytes with a binary-scaled unit, e.g. ``1.23 MiB``."""
    scaled = abs(value)
    unit = BINARY_UNITS[0]
    for unit in BINARY_UNITS:
        if scaled < 1024 or unit == BINARY_UNITS[-1]:
            break
        scaled /= 1024
    sign = "-" if value < 0 else ""
    return f"{sign}{scaled:.{decimals}f} {unit}"


def format_rate(bytes_per_second: float) -> str:
    return f"{format_bytes(bytes_per_second)}/s"


def report_line(rate: RateResult | None, metric: Metric) -> str:
    """Build the single status line for *metric*."""
    if rate is None:
        return NOT_ENOUGH_DATA
    if metric is Metric.DOWNLOAD:
        return f"D: {rate.network.formatted_in}"
    if metric is Metric.UPLOAD:
        return f"U: {rate.network.formatted_out}"
    cpu = rate.cpu
    return f"L: {cpu.load_1:.2f} {cpu.load_5:.2f} {cpu.load_15:.2f}"


def print_history(series: SnapshotSeries) -> None:
    """Pretty-print the retained snapshots using Rich."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title="diffmetrik history", show_lines=True)
    table.add_column("Time (UTC)", style="cyan", width=24)
    table.add_column("Received", justify="right", width=12)
    table.add_column("Sent", justify="right", width=12)
    table.add_column("Load (1/5/15)", justify="right", width=16)

    for snap in series:
        ts = datetime.fromtimestamp(snap.seconds, tz=timezone.utc)
        table.add_row(
            ts.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
            format_bytes(snap.network.total_in_bytes),
            format_bytes(snap.network.total_out_bytes),
            f"{snap.cpu.load_1:.2f} {snap.cpu.load_5:.2f} {snap.cpu.load_15:.2f}",
        )

    console = Console()
    console.print(table)
    if not len(series):
        console.print("  (no snapshots stored)")
