"""CLI interface for diffmetrik."""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .clock import Clock, now_ns
from .collector.base import MetricSource
from .config import load_config
from .errors import DiffmetrikError, SourceError, StoreError
from .report import Metric, print_history, report_line
from .series import Snapshot, SnapshotSeries
from .storage import Store

logger = logging.getLogger(__name__)


def update_series(
    store: Store[SnapshotSeries],
    source: MetricSource,
    clock: Clock = now_ns,
) -> SnapshotSeries:
    """Run one sampling round against *store* and return the merged series.

    Unreadable history is discarded with :meth:`Store.reset`; a failing
    source leaves the stored history as the only data. Write failures
    propagate.
    """
    try:
        previous = store.read(SnapshotSeries)
    except StoreError as exc:
        logger.info("Discarding stored history: %s", exc.message)
        store.reset()
        previous = SnapshotSeries()

    try:
        snapshot = Snapshot.take(source, clock)
    except SourceError as exc:
        logger.warning("No new sample: %s", exc.message)
        merged = previous
    else:
        merged = previous.add(snapshot)

    store.write(merged)
    return merged


def _parse_metric(value: str) -> Metric:
    try:
        return Metric(value.lower())
    except ValueError:
        choices = ", ".join(m.value for m in Metric)
        raise argparse.ArgumentTypeError(f"invalid metric {value!r} (choose from {choices})") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diffmetrik",
        description="Print network throughput or CPU load derived from periodic host samples",
    )
    parser.add_argument(
        "--metric", "-m",
        required=True,
        type=_parse_metric,
        metavar="{download,upload,load}",
        help="Derived value to print",
    )
    parser.add_argument("--file-name", default=None, help="Store file (relative names live in the temp dir)")
    parser.add_argument("--config", "-c", default=None, help="Path to diffmetrik.yaml")
    parser.add_argument("--daemon", action="store_true", help="Reserved; currently has no effect")
    parser.add_argument("--debug", "-d", action="store_true", help="Diagnostic output on stderr")
    parser.add_argument("--history", action="store_true", help="Also print the stored snapshots")
    parser.add_argument("--version", action="version", version=f"diffmetrik {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the diffmetrik CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Arguments: %s", args)
    if args.daemon:
        logger.debug("--daemon is reserved and has no effect")

    cfg = load_config(args.config)
    if args.file_name is not None:
        cfg.store.file_name = args.file_name
    if args.debug:
        cfg.store.debug = True

    from .collector.source import HostMetricSource

    store: Store[SnapshotSeries] = Store(
        cfg.store.file_name,
        min_duration=cfg.store.min_duration_seconds,
        debug=cfg.store.debug,
    )
    source = HostMetricSource(cfg.source)

    try:
        series = update_series(store, source)
    except DiffmetrikError as exc:
        logger.error("%s (%s)", exc.message, exc.details)
        sys.exit(1)

    print(report_line(series.get_rate(), args.metric))
    if args.history:
        print_history(series)


if __name__ == "__main__":
    main()
