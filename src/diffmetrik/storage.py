"""Persistent, lock-protected JSON store for a single payload.

The payload is wrapped in an envelope carrying the time it was written::

    {"time": {"secs": 1700000000, "nanos": 0}, "payload": {...}}

The envelope time drives the rewrite throttle: :meth:`Store.write` leaves the
file untouched when the previous envelope is younger than ``min_duration``.
Readers take a shared ``flock`` and writers an exclusive one. The decision to
write is made under the writer's lock but is not atomic against another
process that read the old envelope before this write committed; at worst
that costs one redundant rewrite.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import IO, Any, Generic, Protocol, TypeVar

from .clock import NANOS_PER_SECOND, Clock, duration_from_dict, duration_to_dict, now_ns
from .errors import SerializationError, StoreError, StoreIOError

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = "diffmetrik.json"
DEFAULT_MIN_DURATION = 2.0  # seconds


class Payload(Protocol):
    """Anything the store can persist."""

    def to_dict(self) -> Any: ...

    @classmethod
    def from_dict(cls, data: Any) -> Any: ...


P = TypeVar("P", bound=Payload)


def resolve_store_path(file_name: str | Path) -> Path:
    """Resolve *file_name* against the temp directory unless it is absolute."""
    path = Path(file_name).expanduser()
    if not path.is_absolute():
        path = Path(tempfile.gettempdir()) / path
    return path


@contextlib.contextmanager
def _locked(fh: IO[bytes], operation: int, path: Path) -> Generator[None, None, None]:
    try:
        fcntl.flock(fh.fileno(), operation)
    except OSError as exc:
        raise StoreIOError(f"Failed to lock {path}: {exc}", path) from exc
    try:
        yield
    finally:
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        except OSError:
            logger.exception("Failed to unlock %s", path)


class Store(Generic[P]):
    """A single file holding one time-stamped payload.

    Args:
        path: Store file. Relative paths are resolved against the system
            temp directory.
        min_duration: Minimum number of seconds between two rewrites.
        debug: Emit diagnostics about store activity (to the log, never to
            the file).
        clock: Nanosecond wall clock, injectable for tests.
    """

    def __init__(
        self,
        path: str | Path = DEFAULT_FILE_NAME,
        min_duration: float = DEFAULT_MIN_DURATION,
        debug: bool = False,
        clock: Clock = now_ns,
    ) -> None:
        self._path = resolve_store_path(path)
        self._min_duration_ns = int(min_duration * NANOS_PER_SECOND)
        self._debug = debug
        self._clock = clock
        self._trace("Storing data in: %s", self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _trace(self, msg: str, *args: Any) -> None:
        if self._debug:
            logger.debug(msg, *args)

    def reset(self) -> None:
        """Truncate the store file to zero length, creating it if needed."""
        try:
            with open(self._path, "wb"):
                pass
        except OSError as exc:
            raise StoreIOError(f"Failed to reset {self._path}: {exc}", self._path) from exc
        self._trace("Reset %s", self._path)

    def read(self, payload_type: type[P]) -> P:
        """Return the stored payload, deserialized as *payload_type*.

        Raises:
            StoreIOError: the file cannot be opened, locked or read.
            SerializationError: the content is not a valid envelope, or the
                payload does not match *payload_type*.
        """
        path = self._path
        try:
            with open(path, "rb") as fh, _locked(fh, fcntl.LOCK_SH, path):
                data = fh.read()
        except OSError as exc:
            raise StoreIOError(f"Failed to read {path}: {exc}", path) from exc

        text = self._decode(data)
        envelope = self._parse_envelope(text)
        if "payload" not in envelope:
            raise SerializationError("Envelope has no payload", text)
        try:
            payload = payload_type.from_dict(envelope["payload"])
        except SerializationError as exc:
            raise SerializationError(exc.message, text) from exc
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise SerializationError(f"Payload does not match {payload_type.__name__}: {exc}", text) from exc
        self._trace("Read %d bytes from %s", len(data), path)
        return payload

    def write(self, payload: P) -> bool:
        """Persist *payload* unless the stored envelope is younger than ``min_duration``.

        Returns ``True`` when the file was rewritten, ``False`` when the
        write was throttled.
        """
        path = self._path
        try:
            fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
            fh = os.fdopen(fd, "r+b")
        except OSError as exc:
            raise StoreIOError(f"Failed to open {path}: {exc}", path) from exc

        with fh, _locked(fh, fcntl.LOCK_EX, path):
            try:
                fh.seek(0)
                current = fh.read()
            except OSError as exc:
                raise StoreIOError(f"Failed to read {path}: {exc}", path) from exc

            previous = self._previous_time(current)
            now = self._clock()
            # an envelope from the future (clock stepped back) is rewritten
            if previous is not None and 0 <= now - previous < self._min_duration_ns:
                self._trace(
                    "Skipping write, last write %.3fs ago",
                    (now - previous) / NANOS_PER_SECOND,
                )
                return False

            envelope = {"time": duration_to_dict(now), "payload": payload.to_dict()}
            try:
                encoded = json.dumps(envelope).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"Payload is not serializable: {exc}") from exc

            try:
                fh.seek(0)
                fh.write(encoded)
                fh.truncate(len(encoded))
                fh.flush()
            except OSError as exc:
                raise StoreIOError(f"Failed to write {path}: {exc}", path) from exc

        self._trace("Wrote %d bytes to %s", len(encoded), path)
        return True

    @staticmethod
    def _decode(data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SerializationError(f"Store content is not UTF-8: {exc}", repr(data)) from exc

    @staticmethod
    def _parse_envelope(text: str) -> dict[str, Any]:
        try:
            envelope = json.loads(text)
        except (json.JSONDecodeError, RecursionError) as exc:
            raise SerializationError(f"Store content is not JSON: {exc}", text) from exc
        if not isinstance(envelope, dict):
            raise SerializationError("Store content is not an envelope object", text)
        return envelope

    def _previous_time(self, data: bytes) -> int | None:
        if not data:
            return None
        try:
            envelope = self._parse_envelope(self._decode(data))
            return duration_from_dict(envelope.get("time"))
        except StoreError as exc:
            self._trace("No previous write time: %s", exc.message)
            return None
