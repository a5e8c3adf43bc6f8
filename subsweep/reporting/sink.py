"""Streaming CSV/JSON output for discovered records.

Records arrive from many concurrent producers; :class:`ResultSink` writes
each one whole under a lock, so rows never interleave.
"""

from __future__ import annotations

import csv
import json
import sys
import threading
from typing import Optional, TextIO, Union

from subsweep.core.config import ConfigurationError, OutputFormat
from subsweep.core.records import DiscoveredRecord


class ResultSink:
    """Render discovered records to *stream* in one format.

    ``csv`` writes one ``domain,kind,value`` row per record. ``json`` writes
    a single array of ``{"domain", "kind", "value"}`` objects whose brackets
    are emitted once by :meth:`open` and :meth:`close`.

    Example::

        with ResultSink("json") as sink:
            sink.emit(DiscoveredRecord("www.example.com", RecordKind.A, "10.0.0.1"))
    """

    def __init__(
        self,
        fmt: Union[str, OutputFormat] = OutputFormat.CSV,
        stream: Optional[TextIO] = None,
    ) -> None:
        """Initialise the sink.

        Args:
            fmt: ``csv`` or ``json``.
            stream: Destination text stream (defaults to stdout).

        Raises:
            ConfigurationError: When *fmt* is not a supported format.
        """
        try:
            self.format = OutputFormat(str(getattr(fmt, "value", fmt)).lower())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid output format: {fmt!r}") from exc

        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()
        self._csv = csv.writer(self._stream, lineterminator="\n")
        self._first = True
        self._opened = False
        self._closed = False
        self._count = 0

    def __enter__(self) -> "ResultSink":
        self.open()
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    @property
    def count(self) -> int:
        """Number of records written so far."""
        return self._count

    def open(self) -> None:
        with self._lock:
            if self._opened:
                return
            self._opened = True
            if self.format is OutputFormat.JSON:
                self._stream.write("[")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self.format is OutputFormat.JSON:
                if not self._opened:
                    self._stream.write("[")
                self._stream.write("\n]\n")
            self._stream.flush()

    def emit(self, record: DiscoveredRecord) -> None:
        """Write *record*; safe to call from any task or thread.

        Raises:
            RuntimeError: When called after :meth:`close`.
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("ResultSink is closed")
            if self.format is OutputFormat.JSON:
                if not self._opened:
                    self._opened = True
                    self._stream.write("[")
                separator = "\n" if self._first else ",\n"
                self._stream.write(separator + json.dumps(record.as_dict()))
            else:
                self._csv.writerow(record.as_row())
            self._first = False
            self._count += 1
            self._stream.flush()
