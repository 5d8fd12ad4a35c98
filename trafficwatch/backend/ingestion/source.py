"""
ingestion/source.py

Record sources — lazy, finite, single-pass iterables of raw lines.

FileRecordSource opens its file only when iteration starts and wraps any
OSError (missing file, permission, I/O failure mid-read) as SourceReadError
so the ingestion loop handles all adapters the same way.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from ..errors import SourceReadError

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Anything that yields raw lines once, in order."""

    def __iter__(self) -> Iterator[str]:
        ...


class FileRecordSource:
    """
    Streams lines from a text file without loading it into memory.

    Args:
        path:     File to read.
        encoding: Text encoding (default utf-8).
    """

    def __init__(self, path: str | Path, encoding: str = "utf-8") -> None:
        self._path = Path(path)
        self._encoding = encoding
        self._consumed = False

    @property
    def path(self) -> Path:
        return self._path

    def __iter__(self) -> Iterator[str]:
        if self._consumed:
            raise SourceReadError(f"{self._path} has already been read")
        self._consumed = True
        return self._lines()

    def _lines(self) -> Iterator[str]:
        try:
            with self._path.open("r", encoding=self._encoding) as fh:
                logger.info("Reading records from %s", self._path)
                for line in fh:
                    yield line.rstrip("\r\n")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceReadError(f"cannot read {self._path}: {exc}") from exc

    def __repr__(self) -> str:  # pragma: no cover
        return f"FileRecordSource({str(self._path)!r})"


class IterableRecordSource:
    """In-memory source over any iterable of lines (tests, sequential mode)."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = iter(lines)

    def __iter__(self) -> Iterator[str]:
        return self._lines
