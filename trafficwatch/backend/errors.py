"""
backend/errors.py

Exception taxonomy for the whole pipeline.

  ParseError       — one bad input line; skipped, never stops the stream
  SourceReadError  — the record source could not be read; stops ingestion
  QueueClosed      — the bounded queue was closed; an ordinary shutdown signal
  ConfigError      — invalid configuration, raised before any processing
"""

from __future__ import annotations


class TrafficWatchError(Exception):
    """Base class for every error raised by trafficwatch."""


class ParseError(TrafficWatchError):
    """A raw line could not be turned into a Record."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class SourceReadError(TrafficWatchError):
    """The underlying record source failed while being read."""


class QueueClosed(TrafficWatchError):
    """Raised by BoundedQueue once it is closed (and, for pops, drained)."""


class ConfigError(TrafficWatchError):
    """Invalid configuration value (non-positive capacity, duration or N)."""
