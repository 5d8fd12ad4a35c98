"""
output/__init__.py

Public API for the result-sink sub-package.
"""

from .base import FanoutSink, ResultSink, format_timestamp
from .console import ConsoleSink, LoggingSink, render_window
from .memory import LatestResultsSink

__all__ = [
    "ResultSink",
    "FanoutSink",
    "ConsoleSink",
    "LoggingSink",
    "LatestResultsSink",
    "format_timestamp",
    "render_window",
]
