"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .aggregator import Analyzer
from .models import Window, WindowResult
from .time_window import WindowAggregator, select_top_n

__all__ = [
    "Analyzer",
    "Window",
    "WindowResult",
    "WindowAggregator",
    "select_top_n",
]
