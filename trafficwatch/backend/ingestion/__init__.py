"""
ingestion/__init__.py

Public API for the ingestion sub-package.
"""

from .ingestor import Ingestor, iter_records
from .parser import RecordParser, parse_timestamp
from .source import FileRecordSource, IterableRecordSource, RecordSource

__all__ = [
    "Ingestor",
    "iter_records",
    "RecordParser",
    "parse_timestamp",
    "RecordSource",
    "FileRecordSource",
    "IterableRecordSource",
]
