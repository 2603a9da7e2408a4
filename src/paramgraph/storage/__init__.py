"""
Record store adapters for paramgraph.

Provides pluggable persistence collaborators:
- SQLiteRecordStore: Local persistence for the command line
- MemoryRecordStore: Fast ephemeral storage for testing
"""

from .base import RecordStore
from .memory import MemoryRecordStore
from .sqlite import SQLiteRecordStore

__all__ = ["RecordStore", "SQLiteRecordStore", "MemoryRecordStore"]
