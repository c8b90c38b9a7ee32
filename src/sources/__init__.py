"""
Sources module - table observation and log ingestion.
"""

from sources.log_cursor import LogCursor, LogIngestor, ProcessedLogs, slice_hand
from sources.log_parser import (
    IdentityMaps,
    build_identity_maps,
    parse_entries,
    parse_line,
    require_complete,
    validate_all_msg,
)
from sources.observer import Observer, ObserverResult
from sources.replay_observer import ReplayObserver

__all__ = [
    # Parser
    "IdentityMaps",
    "build_identity_maps",
    "parse_entries",
    "parse_line",
    "require_complete",
    "validate_all_msg",
    # Cursor
    "LogCursor",
    "LogIngestor",
    "ProcessedLogs",
    "slice_hand",
    # Observers
    "Observer",
    "ObserverResult",
    "ReplayObserver",
]
