"""
Data models for the PokerNow advisor
"""

from .actions import AIMessage, BotAction, OracleResponse
from .enums import ActionKind, LogActionKind, LogEventKind, Role, Street, TurnSignal
from .log_events import LogEntry, LogEvent, created_at_sort_key, is_after, newest
from .player import Player

# Observer snapshots (chip amounts, converted by the aggregate)
from .snapshot import GameInfo, SeatSnapshot, TableSnapshot
from .table import HandAction, Table

__all__ = [
    # Enums
    "ActionKind",
    "LogActionKind",
    "LogEventKind",
    "Role",
    "Street",
    "TurnSignal",
    # Log models
    "LogEntry",
    "LogEvent",
    "created_at_sort_key",
    "is_after",
    "newest",
    # Table models
    "Player",
    "Table",
    "HandAction",
    # Observer snapshots
    "GameInfo",
    "SeatSnapshot",
    "TableSnapshot",
    # Decision models
    "AIMessage",
    "BotAction",
    "OracleResponse",
]
