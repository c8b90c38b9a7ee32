"""
Observer abstract base class.

Defines the interface to the layer that watches the live table: seating,
turn detection, snapshots, raw log lines and the per-action primitives.

Implementations:
- ReplayObserver: Replays a recorded session file (dry runs, tests)
- Browser-backed observers are loaded with --observer module:Class

Every method returns an ObserverResult rather than raising, except
fetch_log_lines_since(), whose failures the LogIngestor wraps.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from models.log_events import LogEntry


@dataclass
class ObserverResult:
    """Success/error outcome of an Observer call."""

    success: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def ok(cls, value: Any = None) -> ObserverResult:
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str) -> ObserverResult:
        return cls(success=False, error=error)


class Observer(ABC):
    """Abstract table observer."""

    @abstractmethod
    async def navigate_to_game(self, game_id: str) -> ObserverResult:
        """Open the game page."""
        pass

    @abstractmethod
    async def is_seated(self) -> ObserverResult:
        """value: True if the hero already holds a seat."""
        pass

    @abstractmethod
    async def request_seat(self, name: str) -> ObserverResult:
        """Ask for a seat under the given name."""
        pass

    @abstractmethod
    async def wait_for_next_hand(self) -> ObserverResult:
        """
        Poll once for a new hand.

        value: True if a hand has begun since the last call, False if not yet.
        """
        pass

    @abstractmethod
    async def wait_for_bot_turn_or_winner(
        self, num_players: int, max_turn_length: float
    ) -> ObserverResult:
        """value: TurnSignal.ACTION or TurnSignal.WINNER."""
        pass

    @abstractmethod
    async def wait_for_hand_end(self) -> ObserverResult:
        """Block until the table shows no winner banner."""
        pass

    @abstractmethod
    async def get_game_info(self) -> ObserverResult:
        """value: GameInfo."""
        pass

    @abstractmethod
    async def get_table_snapshot(self) -> ObserverResult:
        """value: TableSnapshot."""
        pass

    @abstractmethod
    async def fetch_log_lines_since(self, cursor: str | None) -> list[LogEntry]:
        """
        Log lines created after the cursor (all lines when cursor is None).

        Raises:
            Any exception on network/DOM failure
        """
        pass

    @abstractmethod
    async def available_actions(self) -> ObserverResult:
        """value: list of action names currently offered ("check", "call", ...)."""
        pass

    @abstractmethod
    async def check(self) -> ObserverResult:
        pass

    @abstractmethod
    async def call(self) -> ObserverResult:
        pass

    @abstractmethod
    async def fold(self) -> ObserverResult:
        pass

    @abstractmethod
    async def bet_or_raise(self, amount) -> ObserverResult:
        """Bet or raise to the given chip amount."""
        pass

    async def close(self) -> None:  # noqa: B027
        """Release resources. Optional."""
