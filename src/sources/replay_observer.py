"""
ReplayObserver - Observer driven by a recorded session

Replays a JSON recording so the hand loop can run without a browser
(dry runs, demos, end-to-end tests). Recording layout:

    {
      "game_id": "pglXXXX",
      "seated": true,
      "game_info": {"small_blind": 10, "big_blind": 20, "max_turn_length": 30},
      "hands": [
        {
          "log": [{"msg": "-- starting hand #1 ...", "created_at": "100"}, ...],
          "snapshot": {...},
          "turns": [
            {"log": [...], "snapshot": {...}, "available_actions": ["check", "bet", "fold"]}
          ],
          "end_log": [...]
        }
      ]
    }

Log lines become visible progressively: a hand's "log" when the hand starts,
each turn's "log" when the hero's turn is signalled, "end_log" when the
winner is signalled.
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from models.enums import TurnSignal
from models.log_events import LogEntry, is_after
from models.snapshot import GameInfo, TableSnapshot

from .observer import Observer, ObserverResult

logger = logging.getLogger(__name__)

DEFAULT_ACTIONS = ["check", "call", "bet", "raise", "fold"]


class ReplayObserver(Observer):
    """
    Observer that replays a recorded session

    Executed actions are appended to `executed` as (name, amount) tuples.
    """

    def __init__(self, recording: dict[str, Any]):
        """
        Args:
            recording: Parsed recording (see module docstring)

        Raises:
            ValueError: If the recording has no hands or no game_info
        """
        if "game_info" not in recording:
            raise ValueError("Recording is missing game_info")
        hands = recording.get("hands") or []
        if not hands:
            raise ValueError("Recording contains no hands")

        self._recording = recording
        self._hands: list[dict[str, Any]] = hands
        self._game_info = GameInfo.model_validate(recording["game_info"])
        self._seated = bool(recording.get("seated", True))

        self._hand_index = -1
        self._turn_index = -1
        self._revealed: list[LogEntry] = []
        self._snapshot: TableSnapshot | None = None
        self._actions: list[str] = list(DEFAULT_ACTIONS)

        self.game_id: str | None = None
        self.executed: list[tuple[str, Decimal | None]] = []

    @classmethod
    def from_file(cls, filepath: str | Path) -> "ReplayObserver":
        """
        Load a recording from disk

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not a valid recording
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Recording not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid recording {path}: {e}") from e
        logger.info(f"Loaded recording {path.name} ({len(data.get('hands', []))} hands)")
        return cls(data)

    @property
    def hand_count(self) -> int:
        return len(self._hands)

    @property
    def exhausted(self) -> bool:
        return self._hand_index >= len(self._hands) - 1

    @property
    def _hand(self) -> dict[str, Any]:
        return self._hands[self._hand_index]

    def _reveal(self, lines: list[dict[str, Any]] | None) -> None:
        for line in lines or []:
            self._revealed.append(LogEntry.model_validate(line))

    def _set_snapshot(self, data: dict[str, Any] | None) -> None:
        if data is not None:
            self._snapshot = TableSnapshot.model_validate({**data, "source": "replay"})

    # ========================================================================
    # SEATING
    # ========================================================================

    async def navigate_to_game(self, game_id: str) -> ObserverResult:
        expected = self._recording.get("game_id")
        if expected and game_id and game_id != expected:
            return ObserverResult.fail(f"Recording is for game {expected}, not {game_id}")
        self.game_id = game_id or expected
        return ObserverResult.ok()

    async def is_seated(self) -> ObserverResult:
        return ObserverResult.ok(self._seated)

    async def request_seat(self, name: str) -> ObserverResult:
        self._seated = True
        return ObserverResult.ok()

    # ========================================================================
    # HAND PROGRESS
    # ========================================================================

    async def wait_for_next_hand(self) -> ObserverResult:
        if self.exhausted:
            return ObserverResult.ok(False)

        self._hand_index += 1
        self._turn_index = -1
        self._actions = list(DEFAULT_ACTIONS)
        self._reveal(self._hand.get("log"))
        self._set_snapshot(self._hand.get("snapshot"))
        return ObserverResult.ok(True)

    async def wait_for_bot_turn_or_winner(
        self, num_players: int, max_turn_length: float
    ) -> ObserverResult:
        if self._hand_index < 0:
            return ObserverResult.fail("No hand in progress")

        turns = self._hand.get("turns") or []
        if self._turn_index + 1 < len(turns):
            self._turn_index += 1
            turn = turns[self._turn_index]
            self._reveal(turn.get("log"))
            self._set_snapshot(turn.get("snapshot"))
            self._actions = list(turn.get("available_actions") or DEFAULT_ACTIONS)
            return ObserverResult.ok(TurnSignal.ACTION)

        if self._turn_index + 1 == len(turns):
            self._turn_index += 1
            self._reveal(self._hand.get("end_log"))
        return ObserverResult.ok(TurnSignal.WINNER)

    async def wait_for_hand_end(self) -> ObserverResult:
        return ObserverResult.ok()

    async def get_game_info(self) -> ObserverResult:
        return ObserverResult.ok(self._game_info)

    async def get_table_snapshot(self) -> ObserverResult:
        if self._snapshot is None:
            return ObserverResult.fail("No snapshot recorded yet")
        return ObserverResult.ok(self._snapshot)

    async def fetch_log_lines_since(self, cursor: str | None) -> list[LogEntry]:
        if cursor is None:
            return list(self._revealed)
        return [entry for entry in self._revealed if is_after(entry.created_at, cursor)]

    # ========================================================================
    # ACTIONS
    # ========================================================================

    async def available_actions(self) -> ObserverResult:
        return ObserverResult.ok(list(self._actions))

    def _execute(self, name: str, amount: Decimal | None = None) -> ObserverResult:
        offered = set(self._actions)
        allowed = name in offered or (name == "bet_or_raise" and bool(offered & {"bet", "raise"}))
        if not allowed:
            return ObserverResult.fail(f"Action {name} not available (offered: {self._actions})")
        self.executed.append((name, amount))
        logger.info(f"[replay] executed {name}" + (f" {amount}" if amount is not None else ""))
        return ObserverResult.ok()

    async def check(self) -> ObserverResult:
        return self._execute("check")

    async def call(self) -> ObserverResult:
        return self._execute("call")

    async def fold(self) -> ObserverResult:
        return self._execute("fold")

    async def bet_or_raise(self, amount) -> ObserverResult:
        return self._execute("bet_or_raise", Decimal(str(amount)))
