"""
Enumerations for hands, actions and log events
"""

from enum import Enum


class Street(str, Enum):
    """Betting round"""

    PREFLOP = "PREFLOP"
    FLOP = "FLOP"
    TURN = "TURN"
    RIVER = "RIVER"

    @classmethod
    def from_board_count(cls, count: int) -> "Street":
        """Street implied by the number of community cards (0/3/4/5)"""
        mapping = {0: cls.PREFLOP, 3: cls.FLOP, 4: cls.TURN, 5: cls.RIVER}
        if count not in mapping:
            raise ValueError(f"Invalid community card count: {count}")
        return mapping[count]


class ActionKind(str, Enum):
    """Actions the advisor can recommend"""

    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"
    FOLD = "fold"
    ALL_IN = "all-in"

    @property
    def is_sized(self) -> bool:
        """Whether the action carries a size"""
        return self in (ActionKind.BET, ActionKind.RAISE, ActionKind.ALL_IN)


class LogActionKind(str, Enum):
    """Player actions as they appear in the table log"""

    SMALL_BLIND = "small_blind"
    BIG_BLIND = "big_blind"
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"
    FOLD = "fold"

    @property
    def is_voluntary(self) -> bool:
        """Voluntarily puts chips in the pot (VPIP)"""
        return self in (LogActionKind.CALL, LogActionKind.BET, LogActionKind.RAISE)

    @property
    def is_blind(self) -> bool:
        return self in (LogActionKind.SMALL_BLIND, LogActionKind.BIG_BLIND)


class LogEventKind(str, Enum):
    """Parsed log event types"""

    SEAT_ASSIGNMENT = "seat_assignment"
    PLAYER_JOINED = "player_joined"
    INITIAL_STACK = "initial_stack"
    ACTION = "action"
    HAND_STARTED = "hand_started"
    HAND_ENDED = "hand_ended"
    BOARD_DEALT = "board_dealt"
    HERO_HAND = "hero_hand"
    POT_COLLECTED = "pot_collected"
    UNCALLED_BET = "uncalled_bet"


class Role(str, Enum):
    """Conversation role for Oracle messages"""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class TurnSignal(str, Enum):
    """What the Observer saw while monitoring a hand"""

    ACTION = "action"
    WINNER = "winner"
