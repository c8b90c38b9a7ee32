"""
Shared test fixtures for pytest
"""

import copy
from decimal import Decimal

import pytest

from bot.oracles.base import Oracle
from core.game_state import Game
from models.actions import OracleResponse
from models.log_events import LogEntry
from models.snapshot import GameInfo
from services import setup_logging
from sources.log_parser import parse_entries

HERO = "alice"

# A complete hand: bob raises, carol folds, alice calls and folds to a flop bet
HAND_ONE = [
    ("100", '-- starting hand #1 (id: h1abc) No Limit Texas Hold\'em (dealer: "bob @ b2") --'),
    ("101", 'Player stacks: #1 "alice @ a1" (1000) | #3 "bob @ b2" (980) | #5 "carol @ c3" (1200)'),
    ("102", "Your hand is A♠, K♦"),
    ("103", '"carol @ c3" posts a small blind of 10'),
    ("104", '"alice @ a1" posts a big blind of 20'),
    ("105", '"bob @ b2" raises to 60'),
    ("106", '"carol @ c3" folds'),
    ("107", '"alice @ a1" calls 60'),
    ("108", "Flop:  [3♣, 2♥, 9♦]"),
    ("109", '"alice @ a1" checks'),
    ("110", '"bob @ b2" bets 80'),
    ("111", '"alice @ a1" folds'),
    ("112", 'Uncalled bet of 80 returned to "bob @ b2"'),
    ("113", '"bob @ b2" collected 130 from pot'),
    ("114", "-- ending hand #1 --"),
]

# Everybody folds to bob in the big blind
HAND_TWO = [
    ("200", '-- starting hand #2 (id: h2def) No Limit Texas Hold\'em (dealer: "carol @ c3") --'),
    ("201", 'Player stacks: #1 "alice @ a1" (900) | #3 "bob @ b2" (1110) | #5 "carol @ c3" (1190)'),
    ("202", "Your hand is 7♣, 2♦"),
    ("203", '"alice @ a1" posts a small blind of 10'),
    ("204", '"bob @ b2" posts a big blind of 20'),
    ("205", '"carol @ c3" folds'),
    ("206", '"alice @ a1" folds'),
    ("207", 'Uncalled bet of 10 returned to "bob @ b2"'),
    ("208", '"bob @ b2" collected 20 from pot'),
    ("209", "-- ending hand #2 --"),
]


def make_entries(lines):
    """(created_at, msg) pairs -> LogEntry list"""
    return [LogEntry(created_at=created_at, msg=msg) for created_at, msg in lines]


def as_dicts(lines):
    return [{"created_at": created_at, "msg": msg} for created_at, msg in lines]


def _seat(seat, name, stack, **flags):
    return {"seat": seat, "name": name, "stack": stack, **flags}


RECORDING = {
    "game_id": "pgl_test",
    "seated": True,
    "game_info": {"small_blind": 10, "big_blind": 20, "max_turn_length": 30},
    "hands": [
        {
            "log": as_dicts(HAND_ONE[:5]),
            "snapshot": {
                "pot": 30,
                "hero_hand": ["A♠", "K♦"],
                "hero_stack": 980,
                "players": [
                    _seat(1, "alice", 980, bet=20),
                    _seat(3, "bob", 980, is_dealer=True),
                    _seat(5, "carol", 1190, bet=10),
                ],
            },
            "turns": [
                {
                    "log": as_dicts(HAND_ONE[5:7]),
                    "snapshot": {
                        "pot": 90,
                        "hero_hand": ["A♠", "K♦"],
                        "hero_stack": 980,
                        "players": [
                            _seat(1, "alice", 980, bet=20, is_current_turn=True),
                            _seat(3, "bob", 920, bet=60, is_dealer=True),
                            _seat(5, "carol", 1190, folded=True),
                        ],
                    },
                    "available_actions": ["call", "raise", "fold"],
                },
                {
                    "log": as_dicts(HAND_ONE[7:11]),
                    "snapshot": {
                        "pot": 210,
                        "hero_hand": ["A♠", "K♦"],
                        "hero_stack": 940,
                        "community_cards": ["3♣", "2♥", "9♦"],
                        "players": [
                            _seat(1, "alice", 940, is_current_turn=True),
                            _seat(3, "bob", 840, bet=80, is_dealer=True),
                            _seat(5, "carol", 1190, folded=True),
                        ],
                    },
                    "available_actions": ["call", "raise", "fold"],
                },
            ],
            "end_log": as_dicts(HAND_ONE[11:]),
        },
        {
            "log": as_dicts(HAND_TWO[:5]),
            "snapshot": {
                "pot": 30,
                "hero_hand": ["7♣", "2♦"],
                "hero_stack": 930,
                "players": [
                    _seat(1, "alice", 930, bet=10),
                    _seat(3, "bob", 1090, bet=20),
                    _seat(5, "carol", 1190, is_dealer=True),
                ],
            },
            "turns": [
                {
                    "log": as_dicts(HAND_TWO[5:6]),
                    "snapshot": {
                        "pot": 30,
                        "hero_hand": ["7♣", "2♦"],
                        "hero_stack": 930,
                        "players": [
                            _seat(1, "alice", 930, bet=10, is_current_turn=True),
                            _seat(3, "bob", 1090, bet=20),
                            _seat(5, "carol", 1190, folded=True, is_dealer=True),
                        ],
                    },
                    "available_actions": ["call", "raise", "fold"],
                },
            ],
            "end_log": as_dicts(HAND_TWO[6:]),
        },
    ],
}


class ScriptedOracle(Oracle):
    """Oracle that replays canned replies (exceptions are raised)"""

    def __init__(self, replies, playstyle="neutral"):
        super().__init__(model_name="scripted", playstyle=playstyle)
        self.replies = list(replies)
        self.prompts = []
        self.histories = []
        self.closed = False

    async def query(self, prompt, history):
        self.prompts.append(prompt)
        self.histories.append(list(history))
        if not self.replies:
            raise RuntimeError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return OracleResponse(text=reply)

    async def close(self):
        self.closed = True


async def no_sleep(_delay):
    return None


@pytest.fixture(autouse=True, scope="session")
def setup_test_logging(tmp_path_factory):
    """Setup logging once for all tests, writing into a temp dir"""
    setup_logging({"log_dir": str(tmp_path_factory.mktemp("logs"))})


@pytest.fixture
def hand_one_entries():
    return make_entries(HAND_ONE)


@pytest.fixture
def hand_one_events(hand_one_entries):
    return parse_entries(hand_one_entries)


@pytest.fixture
def hand_two_entries():
    return make_entries(HAND_TWO)


@pytest.fixture
def hand_two_events(hand_two_entries):
    return parse_entries(hand_two_entries)


@pytest.fixture
def game_info():
    return GameInfo(small_blind=Decimal("10"), big_blind=Decimal("20"))


@pytest.fixture
def game(game_info):
    """Game for hero alice with a hand already started at 10/20"""
    g = Game(hero_name=HERO)
    g.start_hand(game_info)
    return g


@pytest.fixture
def recording():
    return copy.deepcopy(RECORDING)


@pytest.fixture
def entries():
    """Factory: (created_at, msg) pairs -> LogEntry list"""
    return make_entries


@pytest.fixture
def scripted_oracle():
    """Factory: replies -> ScriptedOracle"""
    return ScriptedOracle


@pytest.fixture
def instant_sleep():
    """Awaitable sleep that returns immediately"""
    return no_sleep
