"""PokerNow table-log parser.

Turns raw log lines into typed LogEvents and derives the identity maps
(seat -> id, id -> name, id -> initial stack, id -> seat) from the events
seen so far in a hand.

Players appear in the log as "name @ id"; the id is the stable key. Known
line templates:

- "-- starting hand #12 (id: x1y2) No Limit Texas Hold'em (dealer: "Bob @ b2") --"
- "-- ending hand #12 --"
- "Player stacks: #1 "Alice @ a1" (1000) | #3 "Bob @ b2" (980)"
- "The player "Alice @ a1" joined the game with a stack of 1000."
- "The player "Alice @ a1" sat in seat #3 with a stack of 1000."
- ""Alice @ a1" posts a big blind of 20"
- ""Alice @ a1" raises to 60 and go all in"
- "Flop:  [3♣, 2♥, 9♦]" / "Turn: ... [8♣]" / "River: ... [A♠]"
- "Your hand is A♠, K♦"
- ""Alice @ a1" collected 120 from pot"
- "Uncalled bet of 40 returned to "Alice @ a1""
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from core.errors import IncompleteMappingError, ParseError
from models.enums import LogActionKind, LogEventKind
from models.log_events import LogEntry, LogEvent

logger = logging.getLogger(__name__)

_PLAYER = r"\"(?P<name>[^\"]+) @ (?P<id>[^\"\s]+)\""
_AMOUNT = r"(?P<amount>[0-9][0-9,]*(?:\.[0-9]+)?)"
_ALL_IN = r"(?P<all_in>\s+and go all in)?"

RE_START = re.compile(
    r"^--\s*starting hand\s*#(?P<hand>\d+)"
    r"(?:\s*\(id:\s*(?P<hand_id>[^)]+)\))?"
    r".*?(?:\(dealer:\s*\"[^\"]+ @ (?P<dealer>[^\"\s]+)\"\))?\s*(?:--)?\s*$"
)
RE_END = re.compile(r"^--\s*ending hand\s*#(?P<hand>\d+)\s*--\s*$")
RE_STACKS = re.compile(r"^Player stacks:\s*(?P<body>.+)$")
RE_STACK_ITEM = re.compile(r"#(?P<seat>\d+)\s*" + _PLAYER + r"\s*\(" + _AMOUNT + r"\)")
RE_JOINED = re.compile(
    r"^The (?:admin approved the )?player " + _PLAYER
    + r"\s+(?:joined the game|participation) with a stack of " + _AMOUNT
)
RE_SAT = re.compile(
    r"^The player " + _PLAYER + r"\s+sat in seat #(?P<seat>\d+)"
    r"(?: with a stack of " + _AMOUNT + r")?"
)
RE_BLIND = re.compile(r"^" + _PLAYER + r"\s+posts a (?P<which>small|big) blind of " + _AMOUNT + _ALL_IN)
RE_CHECK = re.compile(r"^" + _PLAYER + r"\s+checks\b")
RE_FOLD = re.compile(r"^" + _PLAYER + r"\s+folds\b")
RE_CALL = re.compile(r"^" + _PLAYER + r"\s+calls " + _AMOUNT + _ALL_IN)
RE_BET = re.compile(r"^" + _PLAYER + r"\s+bets " + _AMOUNT + _ALL_IN)
RE_RAISE = re.compile(r"^" + _PLAYER + r"\s+raises to " + _AMOUNT + _ALL_IN)
RE_COLLECTED = re.compile(r"^" + _PLAYER + r"\s+collected " + _AMOUNT + r" from pot")
RE_UNCALLED = re.compile(r"^Uncalled bet of " + _AMOUNT + r" returned to " + _PLAYER)
RE_BOARD = re.compile(r"^(?P<street>Flop|Turn|River)(?:\s*\(second run\))?:\s*(?P<body>.+)$")
RE_HERO_HAND = re.compile(r"^Your hand is\s*(?P<body>.+)$")
RE_CARD = re.compile(r"(?P<rank>10|[2-9AJQKT])(?P<suit>[♠♥♦♣shdc])")

_SIMPLE_ACTIONS: list[tuple[re.Pattern, LogActionKind]] = [
    (RE_CHECK, LogActionKind.CHECK),
    (RE_FOLD, LogActionKind.FOLD),
    (RE_CALL, LogActionKind.CALL),
    (RE_BET, LogActionKind.BET),
    (RE_RAISE, LogActionKind.RAISE),
]


def parse_cards(text: str) -> list[str]:
    """Extract cards like ['A♠', '10♦'] from a fragment ("T" normalized to "10")"""
    cards = []
    for rank, suit in RE_CARD.findall(text):
        cards.append(f"{'10' if rank == 'T' else rank}{suit}")
    return cards


def _event(entry: LogEntry, kind: LogEventKind, sub_index: int = 0, **fields) -> LogEvent:
    return LogEvent(kind=kind, created_at=entry.created_at, sub_index=sub_index, raw=entry.msg, **fields)


def _parse_start(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    return [
        _event(
            entry,
            LogEventKind.HAND_STARTED,
            hand_number=int(m.group("hand")),
            hand_id=m.group("hand_id"),
            dealer_id=m.group("dealer"),
        )
    ]


def _parse_end(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    return [_event(entry, LogEventKind.HAND_ENDED, hand_number=int(m.group("hand")))]


def _parse_stacks(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    items = list(RE_STACK_ITEM.finditer(m.group("body")))
    if not items:
        raise ParseError("Player stacks line lists no players", line=entry.msg)

    events = []
    for item in items:
        who = {"player_id": item.group("id"), "player_name": item.group("name")}
        seat = int(item.group("seat"))
        amount = item.group("amount")
        base = len(events)
        events.append(_event(entry, LogEventKind.SEAT_ASSIGNMENT, base, seat=seat, **who))
        events.append(_event(entry, LogEventKind.PLAYER_JOINED, base + 1, **who))
        events.append(_event(entry, LogEventKind.INITIAL_STACK, base + 2, amount=amount, **who))
    return events


def _parse_joined(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    who = {"player_id": m.group("id"), "player_name": m.group("name")}
    return [
        _event(entry, LogEventKind.PLAYER_JOINED, 0, **who),
        _event(entry, LogEventKind.INITIAL_STACK, 1, amount=m.group("amount"), **who),
    ]


def _parse_sat(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    who = {"player_id": m.group("id"), "player_name": m.group("name")}
    events = [
        _event(entry, LogEventKind.SEAT_ASSIGNMENT, 0, seat=int(m.group("seat")), **who),
        _event(entry, LogEventKind.PLAYER_JOINED, 1, **who),
    ]
    if m.group("amount"):
        events.append(_event(entry, LogEventKind.INITIAL_STACK, 2, amount=m.group("amount"), **who))
    return events


def _parse_blind(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    action = LogActionKind.SMALL_BLIND if m.group("which") == "small" else LogActionKind.BIG_BLIND
    return [
        _event(
            entry,
            LogEventKind.ACTION,
            player_id=m.group("id"),
            player_name=m.group("name"),
            action=action,
            amount=m.group("amount"),
            all_in=bool(m.group("all_in")),
        )
    ]


def _parse_collected(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    return [
        _event(
            entry,
            LogEventKind.POT_COLLECTED,
            player_id=m.group("id"),
            player_name=m.group("name"),
            amount=m.group("amount"),
        )
    ]


def _parse_uncalled(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    return [
        _event(
            entry,
            LogEventKind.UNCALLED_BET,
            player_id=m.group("id"),
            player_name=m.group("name"),
            amount=m.group("amount"),
        )
    ]


def _parse_board(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    cards = parse_cards(m.group("body"))
    expected = {"Flop": 3, "Turn": 4, "River": 5}[m.group("street")]
    if len(cards) != expected:
        raise ParseError(
            f"{m.group('street')} line has {len(cards)} cards, expected {expected}", line=entry.msg
        )
    return [_event(entry, LogEventKind.BOARD_DEALT, cards=cards)]


def _parse_hero_hand(entry: LogEntry, m: re.Match) -> list[LogEvent]:
    cards = parse_cards(m.group("body"))
    if len(cards) < 2:
        raise ParseError("Hero hand line has fewer than two cards", line=entry.msg)
    return [_event(entry, LogEventKind.HERO_HAND, cards=cards)]


_TEMPLATES: list[tuple[re.Pattern, Callable[[LogEntry, re.Match], list[LogEvent]]]] = [
    (RE_START, _parse_start),
    (RE_END, _parse_end),
    (RE_STACKS, _parse_stacks),
    (RE_JOINED, _parse_joined),
    (RE_SAT, _parse_sat),
    (RE_BLIND, _parse_blind),
    (RE_COLLECTED, _parse_collected),
    (RE_UNCALLED, _parse_uncalled),
    (RE_BOARD, _parse_board),
    (RE_HERO_HAND, _parse_hero_hand),
]


def parse_line(entry: LogEntry) -> list[LogEvent]:
    """
    Parse one log line into events.

    Args:
        entry: Raw log entry

    Returns:
        One or more events (the "Player stacks" line yields three per player)

    Raises:
        ParseError: If the line matches no known template
    """
    msg = entry.msg.strip()
    if not msg:
        raise ParseError("Empty log line", line=entry.msg)

    for pattern, handler in _TEMPLATES:
        m = pattern.search(msg)
        if m:
            return handler(entry, m)

    for pattern, action in _SIMPLE_ACTIONS:
        m = pattern.search(msg)
        if m:
            groups = m.groupdict()
            return [
                _event(
                    entry,
                    LogEventKind.ACTION,
                    player_id=m.group("id"),
                    player_name=m.group("name"),
                    action=action,
                    amount=groups.get("amount"),
                    all_in=bool(groups.get("all_in")),
                )
            ]

    raise ParseError("Unrecognized log line", line=entry.msg)


def parse_entries(entries: Iterable[LogEntry]) -> list[LogEvent]:
    """
    Parse a batch of log lines, discarding unrecognized ones.

    Never raises on a bad line: chat, banners and other cosmetic lines are
    skipped with a warning.
    """
    events: list[LogEvent] = []
    for entry in entries:
        try:
            events.extend(parse_line(entry))
        except ParseError as e:
            logger.warning(f"Skipping log line {entry.created_at}: {e}")
    return events


# ========================================================================
# IDENTITY MAPS
# ========================================================================


def seat_to_id(events: Iterable[LogEvent]) -> dict[int, str]:
    """Seat number -> player id (latest assignment wins)"""
    result: dict[int, str] = {}
    for event in events:
        if event.kind == LogEventKind.SEAT_ASSIGNMENT and event.seat is not None:
            result[event.seat] = event.player_id
    return result


def id_to_name(events: Iterable[LogEvent]) -> dict[str, str]:
    """Player id -> display name"""
    result: dict[str, str] = {}
    for event in events:
        if event.kind in (LogEventKind.PLAYER_JOINED, LogEventKind.SEAT_ASSIGNMENT) and event.player_id:
            result[event.player_id] = event.player_name
    return result


def id_to_initial_stack(events: Iterable[LogEvent]) -> dict[str, Decimal]:
    """Player id -> stack at hand start (latest announcement wins)"""
    result: dict[str, Decimal] = {}
    for event in events:
        if event.kind == LogEventKind.INITIAL_STACK and event.player_id and event.amount is not None:
            result[event.player_id] = event.amount
    return result


def id_to_seat(events: Iterable[LogEvent]) -> dict[str, int]:
    """Player id -> seat number (latest assignment wins)"""
    result: dict[str, int] = {}
    for event in events:
        if event.kind == LogEventKind.SEAT_ASSIGNMENT and event.player_id and event.seat is not None:
            result[event.player_id] = event.seat
    return result


@dataclass
class IdentityMaps:
    """The four identity maps over the events seen so far"""

    seat_to_id: dict[int, str] = field(default_factory=dict)
    id_to_name: dict[str, str] = field(default_factory=dict)
    id_to_initial_stack: dict[str, Decimal] = field(default_factory=dict)
    id_to_seat: dict[str, int] = field(default_factory=dict)

    def _id_sets(self) -> dict[str, set[str]]:
        return {
            "seat_to_id": set(self.seat_to_id.values()),
            "id_to_name": set(self.id_to_name),
            "id_to_initial_stack": set(self.id_to_initial_stack),
            "id_to_seat": set(self.id_to_seat),
        }

    @property
    def all_ids(self) -> set[str]:
        ids: set[str] = set()
        for id_set in self._id_sets().values():
            ids |= id_set
        return ids

    @property
    def complete_ids(self) -> set[str]:
        """Ids present in all four maps"""
        id_sets = list(self._id_sets().values())
        return set.intersection(*id_sets)

    def missing(self) -> dict[str, set[str]]:
        """Map name -> ids known elsewhere but absent from that map"""
        all_ids = self.all_ids
        return {
            name: all_ids - id_set
            for name, id_set in self._id_sets().items()
            if all_ids - id_set
        }


def build_identity_maps(events: Iterable[LogEvent]) -> IdentityMaps:
    events = list(events)
    return IdentityMaps(
        seat_to_id=seat_to_id(events),
        id_to_name=id_to_name(events),
        id_to_initial_stack=id_to_initial_stack(events),
        id_to_seat=id_to_seat(events),
    )


def validate_all_msg(maps: IdentityMaps) -> bool:
    """True only when all four maps hold the identical id set"""
    return not maps.missing()


def require_complete(maps: IdentityMaps) -> None:
    """
    Raises:
        IncompleteMappingError: If any id is missing from any map
    """
    missing = maps.missing()
    if missing:
        raise IncompleteMappingError(missing)
